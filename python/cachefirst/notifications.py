"""
Push notification presentation for the offline worker.

Builds the notification shown for an incoming push message and provides
the display (``Notifier``) and window (``WindowClients``) seams the worker
talks to. Channel-layer implementations forward both to connected pages
through Django Channels, the same way server pushes reach LiveViews.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from channels.layers import get_channel_layer

from .config import WorkerConfig, get_config

logger = logging.getLogger(__name__)

ACTION_OPEN = "open"
ACTION_CLOSE = "close"


@dataclass(frozen=True)
class NotificationAction:
    """A button rendered on a notification."""

    action: str
    title: str
    icon: Optional[str] = None


@dataclass(frozen=True)
class NotificationOptions:
    """
    Everything shown with a notification besides its title.

    ``tag`` is stable, so a newer notification replaces an older one
    carrying the same tag instead of stacking next to it.
    """

    body: str
    icon: Optional[str] = None
    badge: Optional[str] = None
    dir: str = "auto"
    lang: str = ""
    tag: str = ""
    actions: Tuple[NotificationAction, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["actions"] = [asdict(action) for action in self.actions]
        return data


def build_notification(
    payload_text: Optional[str], config: Optional[WorkerConfig] = None
) -> Tuple[str, NotificationOptions]:
    """
    Build the title and options for a push message.

    Args:
        payload_text: Push payload as text; None or "" selects the
            configured default body
        config: Worker configuration (global configuration when omitted)

    Returns:
        (title, options) tuple
    """
    config = config or get_config()
    settings = config.get("notification", {})

    actions = (
        NotificationAction(ACTION_OPEN, settings.get("open_title"), settings.get("open_icon")),
        NotificationAction(ACTION_CLOSE, settings.get("close_title"), settings.get("close_icon")),
    )
    options = NotificationOptions(
        body=payload_text or settings.get("default_body"),
        icon=settings.get("icon"),
        badge=settings.get("badge"),
        dir=settings.get("dir", "auto"),
        lang=settings.get("lang", ""),
        tag=settings.get("tag", ""),
        actions=actions,
    )
    return settings.get("title"), options


class Notification:
    """Handle for a displayed notification."""

    def __init__(self, title: str, options: NotificationOptions, notifier: "Notifier"):
        self.title = title
        self.options = options
        self.closed = False
        self._notifier = notifier

    @property
    def tag(self) -> str:
        return self.options.tag

    @property
    def body(self) -> str:
        return self.options.body

    async def close(self):
        """Dismiss the notification."""
        if not self.closed:
            self.closed = True
            await self._notifier._on_close(self)

    def __repr__(self):
        return f"<Notification {self.title!r} tag={self.tag!r} closed={self.closed}>"


class Notifier(ABC):
    """Displays notifications."""

    @abstractmethod
    async def show_notification(self, title: str, options: NotificationOptions) -> Notification:
        pass

    @abstractmethod
    def get_notifications(self, tag: Optional[str] = None) -> List[Notification]:
        """Get currently visible notifications, optionally filtered by tag."""
        pass

    async def _on_close(self, notification: Notification):
        pass


class InMemoryNotifier(Notifier):
    """Keeps visible notifications in memory, replacing by tag."""

    def __init__(self):
        self._visible: List[Notification] = []
        self.shown: List[Notification] = []

    async def show_notification(self, title: str, options: NotificationOptions) -> Notification:
        notification = Notification(title, options, self)
        logger.debug("Showing notification %r (tag=%r)", title, options.tag)
        if options.tag:
            self._visible = [n for n in self._visible if n.tag != options.tag]
        self._visible.append(notification)
        self.shown.append(notification)
        return notification

    def get_notifications(self, tag: Optional[str] = None) -> List[Notification]:
        if tag is None:
            return list(self._visible)
        return [n for n in self._visible if n.tag == tag]

    async def _on_close(self, notification: Notification):
        if notification in self._visible:
            self._visible.remove(notification)


def notification_group_name(app_name: str) -> str:
    """Return the channel-layer group name that receives worker messages."""
    return f"cachefirst_{app_name.replace('-', '_').replace('.', '_')}"


class ChannelLayerNotifier(InMemoryNotifier):
    """
    Sends notifications to every page subscribed to ``group``.

    Consumers receive ``{"type": "worker_notification", "title": ...,
    "options": {...}}`` and ``{"type": "worker_notification_close", ...}``.
    """

    def __init__(self, group: str, channel_layer=None):
        super().__init__()
        self.group = group
        self._channel_layer = channel_layer

    @property
    def channel_layer(self):
        return self._channel_layer or get_channel_layer()

    async def show_notification(self, title: str, options: NotificationOptions) -> Notification:
        await self.channel_layer.group_send(
            self.group,
            {
                "type": "worker_notification",
                "title": title,
                "options": options.to_dict(),
            },
        )
        return await super().show_notification(title, options)

    async def _on_close(self, notification: Notification):
        await super()._on_close(notification)
        await self.channel_layer.group_send(
            self.group,
            {"type": "worker_notification_close", "tag": notification.tag},
        )


class WindowClient:
    """A window controlled by the worker."""

    def __init__(self, url: str, owner: "WindowClients"):
        self.url = url
        self.focused = False
        self._owner = owner

    async def focus(self) -> "WindowClient":
        self.focused = True
        await self._owner._on_focus(self)
        return self


class WindowClients(ABC):
    """Finds and opens windows on behalf of the worker."""

    @abstractmethod
    async def match_all(self) -> List[WindowClient]:
        pass

    @abstractmethod
    async def open_window(self, url: str) -> Optional[WindowClient]:
        pass

    async def _on_focus(self, client: WindowClient):
        pass


class InMemoryWindowClients(WindowClients):
    """
    Tracks windows in memory.

    ``navigations`` lists every URL that was opened or focused.
    """

    def __init__(self):
        self.windows: List[WindowClient] = []
        self.navigations: List[str] = []

    async def match_all(self) -> List[WindowClient]:
        return list(self.windows)

    async def open_window(self, url: str) -> Optional[WindowClient]:
        client = WindowClient(url, self)
        self.windows.append(client)
        self.navigations.append(url)
        return client

    async def _on_focus(self, client: WindowClient):
        self.navigations.append(client.url)


class ChannelLayerWindowClients(WindowClients):
    """
    Asks pages subscribed to ``group`` to open a window.

    Pages are not tracked individually, so ``match_all`` is always empty
    and every request results in a ``worker_open_window`` message.
    """

    def __init__(self, group: str, channel_layer=None):
        self.group = group
        self._channel_layer = channel_layer

    @property
    def channel_layer(self):
        return self._channel_layer or get_channel_layer()

    async def match_all(self) -> List[WindowClient]:
        return []

    async def open_window(self, url: str) -> Optional[WindowClient]:
        await self.channel_layer.group_send(
            self.group, {"type": "worker_open_window", "url": url}
        )
        return WindowClient(url, self)
