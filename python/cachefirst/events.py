"""
Events the hosting runtime dispatches to the offline worker.

Handlers may extend an event's lifetime with ``wait_until``; the host
awaits ``settle()`` before it considers the event handled.
"""

import asyncio
from typing import Any, Awaitable, List, Optional, Union

from .http import Request


class ExtendableEvent:
    """Base event whose lifetime can be extended by pending work."""

    type = "extendable"

    def __init__(self):
        self._pending: List[asyncio.Future] = []

    def wait_until(self, awaitable: Awaitable[Any]) -> asyncio.Future:
        """Keep the event alive until ``awaitable`` resolves."""
        future = asyncio.ensure_future(awaitable)
        self._pending.append(future)
        return future

    @property
    def pending(self) -> int:
        return sum(1 for future in self._pending if not future.done())

    async def settle(self) -> List[Any]:
        """
        Wait for all lifetime extensions, including ones added while waiting.

        Raises the first failure after every extension has finished.
        """
        results: List[Any] = []
        index = 0
        while index < len(self._pending):
            batch = self._pending[index:]
            index = len(self._pending)
            outcomes = await asyncio.gather(*batch, return_exceptions=True)
            results.extend(outcomes)

        for outcome in results:
            if isinstance(outcome, BaseException):
                raise outcome
        return results


class InstallEvent(ExtendableEvent):
    type = "install"


class ActivateEvent(ExtendableEvent):
    type = "activate"


class FetchEvent(ExtendableEvent):
    type = "fetch"

    def __init__(self, request: Request, client_id: Optional[str] = None):
        super().__init__()
        self.request = request
        self.client_id = client_id


class PushMessageData:
    """Payload delivered with a push message."""

    def __init__(self, data: Union[bytes, str]):
        self._data = data.encode("utf-8") if isinstance(data, str) else data

    def text(self) -> str:
        """Decode as UTF-8; invalid bytes become U+FFFD."""
        return self._data.decode("utf-8", errors="replace")

    def bytes(self) -> bytes:
        return self._data


class PushEvent(ExtendableEvent):
    type = "push"

    def __init__(self, data: Union[bytes, str, None] = None):
        super().__init__()
        self.data = PushMessageData(data) if data is not None else None


class NotificationClickEvent(ExtendableEvent):
    """
    A click on a displayed notification.

    ``action`` is the id of the clicked action button, or "" when the
    notification body itself was clicked.
    """

    type = "notificationclick"

    def __init__(self, notification, action: str = ""):
        super().__init__()
        self.notification = notification
        self.action = action or ""
