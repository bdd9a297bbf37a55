"""
Tests for push notifications and notification clicks.
"""

import pytest

from cachefirst.events import NotificationClickEvent, PushEvent
from cachefirst.exceptions import NotificationError
from cachefirst.notifications import InMemoryNotifier, Notifier


async def push(worker, data=None):
    event = PushEvent(data)
    await worker.push(event)
    await event.settle()


async def click(worker, notification, action=""):
    event = NotificationClickEvent(notification, action)
    await worker.notification_click(event)
    await event.settle()


@pytest.mark.asyncio
class TestPush:
    async def test_empty_push_uses_default_body(self, worker, notifier):
        await push(worker)

        [notification] = notifier.get_notifications()
        assert notification.body == "You have a new notification"

    async def test_empty_text_uses_default_body(self, worker, notifier):
        await push(worker, b"")

        assert notifier.get_notifications()[0].body == "You have a new notification"

    async def test_payload_text_becomes_body(self, worker, notifier):
        await push(worker, "X")

        assert notifier.get_notifications()[0].body == "X"

    async def test_payload_bytes_are_decoded(self, worker, notifier):
        await push(worker, "امتحان جديد".encode("utf-8"))

    async def test_invalid_utf8_payload_is_still_shown(self, worker, notifier):
        await push(worker, b"\xff\xfeexam")

        assert notifier.get_notifications()[0].body == "\ufffd\ufffdexam"

        assert notifier.get_notifications()[0].body == "امتحان جديد"

    async def test_fixed_presentation(self, worker, notifier):
        await push(worker, "New exam")

        options = notifier.get_notifications()[0].options
        assert options.icon == "/icon-192x192.png"
        assert options.badge == "/icon-192x192.png"
        assert options.dir == "ltr"
        assert options.lang == "en"
        assert options.tag == "cachefirst-notification"

    async def test_open_and_close_actions(self, worker, notifier):
        await push(worker, "New exam")

        actions = notifier.get_notifications()[0].options.actions
        assert [a.action for a in actions] == ["open", "close"]
        assert all(a.title for a in actions)
        assert all(a.icon for a in actions)

    async def test_repeated_pushes_collapse_by_tag(self, worker, notifier):
        await push(worker, "first")
        await push(worker, "second")

        visible = notifier.get_notifications()
        assert len(visible) == 1
        assert visible[0].body == "second"
        assert len(notifier.shown) == 2

    async def test_rtl_configuration(self, worker, notifier, worker_config):
        worker_config.update({"notification": {"dir": "rtl", "lang": "ar"}})

        await push(worker, "مرحبا")

        options = notifier.get_notifications()[0].options
        assert options.dir == "rtl"
        assert options.lang == "ar"

    async def test_display_failure_is_raised(self, make_worker):
        class BrokenNotifier(InMemoryNotifier):
            async def show_notification(self, title, options):
                raise PermissionError("notifications blocked")

        worker = make_worker(notifier=BrokenNotifier())

        with pytest.raises(NotificationError, match="notifications blocked"):
            await push(worker, "hello")


@pytest.mark.asyncio
class TestNotificationClick:
    async def _shown(self, worker, notifier):
        await push(worker, "New lesson")
        return notifier.get_notifications()[0]

    async def test_open_closes_and_opens_root(self, worker, notifier, clients):
        notification = await self._shown(worker, notifier)

        await click(worker, notification, "open")

        assert notification.closed
        assert notifier.get_notifications() == []
        assert clients.navigations == ["/"]

    async def test_close_action_opens_nothing(self, worker, notifier, clients):
        notification = await self._shown(worker, notifier)

        await click(worker, notification, "close")

        assert notification.closed
        assert clients.navigations == []

    async def test_body_click_opens_nothing(self, worker, notifier, clients):
        notification = await self._shown(worker, notifier)

        await click(worker, notification)

        assert notification.closed
        assert clients.navigations == []

    async def test_open_focuses_existing_window(self, worker, notifier, clients):
        existing = await clients.open_window("/")
        clients.navigations.clear()
        notification = await self._shown(worker, notifier)

        await click(worker, notification, "open")

        assert existing.focused
        assert clients.navigations == ["/"]
        assert len(clients.windows) == 1

    async def test_open_ignores_windows_elsewhere(self, worker, notifier, clients):
        await clients.open_window("/courses/")
        clients.navigations.clear()
        notification = await self._shown(worker, notifier)

        await click(worker, notification, "open")

        assert clients.navigations == ["/"]
        assert len(clients.windows) == 2


def test_notifier_is_abstract():
    with pytest.raises(TypeError):
        Notifier()
