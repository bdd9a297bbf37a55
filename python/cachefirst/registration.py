"""
Hosting runtime for offline workers.

``WorkerRegistration`` plays the part of the browser's service worker
registration: it installs and activates new worker versions in order,
keeps the previous version in control when an install fails, and routes
events to the active worker only.
"""

import asyncio
import logging
from typing import Optional, Union

from .events import (
    ActivateEvent,
    FetchEvent,
    InstallEvent,
    NotificationClickEvent,
    PushEvent,
)
from .exceptions import NetworkError, WorkerNotActiveError
from .http import Request, Response
from .network import Fetcher
from .worker import OfflineCacheWorker

logger = logging.getLogger(__name__)

# Worker states
PARSED = "parsed"
INSTALLING = "installing"
INSTALLED = "installed"
ACTIVATING = "activating"
ACTIVATED = "activated"
REDUNDANT = "redundant"


class WorkerRegistration:
    """
    Installs, activates and dispatches events to offline workers.

    Args:
        fetcher: Used for requests while no worker is active
    """

    def __init__(self, fetcher: Optional[Fetcher] = None):
        self.fetcher = fetcher
        self.active: Optional[OfflineCacheWorker] = None
        self._states = {}
        self._update_lock = asyncio.Lock()
        self._inflight = set()

    def state_of(self, worker: OfflineCacheWorker) -> Optional[str]:
        return self._states.get(id(worker))

    def _set_state(self, worker: OfflineCacheWorker, state: str):
        logger.debug("%r -> %s", worker, state)
        self._states[id(worker)] = state

    async def register(self, worker: OfflineCacheWorker) -> OfflineCacheWorker:
        """
        Install and activate ``worker``, replacing the active worker.

        Install finishes before activation starts, and activation finishes
        before the worker receives any event. Concurrent registrations run
        one after another.

        Raises:
            InstallError: Install failed; the previous worker stays active.
            CacheStorageError: Activation could not purge old stores; the
                previous worker stays active.
        """
        async with self._update_lock:
            self._set_state(worker, PARSED)

            self._set_state(worker, INSTALLING)
            install_event = InstallEvent()
            try:
                await worker.install(install_event)
                await install_event.settle()
            except Exception:
                self._set_state(worker, REDUNDANT)
                logger.error(
                    "Install of %r failed; keeping %r active", worker, self.active, exc_info=True
                )
                raise
            self._set_state(worker, INSTALLED)

            self._set_state(worker, ACTIVATING)
            activate_event = ActivateEvent()
            try:
                await worker.activate(activate_event)
                await activate_event.settle()
            except Exception:
                self._set_state(worker, REDUNDANT)
                logger.error(
                    "Activation of %r failed; keeping %r active", worker, self.active, exc_info=True
                )
                raise

            previous, self.active = self.active, worker
            if previous is not None and previous is not worker:
                self._set_state(previous, REDUNDANT)
            self._set_state(worker, ACTIVATED)
            return worker

    async def dispatch_fetch(
        self, request: Request, client_id: Optional[str] = None
    ) -> Optional[Response]:
        """
        Route a request through the active worker.

        Pages are uncontrolled while no worker is active; their requests
        go straight to the network.
        """
        worker = self.active
        if worker is None:
            if self.fetcher is None:
                raise WorkerNotActiveError(FetchEvent.type)
            try:
                return await self.fetcher.fetch(request)
            except NetworkError:
                return None

        event = FetchEvent(request, client_id=client_id)
        response = await worker.fetch(event)
        self._keep_alive(event)
        return response

    def _keep_alive(self, event):
        """Settle ``event`` in the background so the response is not held back."""
        if not event.pending:
            return
        task = asyncio.ensure_future(event.settle())
        self._inflight.add(task)
        task.add_done_callback(self._settled)

    def _settled(self, task: asyncio.Future):
        self._inflight.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Background work failed: %s", task.exception())

    async def drain(self) -> None:
        """Wait until every background lifetime extension has finished."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    async def dispatch_push(self, data: Union[bytes, str, None] = None) -> None:
        worker = self._require_active(PushEvent.type)
        event = PushEvent(data)
        await worker.push(event)
        await event.settle()

    async def dispatch_notification_click(self, notification, action: str = "") -> None:
        worker = self._require_active(NotificationClickEvent.type)
        event = NotificationClickEvent(notification, action)
        await worker.notification_click(event)
        await event.settle()

    def _require_active(self, event_type: str) -> OfflineCacheWorker:
        if self.active is None:
            raise WorkerNotActiveError(event_type)
        return self.active
