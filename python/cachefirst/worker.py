"""
The offline cache worker.

Implements a cache-first request strategy with a versioned cache store:

- ``install`` precaches a fixed list of resources into the current store
- ``activate`` deletes every store left behind by other versions
- ``fetch`` answers from the store, falls back to the network and stores
  successful same-origin responses, and serves the cached root document
  to page navigations when the network is unreachable
- ``push`` / ``notification_click`` show notifications with "open" and
  "close" actions

Usage::

    from cachefirst import OfflineCacheWorker, WorkerRegistration

    worker = OfflineCacheWorker.from_config()
    registration = WorkerRegistration()
    await registration.register(worker)

    response = await registration.dispatch_fetch(Request.for_path("/", origin))
"""

import logging
from typing import List, Optional, Sequence

from .config import WorkerConfig, get_config
from .events import (
    ActivateEvent,
    FetchEvent,
    InstallEvent,
    NotificationClickEvent,
    PushEvent,
)
from .exceptions import CacheStorageError, InstallError, NetworkError, NotificationError
from .http import Request, Response
from .network import Fetcher, RequestsFetcher, fetch_with_timeout
from .notifications import (
    ACTION_OPEN,
    InMemoryNotifier,
    InMemoryWindowClients,
    Notifier,
    WindowClients,
    build_notification,
)
from .storage import CacheStorage, get_storage_backend

logger = logging.getLogger(__name__)


class OfflineCacheWorker:
    """
    Handles lifecycle, fetch and push events against one named cache store.

    The store is identified explicitly by ``cache_name``; the worker never
    touches a store implicitly, so independent workers (and tests) can
    share or isolate a ``CacheStorage`` as they see fit.

    Args:
        storage: Registry holding all cache stores
        cache_name: Name of the store owned by this worker version
        fetcher: Network access
        origin: Origin relative paths are resolved against
        precache_urls: Paths stored at install time
        notifier: Displays push notifications
        clients: Opens or focuses windows on notification clicks
        offline_fallback: Path served to navigations when offline
        network_timeout: Seconds before a fetch counts as failed (None = no limit)
        config: Configuration used for notification presentation
    """

    def __init__(
        self,
        storage: CacheStorage,
        cache_name: str,
        fetcher: Fetcher,
        origin: str,
        precache_urls: Sequence[str] = (),
        notifier: Optional[Notifier] = None,
        clients: Optional[WindowClients] = None,
        offline_fallback: str = "/",
        network_timeout: Optional[float] = None,
        config: Optional[WorkerConfig] = None,
    ):
        self.storage = storage
        self.cache_name = cache_name
        self.fetcher = fetcher
        self.origin = origin
        self.precache_urls: List[str] = list(precache_urls)
        self.notifier = notifier or InMemoryNotifier()
        self.clients = clients or InMemoryWindowClients()
        self.offline_fallback = offline_fallback
        self.network_timeout = network_timeout
        self.config = config or get_config()

    @classmethod
    def from_config(
        cls,
        config: Optional[WorkerConfig] = None,
        storage: Optional[CacheStorage] = None,
        fetcher: Optional[Fetcher] = None,
        **kwargs,
    ) -> "OfflineCacheWorker":
        """Build a worker from configuration, filling in default collaborators."""
        config = config or get_config()
        origin = config.get("origin")
        timeout = config.get("network_timeout")
        return cls(
            storage=storage or get_storage_backend(),
            cache_name=config.cache_name,
            fetcher=fetcher or RequestsFetcher(origin, timeout=timeout),
            origin=origin,
            precache_urls=config.get("precache_urls", []),
            offline_fallback=config.get("offline_fallback", "/"),
            network_timeout=timeout,
            config=config,
            **kwargs,
        )

    def __repr__(self):
        return f"<OfflineCacheWorker {self.cache_name}>"

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def install(self, event: Optional[InstallEvent] = None) -> None:
        """
        Open the current store and precache every manifest path.

        Raises:
            InstallError: Any manifest path could not be fetched or stored.
                The install must not complete in that case.
        """
        logger.info("Installing %s (%d precache URLs)", self.cache_name, len(self.precache_urls))
        requests = [Request.for_path(path, self.origin) for path in self.precache_urls]

        try:
            cache = await self.storage.open(self.cache_name)
            await cache.add_all(requests, self.fetcher)
        except (NetworkError, CacheStorageError) as e:
            logger.error("Install of %s failed: %s", self.cache_name, e)
            url = getattr(e, "url", None) or getattr(e, "key", "")
            raise InstallError(self.cache_name, url, e.message) from e

        logger.info("Installed %s", self.cache_name)

    async def activate(self, event: Optional[ActivateEvent] = None) -> List[str]:
        """
        Delete every store whose name differs from this worker's store.

        Returns:
            Names of the deleted stores
        """
        deleted = []
        for name in await self.storage.keys():
            if name != self.cache_name:
                logger.info("Deleting old cache: %s", name)
                await self.storage.delete(name)
                deleted.append(name)

        logger.info("Activated %s", self.cache_name)
        return deleted

    # ------------------------------------------------------------------
    # Fetch
    # ------------------------------------------------------------------

    async def fetch(self, event: FetchEvent) -> Optional[Response]:
        """
        Answer a request, cache first.

        Returns:
            The cached or network response, the cached offline fallback for
            navigations when the network fails, or None when there is
            nothing to serve.
        """
        request = event.request
        cached = await self._lookup(request)
        if cached is not None:
            logger.debug("Cache hit: %s", request.url)
            return cached

        logger.debug("Cache miss, fetching: %s", request.url)
        try:
            response = await fetch_with_timeout(self.fetcher, request, self.network_timeout)
        except NetworkError as e:
            return await self._offline_response(request, e)

        if request.method == "GET" and response.is_cacheable:
            event.wait_until(self._store(request, response))

        return response

    async def _store(self, request: Request, response: Response) -> None:
        """Write a network response to the current store; failures are only logged."""
        try:
            cache = await self.storage.open(self.cache_name)
            await cache.put(request, response)
        except CacheStorageError as e:
            logger.warning("Could not cache %s: %s", request.url, e, exc_info=True)

    async def _offline_response(self, request: Request, error: NetworkError) -> Optional[Response]:
        if not request.is_navigation:
            logger.debug("Network failed for %s: %s", request.url, error)
            return None

        logger.info("Network failed for %s, serving offline fallback", request.url)
        return await self._lookup(Request.for_path(self.offline_fallback, self.origin))

    async def _lookup(self, request: Request) -> Optional[Response]:
        """Match ``request`` in the current store; a failing store counts as a miss."""
        try:
            cache = await self.storage.open(self.cache_name)
            return await cache.match(request)
        except CacheStorageError as e:
            logger.warning("Cache lookup for %s failed: %s", request.url, e, exc_info=True)
            return None

    # ------------------------------------------------------------------
    # Push notifications
    # ------------------------------------------------------------------

    async def push(self, event: PushEvent) -> None:
        """
        Show a notification for a push message.

        The event stays alive until the notification is displayed.

        Raises:
            NotificationError: The notification could not be displayed.
        """
        text = event.data.text() if event.data is not None else None
        title, options = build_notification(text, self.config)
        event.wait_until(self._show(title, options))

    async def _show(self, title, options):
        try:
            return await self.notifier.show_notification(title, options)
        except Exception as e:
            logger.error("Error displaying notification %r: %s", title, e, exc_info=True)
            raise NotificationError(title, str(e)) from e

    async def notification_click(self, event: NotificationClickEvent) -> None:
        """
        Close the clicked notification; open the app when "open" was chosen.
        """
        await event.notification.close()

        if event.action == ACTION_OPEN:
            event.wait_until(self._open_window("/"))

    async def _open_window(self, path: str):
        url = Request.for_path(path, self.origin).url
        for client in await self.clients.match_all():
            if client.url in (path, url):
                return await client.focus()
        return await self.clients.open_window(path)
