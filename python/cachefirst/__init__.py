"""
cachefirst: a cache-first offline worker for web applications.

Serves requests from a versioned cache store, falls back to the network
on a miss (storing successful same-origin responses), answers page
navigations with the cached root document when offline, and turns push
messages into notifications with "open" and "close" actions.

Quick Start::

    from cachefirst import OfflineCacheWorker, WorkerRegistration, Request

    worker = OfflineCacheWorker.from_config()
    registration = WorkerRegistration()
    await registration.register(worker)     # install + activate

    response = await registration.dispatch_fetch(
        Request.for_path("/courses/", worker.origin, destination="document")
    )

Configuration in settings.py::

    INSTALLED_APPS = [..., "cachefirst"]

    CACHEFIRST_CONFIG = {
        "app_name": "university",
        "version": "2025.01.20",      # change on every deploy of cached assets
        "origin": "https://example.com",
        "storage_backend": "django",  # or "memory"
        "notification": {"dir": "rtl", "lang": "ar"},
    }

The browser-side script is served by ``cachefirst.urls`` at ``sw.js``
together with ``manifest.json``.
"""

from .config import WorkerConfig, build_cache_name, get_config
from .events import (
    ActivateEvent,
    ExtendableEvent,
    FetchEvent,
    InstallEvent,
    NotificationClickEvent,
    PushEvent,
)
from .exceptions import (
    CacheStorageError,
    CacheWriteError,
    InstallError,
    NetworkError,
    NotificationError,
    WorkerError,
    WorkerNotActiveError,
)
from .http import Request, Response, make_response
from .network import Fetcher, RequestsFetcher, fetch_with_timeout
from .notifications import (
    ACTION_CLOSE,
    ACTION_OPEN,
    ChannelLayerNotifier,
    ChannelLayerWindowClients,
    InMemoryNotifier,
    InMemoryWindowClients,
    Notification,
    NotificationAction,
    NotificationOptions,
    Notifier,
    WindowClients,
    build_notification,
)
from .registration import WorkerRegistration
from .storage import (
    Cache,
    CacheStorage,
    DjangoCacheStorage,
    InMemoryCacheStorage,
    get_storage_backend,
)
from .worker import OfflineCacheWorker

__version__ = "0.1.0"

__all__ = [
    # Worker
    "OfflineCacheWorker",
    "WorkerRegistration",
    # Config
    "WorkerConfig",
    "build_cache_name",
    "get_config",
    # HTTP
    "Request",
    "Response",
    "make_response",
    "Fetcher",
    "RequestsFetcher",
    "fetch_with_timeout",
    # Storage
    "Cache",
    "CacheStorage",
    "InMemoryCacheStorage",
    "DjangoCacheStorage",
    "get_storage_backend",
    # Events
    "ExtendableEvent",
    "InstallEvent",
    "ActivateEvent",
    "FetchEvent",
    "PushEvent",
    "NotificationClickEvent",
    # Notifications
    "ACTION_OPEN",
    "ACTION_CLOSE",
    "NotificationAction",
    "NotificationOptions",
    "Notification",
    "Notifier",
    "InMemoryNotifier",
    "ChannelLayerNotifier",
    "WindowClients",
    "InMemoryWindowClients",
    "ChannelLayerWindowClients",
    "build_notification",
    # Exceptions
    "WorkerError",
    "InstallError",
    "NetworkError",
    "CacheStorageError",
    "CacheWriteError",
    "NotificationError",
    "WorkerNotActiveError",
]
