"""
Custom exceptions for the cachefirst offline worker.

Each exception carries a ``hint`` with an actionable suggestion, following
the same pattern used for LiveView errors.
"""

from typing import Optional


class WorkerError(Exception):
    """Base exception for offline worker errors."""

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.hint = hint


class InstallError(WorkerError):
    """Raised when the precache manifest could not be stored during install."""

    def __init__(self, cache_name: str, url: str, reason: str):
        message = (
            f"Install of cache '{cache_name}' failed while precaching {url}: {reason}.\n"
            f"    The previously active worker stays in control."
        )
        hint = (
            "\n    Check that every entry in CACHEFIRST_CONFIG['precache_urls']\n"
            "    is served with HTTP 200 from the worker origin."
        )
        super().__init__(message, hint)
        self.cache_name = cache_name
        self.url = url


class NetworkError(WorkerError):
    """Raised when a request could not be completed over the network."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Network request to {url} failed: {reason}")
        self.url = url


class CacheStorageError(WorkerError):
    """Raised when the cache backend fails."""


class CacheWriteError(CacheStorageError):
    """Raised when a response could not be written to a cache store."""

    def __init__(self, cache_name: str, key: str, reason: str):
        message = f"Could not store '{key}' in cache '{cache_name}': {reason}"
        hint = (
            "\n    The cache backend may be full or unavailable.\n"
            "    Responses are still served from the network."
        )
        super().__init__(message, hint)
        self.cache_name = cache_name
        self.key = key


class NotificationError(WorkerError):
    """Raised when a push notification could not be displayed."""

    def __init__(self, title: str, reason: str):
        super().__init__(f"Could not display notification '{title}': {reason}")
        self.title = title


class WorkerNotActiveError(WorkerError):
    """Raised when an event is dispatched while no worker is active."""

    def __init__(self, event_type: str):
        message = f"Cannot dispatch '{event_type}': no worker is active."
        hint = (
            "\n    Register a worker first:\n"
            "        registration = WorkerRegistration()\n"
            "        await registration.register(worker)"
        )
        super().__init__(message, hint)


__all__ = [
    "WorkerError",
    "InstallError",
    "NetworkError",
    "CacheStorageError",
    "CacheWriteError",
    "NotificationError",
    "WorkerNotActiveError",
]
