"""
Cache storage backends for the offline worker.

A ``CacheStorage`` holds any number of named ``Cache`` stores; each store
maps a request identity to a response snapshot. All operations are
coroutines because real backends (Django's cache framework, the browser
Cache API) are asynchronous.
"""

import asyncio
import hashlib
import logging
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional

from .exceptions import CacheStorageError, CacheWriteError
from .http import Request, Response

if TYPE_CHECKING:
    from .network import Fetcher

logger = logging.getLogger(__name__)


class Cache(ABC):
    """
    Abstract base class for a single named cache store.

    Only GET requests are matched or stored, as with the web Cache API.
    A second ``put`` for the same request replaces the first entry.
    """

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    async def _get(self, key: str) -> Optional[Response]:
        pass

    @abstractmethod
    async def _set(self, key: str, response: Response) -> None:
        pass

    @abstractmethod
    async def _remove(self, key: str) -> bool:
        pass

    @abstractmethod
    async def keys(self) -> List[str]:
        """Get identities of all stored requests, oldest first."""
        pass

    async def match(self, request: Request) -> Optional[Response]:
        """Return the stored response for ``request``, or None."""
        if request.method != "GET":
            return None
        return await self._get(request.cache_key)

    async def put(self, request: Request, response: Response) -> None:
        """Store ``response`` under ``request``."""
        if request.method != "GET":
            raise CacheWriteError(self.name, request.cache_key, "only GET requests can be cached")
        await self._set(request.cache_key, response)

    async def delete(self, request: Request) -> bool:
        """Remove the entry for ``request``; returns True if one existed."""
        return await self._remove(request.cache_key)

    async def add_all(self, requests: Iterable[Request], fetcher: "Fetcher") -> None:
        """
        Fetch every request and store all responses.

        Nothing is stored unless every fetch succeeds with a 2xx status.

        Raises:
            NetworkError: A request could not be fetched.
            CacheWriteError: A response was not OK, or could not be stored.
        """
        requests = list(requests)
        responses = await asyncio.gather(*(fetcher.fetch(request) for request in requests))

        for request, response in zip(requests, responses):
            if not response.ok:
                raise CacheWriteError(
                    self.name, request.cache_key, f"bad response status {response.status}"
                )

        for request, response in zip(requests, responses):
            await self.put(request, response)


class CacheStorage(ABC):
    """
    Abstract base class for the registry of named cache stores.
    """

    @abstractmethod
    async def open(self, name: str) -> Cache:
        """Open the named cache, creating it if missing."""
        pass

    @abstractmethod
    async def has(self, name: str) -> bool:
        pass

    @abstractmethod
    async def delete(self, name: str) -> bool:
        """Delete the named cache with all entries; returns True if it existed."""
        pass

    @abstractmethod
    async def keys(self) -> List[str]:
        """Get names of all caches, in creation order."""
        pass

    async def match(self, request: Request) -> Optional[Response]:
        """Look ``request`` up in every cache, in creation order."""
        for name in await self.keys():
            cache = await self.open(name)
            response = await cache.match(request)
            if response is not None:
                return response
        return None


class InMemoryCache(Cache):
    """Cache store held in process memory."""

    def __init__(self, name: str):
        super().__init__(name)
        self._entries: "OrderedDict[str, Response]" = OrderedDict()

    async def _get(self, key: str) -> Optional[Response]:
        return self._entries.get(key)

    async def _set(self, key: str, response: Response) -> None:
        self._entries[key] = response

    async def _remove(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    async def keys(self) -> List[str]:
        return list(self._entries.keys())


class InMemoryCacheStorage(CacheStorage):
    """
    In-memory cache storage.

    Each instance is fully isolated, which makes it the backend of choice
    for tests and single-process hosts.
    """

    def __init__(self):
        self._caches: Dict[str, InMemoryCache] = {}

    async def open(self, name: str) -> Cache:
        if name not in self._caches:
            logger.debug("Creating cache %s", name)
            self._caches[name] = InMemoryCache(name)
        return self._caches[name]

    async def has(self, name: str) -> bool:
        return name in self._caches

    async def delete(self, name: str) -> bool:
        return self._caches.pop(name, None) is not None

    async def keys(self) -> List[str]:
        return list(self._caches.keys())


def _digest(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


class _KeyRegistry:
    """
    Set of names kept in a Django cache, safe for concurrent writers.

    Every member owns a marker key created with ``add`` (only one writer
    wins) that records the slot number handed out by ``incr``. Slots map
    back to names so members can be listed in creation order; a slot only
    counts while its name's marker still points at it.
    """

    def __init__(self, storage: "DjangoCacheStorage", namespace: str):
        self._storage = storage
        self._namespace = namespace
        self._counter_key = f"{namespace}:slots"

    @property
    def backend(self):
        return self._storage.backend

    def _marker_key(self, name: str) -> str:
        return f"{self._namespace}:member:{_digest(name)}"

    def _slot_key(self, slot: int) -> str:
        return f"{self._namespace}:slot:{slot}"

    async def add(self, name: str) -> bool:
        """Add ``name``; returns False if it was already a member."""
        marker = self._marker_key(name)
        if not await self.backend.aadd(marker, 0, timeout=None):
            return False
        await self.backend.aadd(self._counter_key, 0, timeout=None)
        slot = await self.backend.aincr(self._counter_key)
        await self.backend.aset(self._slot_key(slot), name, timeout=None)
        await self.backend.aset(marker, slot, timeout=None)
        return True

    async def contains(self, name: str) -> bool:
        return await self.backend.aget(self._marker_key(name)) is not None

    async def remove(self, name: str) -> bool:
        """Remove ``name``; returns True if it was a member."""
        return bool(await self.backend.adelete(self._marker_key(name)))

    async def members(self) -> List[str]:
        count = await self.backend.aget(self._counter_key, 0)
        slot_keys = [self._slot_key(slot) for slot in range(1, count + 1)]
        names = await self.backend.aget_many(slot_keys)
        markers = await self.backend.aget_many(
            [self._marker_key(name) for name in set(names.values())]
        )

        members = []
        for slot, slot_key in enumerate(slot_keys, start=1):
            name = names.get(slot_key)
            if name is not None and markers.get(self._marker_key(name)) == slot:
                members.append(name)
        return members

    async def clear(self) -> None:
        count = await self.backend.aget(self._counter_key, 0)
        slot_keys = [self._slot_key(slot) for slot in range(1, count + 1)]
        names = await self.backend.aget_many(slot_keys)
        await self.backend.adelete_many(
            [self._marker_key(name) for name in set(names.values())]
            + slot_keys
            + [self._counter_key]
        )


class DjangoCache(Cache):
    """Cache store persisted through a Django cache backend."""

    def __init__(self, name: str, storage: "DjangoCacheStorage"):
        super().__init__(name)
        self._storage = storage
        self._namespace = f"{storage.key_prefix}:cache:{_digest(name)}"
        self._index = _KeyRegistry(storage, f"{self._namespace}:keys")

    def _entry_key(self, key: str) -> str:
        return f"{self._namespace}:entry:{_digest(key)}"

    async def _get(self, key: str) -> Optional[Response]:
        try:
            data = await self._storage.backend.aget(self._entry_key(key))
        except Exception as e:
            raise CacheStorageError(f"Cache read from '{self.name}' failed: {e}") from e
        return Response.from_dict(data) if data else None

    async def _set(self, key: str, response: Response) -> None:
        try:
            await self._storage.backend.aset(
                self._entry_key(key), response.to_dict(), timeout=None
            )
            await self._index.add(key)
        except Exception as e:
            raise CacheWriteError(self.name, key, str(e)) from e

    async def _remove(self, key: str) -> bool:
        try:
            removed = await self._index.remove(key)
            await self._storage.backend.adelete(self._entry_key(key))
        except Exception as e:
            raise CacheStorageError(f"Cache delete from '{self.name}' failed: {e}") from e
        return removed

    async def keys(self) -> List[str]:
        try:
            return await self._index.members()
        except Exception as e:
            raise CacheStorageError(f"Listing cache '{self.name}' failed: {e}") from e

    async def _drop(self) -> None:
        """Remove every entry and the index of this store."""
        keys = await self._index.members()
        await self._storage.backend.adelete_many([self._entry_key(key) for key in keys])
        await self._index.clear()


class DjangoCacheStorage(CacheStorage):
    """
    Cache storage on top of Django's cache framework.

    Several processes may share one storage prefix. Store names and
    request identities are tracked with atomic ``add``/``incr`` markers so
    concurrent writers never lose each other's updates; entries never
    expire on their own.
    """

    def __init__(self, alias: str = "default", key_prefix: str = "cachefirst"):
        self.alias = alias
        self.key_prefix = key_prefix
        self._names = _KeyRegistry(self, f"{key_prefix}:caches")

    @property
    def backend(self):
        from django.core.cache import caches

        return caches[self.alias]

    async def open(self, name: str) -> Cache:
        try:
            if await self._names.add(name):
                logger.debug("Creating cache %s", name)
        except Exception as e:
            raise CacheStorageError(f"Opening cache '{name}' failed: {e}") from e
        return DjangoCache(name, self)

    async def has(self, name: str) -> bool:
        try:
            return await self._names.contains(name)
        except Exception as e:
            raise CacheStorageError(f"Looking up cache '{name}' failed: {e}") from e

    async def delete(self, name: str) -> bool:
        try:
            if not await self._names.remove(name):
                return False
            await DjangoCache(name, self)._drop()
        except Exception as e:
            raise CacheStorageError(f"Deleting cache '{name}' failed: {e}") from e
        return True

    async def keys(self) -> List[str]:
        try:
            return await self._names.members()
        except Exception as e:
            raise CacheStorageError(f"Listing caches failed: {e}") from e




def get_storage_backend(backend_type: Optional[str] = None) -> CacheStorage:
    """
    Get cache storage instance.

    Args:
        backend_type: Backend type ('memory' or 'django'); read from
            configuration when omitted

    Returns:
        CacheStorage instance
    """
    from .config import get_config

    config = get_config()
    if not backend_type:
        backend_type = config.get("storage_backend", "memory")

    backend_type = backend_type.lower()

    if backend_type == "memory":
        return InMemoryCacheStorage()
    elif backend_type == "django":
        return DjangoCacheStorage(alias=config.get("cache_alias", "default"))
    else:
        logger.warning("Unknown storage backend: %s, using in-memory storage", backend_type)
        return InMemoryCacheStorage()
