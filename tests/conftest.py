"""
Pytest configuration and fixtures for cachefirst tests.
"""

import pytest
from django.core.cache import caches

from cachefirst.config import WorkerConfig
from cachefirst.exceptions import NetworkError
from cachefirst.http import Request, Response, resolve_url
from cachefirst.network import Fetcher
from cachefirst.notifications import InMemoryNotifier, InMemoryWindowClients
from cachefirst.storage import InMemoryCacheStorage
from cachefirst.worker import OfflineCacheWorker

ORIGIN = "https://app.example.com"

PRECACHE_URLS = [
    "/",
    "/static/css/main.css",
    "/static/js/main.js",
    "/manifest.json",
    "/icon-192x192.png",
    "/icon-512x512.png",
]


class FakeFetcher(Fetcher):
    """Serves canned responses and records every request it sees."""

    def __init__(self, origin=ORIGIN):
        self.origin = origin
        self.routes = {}
        self.calls = []
        self.offline = False

    def route(self, path, body=b"ok", status=200, type="basic"):
        url = resolve_url(path, self.origin)
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.routes[url] = Response(status=status, body=body, url=url, type=type)
        return self.routes[url]

    def fail(self, path, reason="connection refused"):
        url = resolve_url(path, self.origin)
        self.routes[url] = NetworkError(url, reason)

    async def fetch(self, request):
        self.calls.append(request.url)
        if self.offline:
            raise NetworkError(request.url, "offline")
        outcome = self.routes.get(request.url)
        if outcome is None:
            return Response(status=404, body=b"not found", url=request.url)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def get(path, destination=""):
    """Build a GET request for ``path`` on the test origin."""
    return Request.for_path(path, ORIGIN, destination=destination)


@pytest.fixture
def origin():
    return ORIGIN


@pytest.fixture
def fetcher():
    """Fetcher that serves every precache URL."""
    fake = FakeFetcher()
    for path in PRECACHE_URLS:
        fake.route(path, body=f"content of {path}")
    return fake


@pytest.fixture
def storage():
    return InMemoryCacheStorage()


@pytest.fixture
def worker_config():
    """Fresh configuration built from the test settings."""
    return WorkerConfig()


@pytest.fixture
def notifier():
    return InMemoryNotifier()


@pytest.fixture
def clients():
    return InMemoryWindowClients()


@pytest.fixture
def make_worker(storage, fetcher, notifier, clients, worker_config):
    """Factory for workers sharing the same storage, fetcher and clients."""

    def _make(version="2", **kwargs):
        options = {
            "storage": storage,
            "cache_name": f"testapp-v{version}",
            "fetcher": fetcher,
            "origin": ORIGIN,
            "precache_urls": PRECACHE_URLS,
            "notifier": notifier,
            "clients": clients,
            "config": worker_config,
        }
        options.update(kwargs)
        return OfflineCacheWorker(**options)

    return _make


@pytest.fixture
def worker(make_worker):
    return make_worker()


@pytest.fixture(autouse=True)
def clear_django_cache():
    """Start every test with an empty Django cache."""
    caches["default"].clear()
    yield
    caches["default"].clear()
