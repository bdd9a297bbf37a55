"""
Tests for RequestsFetcher and fetch_with_timeout.
"""

import asyncio
from unittest.mock import MagicMock

import pytest
import requests

from cachefirst.exceptions import NetworkError
from cachefirst.http import Request, Response
from cachefirst.network import Fetcher, RequestsFetcher, fetch_with_timeout


def _session(status=200, content=b"body", url="https://app.example.com/", headers=None):
    resp = MagicMock()
    resp.status_code = status
    resp.content = content
    resp.url = url
    resp.headers = headers or {"Content-Type": "text/html"}
    session = MagicMock(spec=requests.Session)
    session.request.return_value = resp
    return session


@pytest.mark.asyncio
class TestRequestsFetcher:
    async def test_same_origin_is_basic(self):
        fetcher = RequestsFetcher("https://app.example.com", session=_session())

        response = await fetcher.fetch(Request("https://app.example.com/"))

        assert response.status == 200
        assert response.body == b"body"
        assert response.type == "basic"
        assert response.headers == {"Content-Type": "text/html"}
        assert response.is_cacheable

    async def test_cross_origin_is_cors(self):
        session = _session(url="https://cdn.example.net/lib.js")
        fetcher = RequestsFetcher("https://app.example.com", session=session)

        response = await fetcher.fetch(Request("https://cdn.example.net/lib.js"))

        assert response.type == "cors"
        assert not response.is_cacheable

    async def test_redirect_to_other_origin_is_cors(self):
        session = _session(url="https://login.example.org/")
        fetcher = RequestsFetcher("https://app.example.com/", session=session)

        response = await fetcher.fetch(Request("https://app.example.com/profile"))

        assert response.type == "cors"

    async def test_passes_method_headers_and_timeout(self):
        session = _session()
        fetcher = RequestsFetcher("https://app.example.com", session=session, timeout=5)

        await fetcher.fetch(
            Request("https://app.example.com/api", method="post", headers={"X-A": "1"})
        )

        session.request.assert_called_once_with(
            "POST", "https://app.example.com/api", headers={"X-A": "1"}, timeout=5
        )

    async def test_http_error_status_is_a_response(self):
        fetcher = RequestsFetcher("https://app.example.com", session=_session(status=503))

        response = await fetcher.fetch(Request("https://app.example.com/"))

        assert response.status == 503
        assert not response.is_cacheable

    async def test_connection_error_becomes_network_error(self):
        session = MagicMock(spec=requests.Session)
        session.request.side_effect = requests.ConnectionError("refused")
        fetcher = RequestsFetcher("https://app.example.com", session=session)

        with pytest.raises(NetworkError) as exc_info:
            await fetcher.fetch(Request("https://app.example.com/"))

        assert exc_info.value.url == "https://app.example.com/"
        assert isinstance(exc_info.value.__cause__, requests.ConnectionError)


class SlowFetcher(Fetcher):
    def __init__(self, delay):
        self.delay = delay

    async def fetch(self, request):
        await asyncio.sleep(self.delay)
        return Response(body=b"late", url=request.url)


@pytest.mark.asyncio
class TestFetchWithTimeout:
    async def test_no_timeout_waits(self):
        response = await fetch_with_timeout(SlowFetcher(0.01), Request("https://a.test/"))

        assert response.body == b"late"

    async def test_within_timeout(self):
        response = await fetch_with_timeout(SlowFetcher(0), Request("https://a.test/"), 1)

        assert response.body == b"late"

    async def test_expired_timeout_is_network_error(self):
        with pytest.raises(NetworkError, match="timed out"):
            await fetch_with_timeout(SlowFetcher(10), Request("https://a.test/"), 0.01)
