"""
Network access for the offline worker.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

import requests
from asgiref.sync import sync_to_async

from .exceptions import NetworkError
from .http import RESPONSE_BASIC, RESPONSE_CORS, Request, Response, url_origin

logger = logging.getLogger(__name__)


class Fetcher(ABC):
    """
    Performs network requests on behalf of the worker.

    Implementations raise ``NetworkError`` when no response could be
    obtained (offline, DNS failure, refused connection). HTTP error
    statuses are ordinary responses, not failures.
    """

    @abstractmethod
    async def fetch(self, request: Request) -> Response:
        pass


class RequestsFetcher(Fetcher):
    """
    Fetcher backed by a ``requests.Session``.

    The blocking call runs in a worker thread via ``sync_to_async``.
    Responses whose final URL shares ``origin`` are typed "basic", all
    others "cors".
    """

    def __init__(
        self,
        origin: str,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        self.origin = url_origin(origin)
        self.session = session or requests.Session()
        self.timeout = timeout

    def _fetch_sync(self, request: Request) -> Response:
        try:
            resp = self.session.request(
                request.method,
                request.url,
                headers=request.headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise NetworkError(request.url, str(exc)) from exc

        final_url = resp.url or request.url
        response_type = RESPONSE_BASIC if url_origin(final_url) == self.origin else RESPONSE_CORS
        return Response(
            status=resp.status_code,
            body=resp.content,
            headers=dict(resp.headers),
            url=final_url,
            type=response_type,
        )

    async def fetch(self, request: Request) -> Response:
        return await sync_to_async(self._fetch_sync, thread_sensitive=False)(request)


async def fetch_with_timeout(
    fetcher: Fetcher, request: Request, timeout: Optional[float] = None
) -> Response:
    """
    Fetch ``request``, turning an expired ``timeout`` into ``NetworkError``.

    With ``timeout=None`` the fetch may wait indefinitely.
    """
    if timeout is None:
        return await fetcher.fetch(request)
    try:
        return await asyncio.wait_for(fetcher.fetch(request), timeout)
    except asyncio.TimeoutError as exc:
        logger.debug("Network request to %s timed out after %ss", request.url, timeout)
        raise NetworkError(request.url, f"timed out after {timeout}s") from exc
