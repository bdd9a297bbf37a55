"""
Request and response snapshots handled by the offline worker.

Both types are immutable: a ``Response`` can be stored in a cache and
returned to the page at the same time without copying its body.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import urljoin, urlsplit

# Request destinations (subset of the Fetch standard's RequestDestination)
DESTINATION_DOCUMENT = "document"
DESTINATION_SCRIPT = "script"
DESTINATION_STYLE = "style"
DESTINATION_IMAGE = "image"
DESTINATION_EMPTY = ""

# Response types
RESPONSE_BASIC = "basic"
RESPONSE_CORS = "cors"
RESPONSE_OPAQUE = "opaque"


def resolve_url(url: str, origin: str) -> str:
    """Resolve ``url`` against ``origin``; absolute URLs are returned as-is."""
    return urljoin(origin.rstrip("/") + "/", url)


def url_origin(url: str) -> str:
    """Return ``scheme://host[:port]`` for an absolute URL."""
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}"


@dataclass(frozen=True)
class Request:
    """
    An intercepted request.

    Attributes:
        url: Absolute request URL
        method: HTTP method (upper case)
        destination: What the request is for; "document" for page navigations
        headers: Request headers
    """

    url: str
    method: str = "GET"
    destination: str = DESTINATION_EMPTY
    headers: Dict[str, str] = field(default_factory=dict, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "method", self.method.upper())

    @classmethod
    def for_path(cls, path: str, origin: str, **kwargs) -> "Request":
        """Build a request for a path relative to the worker origin."""
        return cls(url=resolve_url(path, origin), **kwargs)

    @property
    def cache_key(self) -> str:
        """Identity of the request inside a cache store."""
        return f"{self.method} {self.url}"

    @property
    def is_navigation(self) -> bool:
        return self.destination == DESTINATION_DOCUMENT


@dataclass(frozen=True)
class Response:
    """
    A response snapshot.

    Attributes:
        status: HTTP status code
        body: Response body
        headers: Response headers
        url: Final URL the response came from
        type: "basic" for same-origin, "cors" or "opaque" otherwise
    """

    status: int = 200
    body: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)
    url: str = ""
    type: str = RESPONSE_BASIC

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def is_cacheable(self) -> bool:
        """Only successful same-origin responses are written to the cache."""
        return self.status == 200 and self.type == RESPONSE_BASIC

    def text(self, encoding: str = "utf-8") -> str:
        return self.body.decode(encoding)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage."""
        return {
            "status": self.status,
            "body": self.body,
            "headers": dict(self.headers),
            "url": self.url,
            "type": self.type,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Response":
        """Create from dictionary."""
        return cls(
            status=data["status"],
            body=data.get("body", b""),
            headers=dict(data.get("headers") or {}),
            url=data.get("url", ""),
            type=data.get("type", RESPONSE_BASIC),
        )


def make_response(
    body: Any = b"", status: int = 200, url: str = "", content_type: Optional[str] = None
) -> Response:
    """Convenience constructor accepting ``str`` or ``bytes`` bodies."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    headers = {"Content-Type": content_type} if content_type else {}
    return Response(status=status, body=body, headers=headers, url=url)
