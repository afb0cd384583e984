"""Exception hierarchy shared by the crawler components."""
from __future__ import annotations

from typing import Optional

__all__ = (
    "LinkWalkError",
    "MalformedURL",
    "TransportFailure",
    "SeedFetchError",
    "SelectorError",
)


class LinkWalkError(Exception):
    """Base class for every error raised by linkwalk."""


class MalformedURL(LinkWalkError, ValueError):
    """An href could not be resolved into an absolute http(s) URL."""

    def __init__(self, href: str, reason: str = "") -> None:
        self.href = href
        self.reason = reason
        msg = f"malformed URL {href!r}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class TransportFailure(LinkWalkError):
    """Fetch failed at the transport level or returned a non-success status."""

    def __init__(self, url: str, status: Optional[int] = None, reason: str = "") -> None:
        self.url = url
        self.status = status
        self.reason = reason
        detail = f"HTTP {status}" if status is not None else (reason or "transport error")
        super().__init__(f"fetch {url} failed: {detail}")


class SeedFetchError(TransportFailure):
    """The seed page could not be fetched; nothing to traverse."""

    @classmethod
    def wrap(cls, exc: TransportFailure) -> "SeedFetchError":
        return cls(exc.url, exc.status, exc.reason)


class SelectorError(LinkWalkError, ValueError):
    """A CSS query string failed to compile."""

    def __init__(self, query: str, reason: str = "") -> None:
        self.query = query
        super().__init__(f"invalid selector {query!r}: {reason}" if reason else f"invalid selector {query!r}")
