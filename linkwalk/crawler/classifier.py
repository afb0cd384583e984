# linkwalk/crawler/classifier.py
"""
URL resolution, normalization and internal/external classification.
"""
from __future__ import annotations

from typing import Dict, Final
from urllib.parse import urljoin, urlsplit, urlunsplit

from linkwalk.crawler.models import Classification, LinkRecord, Origin
from linkwalk.errors import MalformedURL
from linkwalk.logger import logger

__all__ = ("classify", "normalize_url", "origin_of", "resolve")

_DEFAULT_PORTS: Final[Dict[str, int]] = {"http": 80, "https": 443}


def _split(url: str):
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError as exc:
        raise MalformedURL(url, str(exc)) from exc
    scheme = parts.scheme.lower()
    if scheme not in _DEFAULT_PORTS:
        raise MalformedURL(url, f"unsupported scheme {parts.scheme!r}" if scheme else "not absolute")
    if not parts.hostname:
        raise MalformedURL(url, "missing host")
    return parts, scheme, port


def normalize_url(url: str) -> str:
    """
    Canonical form of an absolute URL.

    Lower-cases scheme and host, drops the default port and the fragment,
    keeps userinfo, path and query verbatim. An empty path becomes ``/``.
    """
    parts, scheme, port = _split(url.strip())
    host = parts.hostname or ""
    if ":" in host:
        host = f"[{host}]"
    netloc = host
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        netloc = f"{host}:{port}"
    if "@" in parts.netloc:
        userinfo = parts.netloc.rpartition("@")[0]
        netloc = f"{userinfo}@{netloc}"
    return urlunsplit((scheme, netloc, parts.path or "/", parts.query, ""))


def origin_of(url: str) -> Origin:
    """Origin (scheme, host, port) of an absolute URL."""
    parts, scheme, port = _split(url)
    return Origin(scheme, (parts.hostname or "").lower(), port if port is not None else _DEFAULT_PORTS[scheme])


def resolve(href: str, base_url: str) -> str:
    """Resolve *href* against *base_url* and normalize the result."""
    if href is None:
        raise MalformedURL("", "no href")
    raw = href.strip()
    try:
        absolute = urljoin(base_url, raw)
    except ValueError as exc:
        raise MalformedURL(raw, str(exc)) from exc
    return normalize_url(absolute)


def classify(href: str, base_url: str, reference: Origin) -> LinkRecord:
    """
    Resolve *href* against *base_url* and classify it against *reference*.

    *reference* is the crawl's anchor origin, which is not necessarily the
    origin of *base_url*. Raises :class:`~linkwalk.errors.MalformedURL`
    when the link has to be skipped.
    """
    url = resolve(href, base_url)
    origin = origin_of(url)
    kind = Classification.INTERNAL if origin == reference else Classification.EXTERNAL
    logger.debug("Classified %s -> %s (%s)", href, url, kind.value)
    return LinkRecord(url=url, origin=origin, classification=kind)
