# File: tests/conftest.py
from __future__ import annotations

from typing import Dict, List, Union

import pytest

from linkwalk.crawler.models import FetchResult
from linkwalk.errors import TransportFailure
from linkwalk.report.sinks import MemorySink


def links_page(*hrefs: str, title: str = "") -> str:
    """Small HTML document with one <a> per href."""
    anchors = "".join(f'<a href="{h}">{h}</a>' for h in hrefs)
    head = f"<head><title>{title}</title></head>" if title else ""
    return f"<html>{head}<body>{anchors}</body></html>"


class FakeFetcher:
    """
    In-memory fetcher: ``pages`` maps URL -> HTML or an HTTP status (int)
    to fail with. Unknown URLs fail with 404. Every call is recorded.
    """

    def __init__(self, pages: Dict[str, Union[str, int]]) -> None:
        self.pages = pages
        self.calls: List[str] = []

    async def fetch(self, url: str) -> FetchResult:
        self.calls.append(url)
        page = self.pages.get(url, 404)
        if isinstance(page, int):
            raise TransportFailure(url, page)
        return FetchResult(url=url, status=200, body=page.encode("utf-8"), content_type="text/html")


@pytest.fixture()
def sink() -> MemorySink:
    return MemorySink()


@pytest.fixture()
def site_graph() -> Dict[str, Union[str, int]]:
    """
    a -> b, c (internal); b -> http://other.test/p (external) and back to a;
    c -> a, b and a fragment link to itself.
    """
    return {
        "http://site.test/a": links_page("/b", "http://site.test/c"),
        "http://site.test/b": links_page("http://other.test/p", "/a"),
        "http://site.test/c": links_page("a", "/b", "#top", "mailto:me@site.test"),
    }
