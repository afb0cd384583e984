# linkwalk/crawler/link_extractor.py
"""
Link extraction for LinkWalk.

Returns raw href strings only; resolution and origin checks belong to
:mod:`linkwalk.crawler.classifier`.
"""
from __future__ import annotations

from typing import List

from linkwalk.crawler.models import Page
from linkwalk.parser.html_parser import Selector

DEFAULT_LINK_QUERY = "a[href]"


class LinkExtractor:
    """Extract href values of elements matching a CSS query."""

    def __init__(self, query: str = DEFAULT_LINK_QUERY, attribute: str = "href") -> None:
        self.selector = Selector(query)
        self.attribute = attribute

    @property
    def query(self) -> str:
        return self.selector.query

    def extract(self, page: Page) -> List[str]:
        """
        Raw hrefs in document order.

        Elements without the attribute are skipped; no match gives ``[]``.
        """
        links: List[str] = []
        for tag in self.selector.select(page):
            href = self.selector.attr(tag, self.attribute)
            if href is None:
                continue
            links.append(href.strip())
        return links


def extract_links(page: Page, query: str = DEFAULT_LINK_QUERY) -> List[str]:
    """One-shot helper around :class:`LinkExtractor`."""
    return LinkExtractor(query).extract(page)
