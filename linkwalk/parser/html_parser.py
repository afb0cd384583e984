# === FILE: linkwalk/parser/html_parser.py ===
"""HTML parsing utilities for LinkWalk.

Two small pieces are exposed here:

* :func:`parse_page` turns the raw bytes of a fetch into a
  :class:`~linkwalk.crawler.models.Page` (BeautifulSoup, ``html.parser``).
* :class:`Selector` is the selector capability used by the crawler: a CSS
  query compiled once, then ``select`` / ``attr`` / ``text`` per page.

A malformed query is a programmer error, so it is reported when the
:class:`Selector` is built and never while a traversal is running.
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import List, Optional, Union

import soupsieve
from bs4 import BeautifulSoup
from bs4.element import Tag

from linkwalk.crawler.models import Page
from linkwalk.errors import SelectorError

__all__: Sequence[str] = ("Selector", "parse_page")


def parse_page(url: str, body: Union[bytes, str]) -> Page:
    """Parse *body* fetched from *url* into a :class:`Page`."""
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    return Page(url=url, document=BeautifulSoup(body, "html.parser"))


class Selector:
    """Compiled CSS query."""

    __slots__ = ("query", "_compiled")

    def __init__(self, query: str) -> None:
        if not isinstance(query, str) or not query.strip():
            raise SelectorError(str(query), "empty query")
        try:
            self._compiled = soupsieve.compile(query)
        except soupsieve.SelectorSyntaxError as exc:
            raise SelectorError(query, str(exc)) from exc
        self.query = query

    def __repr__(self) -> str:
        return f"Selector({self.query!r})"

    def select(self, page: Page) -> List[Tag]:
        """Matching elements in document order; empty list when nothing matches."""
        return list(self._compiled.select(page.document))

    @staticmethod
    def attr(element: Tag, name: str) -> Optional[str]:
        value = element.get(name)
        if value is None:
            return None
        # multi-valued attributes (class, rel) come back as lists
        if isinstance(value, list):
            return " ".join(value)
        return str(value)

    @staticmethod
    def text(element: Tag) -> str:
        return element.get_text()

    def texts(self, page: Page, sep: str = "\n") -> str:
        """Text of every match joined by *sep*."""
        return sep.join(self.text(el) for el in self.select(page))
