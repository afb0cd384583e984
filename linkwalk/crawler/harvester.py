# linkwalk/crawler/harvester.py
"""
Targeted content harvest: follow the links of a start page that match a
site profile's pattern and pull title/body text from each target once.
"""
from __future__ import annotations

import asyncio
from typing import List, Optional

from linkwalk.config import SiteProfile
from linkwalk.crawler.classifier import normalize_url, resolve
from linkwalk.crawler.fetcher import Fetcher
from linkwalk.crawler.frontier import Frontier, FrontierOrder
from linkwalk.crawler.link_extractor import LinkExtractor
from linkwalk.crawler.models import (
    Classification,
    Content,
    EventKind,
    Policy,
    StopReason,
    TraversalEvent,
    TraversalResult,
)
from linkwalk.errors import MalformedURL, SeedFetchError, TransportFailure
from linkwalk.logger import logger
from linkwalk.parser.html_parser import Selector, parse_page
from linkwalk.report.sinks import ReportSink
from linkwalk.utils import compile_pattern


class Harvester:
    """Collect :class:`Content` from the target pages of one site profile."""

    def __init__(self, fetcher: Fetcher, sink: ReportSink, *, stop_event: Optional[asyncio.Event] = None) -> None:
        self.fetcher = fetcher
        self.sink = sink
        self.stop_event = stop_event
        self._links = LinkExtractor("a[href]")

    def _target_url(self, site: SiteProfile, href: str) -> str:
        if site.absolute_url:
            return normalize_url(href)
        return resolve(href, str(site.url))

    def _stopped(self) -> bool:
        return self.stop_event is not None and self.stop_event.is_set()

    async def harvest(self, site: SiteProfile) -> TraversalResult:
        start = normalize_url(str(site.url))
        result = TraversalResult(policy=Policy.HARVEST, seed=start)
        pattern = compile_pattern(site.target_pattern)
        title_sel = Selector(site.title_query)
        body_sel = Selector(site.body_query)
        logger.info("Harvesting %s from %s", site.name, start)
        if self._stopped():
            result.stop_reason = StopReason.CANCELLED
            return result

        try:
            fetched = await self.fetcher.fetch(start)
        except TransportFailure as exc:
            logger.error("Start page of %s failed: %s", site.name, exc)
            raise SeedFetchError.wrap(exc) from exc
        result.visited.append(start)
        hrefs = self._links.extract(parse_page(fetched.url, fetched.body))

        frontier = Frontier(FrontierOrder.FIFO)
        for href in hrefs:
            if pattern is not None and not pattern.search(href):
                continue
            try:
                frontier.offer(self._target_url(site, href), Classification.INTERNAL)
            except MalformedURL as exc:
                logger.debug("Skipping target %r: %s", href, exc)

        while frontier:
            if self._stopped():
                result.stop_reason = StopReason.CANCELLED
                return result
            url = frontier.take()
            if url is None:
                break
            result.steps += 1
            try:
                fetched = await self.fetcher.fetch(url)
            except TransportFailure as exc:
                logger.warning("Skipping %s: %s", url, exc)
                result.failures.append(url)
                self.sink.emit(TraversalEvent(kind=EventKind.FAILURE, url=url, source=start))
                continue
            result.visited.append(url)
            page = parse_page(fetched.url, fetched.body)
            title = title_sel.texts(page).strip()
            body = body_sel.texts(page).strip()
            if not title or not body:
                logger.debug("No content on %s", url)
                continue
            content = Content(url=url, title=title, body=body)
            result.contents.append(content)
            self.sink.emit(TraversalEvent(kind=EventKind.CONTENT, url=url, source=start, content=content))

        result.stop_reason = StopReason.EXHAUSTED
        logger.info("Harvested %d pages from %s", len(result.contents), site.name)
        return result

    async def harvest_all(self, sites: List[SiteProfile]) -> List[TraversalResult]:
        results = []
        for site in sites:
            results.append(await self.harvest(site))
        return results


__all__ = ["Harvester"]
