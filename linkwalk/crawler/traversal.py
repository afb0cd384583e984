# linkwalk/crawler/traversal.py
"""
Traversal engine: fetch → extract → classify → schedule, under one of
three policies sharing the same Frontier / classifier / fetcher substrate.

* :meth:`Traversal.crawl_internal` – breadth-first over every internal link,
  reporting each external link once.
* :meth:`Traversal.random_walk` – hop to a random matching link until a
  dead end or the step limit.
* :meth:`Traversal.external_walk` – prefer a random external link, fall
  back to a random internal one.
"""
from __future__ import annotations

import asyncio
import random
from typing import List, Optional, Pattern, Tuple, Union

from linkwalk.crawler.classifier import classify, normalize_url, origin_of, resolve
from linkwalk.crawler.fetcher import Fetcher
from linkwalk.crawler.frontier import Frontier, FrontierOrder
from linkwalk.crawler.link_extractor import DEFAULT_LINK_QUERY, LinkExtractor
from linkwalk.crawler.models import (
    Classification,
    EventKind,
    LinkRecord,
    Origin,
    Policy,
    StopReason,
    TraversalEvent,
    TraversalResult,
)
from linkwalk.errors import MalformedURL, SeedFetchError, TransportFailure
from linkwalk.logger import logger
from linkwalk.parser.html_parser import parse_page
from linkwalk.report.sinks import ReportSink
from linkwalk.utils import compile_pattern, remove_duplicates

__all__ = ("Traversal",)


class Traversal:
    """Single sequential traversal; one instance may run several policies one after another."""

    def __init__(
        self,
        fetcher: Fetcher,
        sink: ReportSink,
        *,
        link_query: str = DEFAULT_LINK_QUERY,
        link_pattern: Union[str, Pattern[str], None] = None,
        rng: Optional[random.Random] = None,
        stop_event: Optional[asyncio.Event] = None,
        max_pages: Optional[int] = None,
    ) -> None:
        self.fetcher = fetcher
        self.sink = sink
        self.extractor = LinkExtractor(link_query)
        self.link_pattern: Optional[Pattern[str]] = compile_pattern(link_pattern)
        self.rng = rng or random.Random()
        self.stop_event = stop_event
        if max_pages is not None and max_pages < 1:
            raise ValueError("max_pages must be >= 1")
        self.max_pages = max_pages

    # ------------------------------------------------------------------ #
    # shared steps                                                        #
    # ------------------------------------------------------------------ #

    def _stopped(self) -> bool:
        return self.stop_event is not None and self.stop_event.is_set()

    def _emit(self, kind: EventKind, url: str, source: Optional[str] = None) -> None:
        self.sink.emit(TraversalEvent(kind=kind, url=url, source=source))

    def _matches(self, href: str) -> bool:
        return self.link_pattern is None or self.link_pattern.search(href) is not None

    async def _load_hrefs(self, url: str) -> List[str]:
        """Fetch *url* and return its raw hrefs. The parsed page is dropped here."""
        result = await self.fetcher.fetch(url)
        page = parse_page(result.url, result.body)
        return self.extractor.extract(page)

    async def _load_seed(self, seed: str, result: TraversalResult) -> List[str]:
        try:
            return await self._load_hrefs(seed)
        except TransportFailure as exc:
            logger.error("Seed fetch failed: %s", exc)
            result.failures.append(seed)
            raise SeedFetchError.wrap(exc) from exc

    def _classify_all(self, hrefs: List[str], base_url: str, reference: Origin) -> List[LinkRecord]:
        records: List[LinkRecord] = []
        for href in hrefs:
            if not self._matches(href):
                continue
            try:
                records.append(classify(href, base_url, reference))
            except MalformedURL as exc:
                logger.debug("Skipping link on %s: %s", base_url, exc)
        return records

    def _check_steps(self, max_steps: int) -> None:
        if isinstance(max_steps, bool) or not isinstance(max_steps, int) or max_steps < 1:
            raise ValueError("max_steps must be a positive integer")

    # ------------------------------------------------------------------ #
    # policy 1: exhaustive internal BFS                                   #
    # ------------------------------------------------------------------ #

    async def crawl_internal(self, seed: str) -> TraversalResult:
        """
        Visit every internal page reachable from *seed*, each exactly once.

        External links are reported the first time they are seen and never
        fetched. A failing page is reported and skipped; a failing seed
        raises :class:`~linkwalk.errors.SeedFetchError`.
        """
        seed_url = normalize_url(seed)
        reference = origin_of(seed_url)
        result = TraversalResult(policy=Policy.INTERNAL, seed=seed_url)
        frontier = Frontier(FrontierOrder.FIFO, rng=self.rng)
        frontier.offer(seed_url, Classification.INTERNAL)
        logger.info("Internal crawl from %s (origin %s)", seed_url, reference)

        while frontier:
            if self._stopped():
                result.stop_reason = StopReason.CANCELLED
                logger.info("Crawl cancelled with %d pages pending", len(frontier))
                return result
            if self.max_pages is not None and len(result.visited) >= self.max_pages:
                result.stop_reason = StopReason.PAGE_LIMIT
                logger.info("Page limit %d reached", self.max_pages)
                return result

            url = frontier.take()
            if url is None:
                break
            result.steps += 1
            if url == seed_url:
                hrefs = await self._load_seed(url, result)
            else:
                try:
                    hrefs = await self._load_hrefs(url)
                except TransportFailure as exc:
                    logger.warning("Skipping %s: %s", url, exc)
                    result.failures.append(url)
                    self._emit(EventKind.FAILURE, url)
                    continue

            result.visited.append(url)
            self._emit(EventKind.VISIT, url)

            for record in self._classify_all(hrefs, url, reference):
                if record.is_external:
                    if frontier.mark_visited(record.url, Classification.EXTERNAL):
                        result.external.append(record.url)
                        self._emit(EventKind.EXTERNAL, record.url, source=url)
                elif frontier.offer(record.url, Classification.INTERNAL):
                    logger.debug("Scheduled %s", record.url)

        result.stop_reason = StopReason.EXHAUSTED
        logger.info(
            "Internal crawl finished: %d pages, %d external links, %d failures",
            len(result.visited), len(result.external), len(result.failures),
        )
        return result

    # ------------------------------------------------------------------ #
    # random walks                                                        #
    # ------------------------------------------------------------------ #

    async def _walk(
        self,
        seed: str,
        max_steps: int,
        result: TraversalResult,
        pick,
    ) -> TraversalResult:
        """
        Drive a random walk.

        ``pick(hrefs, current)`` returns the candidate tiers of a page in
        order of preference, each a ``(urls, report)`` pair: the walk draws
        from the first non-empty tier and ``report`` says whether a hop into
        it is reported. A failed hop removes that URL from its tier only, so
        the next draw may fall through to a lower tier.
        """
        current = normalize_url(seed)
        result.seed = current
        if self._stopped():
            result.stop_reason = StopReason.CANCELLED
            logger.info("Walk cancelled before fetching %s", current)
            return result
        hrefs = await self._load_seed(current, result)
        result.visited.append(current)
        tiers = pick(hrefs, current)

        while True:
            tier = next((t for t in tiers if t[0]), None)
            if tier is None:
                result.stop_reason = StopReason.DEAD_END
                logger.info("Dead end at %s after %d steps", current, result.steps)
                return result
            if result.steps >= max_steps:
                result.stop_reason = StopReason.STEP_LIMIT
                logger.info("Step limit %d reached at %s", max_steps, current)
                return result
            if self._stopped():
                result.stop_reason = StopReason.CANCELLED
                logger.info("Walk cancelled at %s", current)
                return result

            candidates, report = tier
            nxt = self.rng.choice(candidates)
            result.steps += 1
            try:
                hrefs = await self._load_hrefs(nxt)
            except TransportFailure as exc:
                logger.warning("Hop to %s failed: %s", nxt, exc)
                result.failures.append(nxt)
                self._emit(EventKind.FAILURE, nxt, source=current)
                candidates.remove(nxt)
                continue

            if report:
                result.hops.append(nxt)
                self._emit(EventKind.HOP, nxt, source=current)
            else:
                logger.debug("Following internal link %s", nxt)
            result.visited.append(nxt)
            current = nxt
            tiers = pick(hrefs, current)


    async def random_walk(self, seed: str, max_steps: int) -> TraversalResult:
        """
        Hop from *seed* to a uniformly chosen matching link, at most
        *max_steps* times. Stops early on a page without candidates.
        """
        self._check_steps(max_steps)
        result = TraversalResult(policy=Policy.RANDOM, seed=seed)

        def pick(hrefs: List[str], current: str) -> List[Tuple[List[str], bool]]:
            urls: List[str] = []
            for href in hrefs:
                if not self._matches(href):
                    continue
                try:
                    urls.append(resolve(href, current))
                except MalformedURL as exc:
                    logger.debug("Skipping link on %s: %s", current, exc)
            return [(remove_duplicates(urls), True)]

        logger.info("Random walk from %s (max %d steps)", seed, max_steps)
        return await self._walk(seed, max_steps, result, pick)

    async def external_walk(self, seed: str, max_steps: int, *, reanchor: bool = False) -> TraversalResult:
        """
        Prefer a random external link on each page; otherwise follow a random
        internal link without reporting it.

        Links are classified against the seed's origin for the whole walk, or
        against the current page's origin when *reanchor* is set.
        """
        self._check_steps(max_steps)
        result = TraversalResult(policy=Policy.EXTERNAL, seed=seed)
        anchor = origin_of(normalize_url(seed))

        def pick(hrefs: List[str], current: str) -> List[Tuple[List[str], bool]]:
            reference = origin_of(current) if reanchor else anchor
            records = self._classify_all(hrefs, current, reference)
            external = remove_duplicates([r.url for r in records if r.is_external])
            internal = remove_duplicates([r.url for r in records if not r.is_external])
            return [(external, True), (internal, False)]

        logger.info("External walk from %s (max %d steps, reanchor=%s)", seed, max_steps, reanchor)
        return await self._walk(seed, max_steps, result, pick)
