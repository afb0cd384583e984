# File: linkwalk/engine.py
"""linkwalk.engine: orchestration layer that wires config, fetcher, sink and policy."""

from __future__ import annotations

import asyncio
import random
from typing import List, Optional

from linkwalk.config import CrawlConfig
from linkwalk.crawler.fetcher import AiohttpFetcher, Fetcher
from linkwalk.crawler.harvester import Harvester
from linkwalk.crawler.models import Policy, TraversalResult
from linkwalk.crawler.traversal import Traversal
from linkwalk.logger import logger
from linkwalk.report.sinks import ConsoleSink, ReportSink

__all__ = ["Engine", "start_traversal", "start_harvest", "run_policy"]


async def run_policy(
    cfg: CrawlConfig,
    fetcher: Fetcher,
    sink: ReportSink,
    stop_event: Optional[asyncio.Event] = None,
) -> TraversalResult:
    """Run the traversal policy named by *cfg* with an already open *fetcher*."""
    traversal = Traversal(
        fetcher,
        sink,
        link_query=cfg.link_query,
        link_pattern=cfg.link_pattern,
        rng=random.Random(cfg.random_seed),
        stop_event=stop_event,
        max_pages=cfg.max_pages,
    )
    seed = str(cfg.seed_url)
    if cfg.policy is Policy.INTERNAL:
        return await traversal.crawl_internal(seed)
    if cfg.policy is Policy.RANDOM:
        return await traversal.random_walk(seed, cfg.max_steps)
    if cfg.policy is Policy.EXTERNAL:
        return await traversal.external_walk(seed, cfg.max_steps, reanchor=cfg.reanchor)
    raise ValueError(f"policy {cfg.policy.value!r} is not a traversal policy")


async def start_traversal(
    cfg: CrawlConfig,
    sink: Optional[ReportSink] = None,
    *,
    stop_event: Optional[asyncio.Event] = None,
) -> TraversalResult:
    """Open an aiohttp fetcher for the run and execute the configured policy."""
    async with AiohttpFetcher.from_config(cfg) as fetcher:
        return await run_policy(cfg, fetcher, sink or ConsoleSink(), stop_event)


async def start_harvest(
    cfg: CrawlConfig,
    sink: Optional[ReportSink] = None,
    *,
    stop_event: Optional[asyncio.Event] = None,
) -> List[TraversalResult]:
    """Harvest every site profile listed in *cfg*."""
    async with AiohttpFetcher.from_config(cfg) as fetcher:
        harvester = Harvester(fetcher, sink or ConsoleSink(), stop_event=stop_event)
        return await harvester.harvest_all(list(cfg.sites))


class Engine:
    """Synchronous facade for scripts: run the configured policy under an overall timeout."""

    def __init__(self, config: CrawlConfig, sink: Optional[ReportSink] = None) -> None:
        self.config = config
        self.sink = sink or ConsoleSink()

    def run(self, timeout: Optional[float] = None):
        """Run the configured policy; harvest returns a list of results."""
        logger.info("Starting %s traversal…", self.config.policy.value)
        if self.config.policy is Policy.HARVEST:
            coro = start_harvest(self.config, self.sink)
        else:
            coro = start_traversal(self.config, self.sink)
        try:
            if timeout:
                return asyncio.run(asyncio.wait_for(coro, timeout=timeout))
            return asyncio.run(coro)
        except asyncio.TimeoutError:
            logger.error("Traversal did not finish within %s seconds", timeout)
            raise
        except Exception as exc:
            logger.error("Traversal failed: %s", exc)
            raise
