# File: tests/test_traversal.py
from __future__ import annotations

import asyncio
import random

import pytest

from conftest import FakeFetcher, links_page
from linkwalk.crawler.models import EventKind, Policy, StopReason
from linkwalk.crawler.traversal import Traversal
from linkwalk.errors import MalformedURL, SeedFetchError
from linkwalk.report.sinks import MemorySink

SEED = "http://site.test/a"


# --------------------------------------------------------------------------- #
#                         Exhaustive internal crawl                           #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_scenario_visits_each_page_once_in_fifo_order(site_graph, sink):
    fetcher = FakeFetcher(site_graph)
    result = await Traversal(fetcher, sink).crawl_internal(SEED)

    assert result.policy is Policy.INTERNAL
    assert result.visited == ["http://site.test/a", "http://site.test/b", "http://site.test/c"]
    assert result.external == ["http://other.test/p"]
    assert result.stop_reason is StopReason.EXHAUSTED
    assert sink.lines == [
        "visit\thttp://site.test/a",
        "visit\thttp://site.test/b",
        "external\thttp://other.test/p",
        "visit\thttp://site.test/c",
    ]
    assert sink.urls(EventKind.EXTERNAL) == ["http://other.test/p"]


@pytest.mark.asyncio()
async def test_no_url_fetched_twice(sink):
    # fully connected graph of 6 pages, every page links every other page twice
    urls = [f"http://site.test/p{i}" for i in range(6)]
    pages = {u: links_page(*(urls + urls)) for u in urls}
    fetcher = FakeFetcher(pages)

    result = await Traversal(fetcher, sink).crawl_internal(urls[0])

    assert len(fetcher.calls) == len(set(fetcher.calls)) == 6
    assert sorted(result.visited) == sorted(urls)
    assert result.steps == 6


@pytest.mark.asyncio()
async def test_external_links_are_reported_once_and_never_fetched(sink):
    pages = {
        "http://site.test/": links_page("/1", "/2", "http://ext.test/x"),
        "http://site.test/1": links_page("http://ext.test/x", "https://site.test/secure"),
        "http://site.test/2": links_page("http://ext.test/x#frag", "//ext.test/y"),
    }
    fetcher = FakeFetcher(pages)
    result = await Traversal(fetcher, sink).crawl_internal("http://site.test")

    assert result.external == ["http://ext.test/x", "https://site.test/secure", "http://ext.test/y"]
    assert all("ext.test" not in c and "https" not in c for c in fetcher.calls)


@pytest.mark.asyncio()
async def test_failed_page_is_skipped(sink):
    pages = {
        SEED: links_page("/broken", "/ok"),
        "http://site.test/broken": 500,
        "http://site.test/ok": links_page("/a"),
    }
    result = await Traversal(FakeFetcher(pages), sink).crawl_internal(SEED)

    assert result.visited == [SEED, "http://site.test/ok"]
    assert result.failures == ["http://site.test/broken"]
    assert "failure\thttp://site.test/broken" in sink.lines
    assert result.stop_reason is StopReason.EXHAUSTED


@pytest.mark.asyncio()
async def test_seed_failure_is_fatal(sink):
    with pytest.raises(SeedFetchError) as info:
        await Traversal(FakeFetcher({}), sink).crawl_internal(SEED)
    assert info.value.status == 404
    assert sink.events == []


@pytest.mark.asyncio()
async def test_malformed_seed_is_fatal(sink):
    fetcher = FakeFetcher({})
    with pytest.raises(MalformedURL):
        await Traversal(fetcher, sink).crawl_internal("mailto:nobody@site.test")
    assert fetcher.calls == []


@pytest.mark.asyncio()
async def test_page_limit(site_graph, sink):
    result = await Traversal(FakeFetcher(site_graph), sink, max_pages=2).crawl_internal(SEED)
    assert result.visited == ["http://site.test/a", "http://site.test/b"]
    assert result.stop_reason is StopReason.PAGE_LIMIT


@pytest.mark.asyncio()
async def test_link_query_and_pattern_restrict_crawl(sink):
    pages = {
        SEED: '<nav><a href="/skip">s</a></nav><main><a href="/keep">k</a><a href="/keep.pdf">p</a></main>',
        "http://site.test/keep": "<main></main>",
    }
    fetcher = FakeFetcher(pages)
    traversal = Traversal(fetcher, sink, link_query="main a[href]", link_pattern=r"^/keep$")
    result = await traversal.crawl_internal(SEED)
    assert result.visited == [SEED, "http://site.test/keep"]
    assert fetcher.calls == result.visited


@pytest.mark.asyncio()
async def test_stop_event_cancels_crawl(site_graph, sink):
    stop = asyncio.Event()

    class StoppingFetcher(FakeFetcher):
        async def fetch(self, url):
            stop.set()
            return await super().fetch(url)

    result = await Traversal(StoppingFetcher(site_graph), sink, stop_event=stop).crawl_internal(SEED)
    assert result.visited == [SEED]
    assert result.stop_reason is StopReason.CANCELLED


# --------------------------------------------------------------------------- #
#                              Random single walk                             #
# --------------------------------------------------------------------------- #


WIKI = {
    "https://wiki.test/wiki/Start": links_page("/wiki/A", "/wiki/Talk:A", "/about", "/wiki/B"),
    "https://wiki.test/wiki/A": links_page("/wiki/B", "/wiki/Start"),
    "https://wiki.test/wiki/B": links_page("/wiki/A", "/wiki/Start"),
}


@pytest.mark.asyncio()
async def test_random_walk_dead_end_terminates(sink):
    pages = {SEED: links_page("/b"), "http://site.test/b": "<p>no links</p>"}
    result = await Traversal(FakeFetcher(pages), sink).random_walk(SEED, max_steps=10)

    assert result.stop_reason is StopReason.DEAD_END
    assert result.hops == ["http://site.test/b"]
    assert sink.lines == ["hop\thttp://site.test/b"]
    assert result.steps == 1


@pytest.mark.asyncio()
async def test_random_walk_respects_step_limit_and_pattern(sink):
    fetcher = FakeFetcher(WIKI)
    traversal = Traversal(fetcher, sink, link_pattern=r"^(/wiki/)((?!:).)*$", rng=random.Random(3))
    result = await traversal.random_walk("https://wiki.test/wiki/Start", max_steps=5)

    assert result.stop_reason is StopReason.STEP_LIMIT
    assert result.steps == 5
    assert len(result.hops) == 5
    for hop in result.hops:
        assert hop in WIKI
        assert "Talk:" not in hop and not hop.endswith("/about")


@pytest.mark.asyncio()
async def test_random_walk_is_deterministic_with_seeded_rng():
    async def run(seed):
        t = Traversal(FakeFetcher(WIKI), MemorySink(), link_pattern="^/wiki/", rng=random.Random(seed))
        return (await t.random_walk("https://wiki.test/wiki/Start", max_steps=8)).hops

    assert await run(11) == await run(11)


@pytest.mark.asyncio()
async def test_random_walk_retries_other_candidate_after_failure(sink):
    pages = {
        SEED: links_page("/down", "/up"),
        "http://site.test/down": 503,
        "http://site.test/up": "<p>end</p>",
    }
    result = await Traversal(FakeFetcher(pages), sink, rng=random.Random(0)).random_walk(SEED, max_steps=5)

    assert result.hops == ["http://site.test/up"]
    assert result.stop_reason is StopReason.DEAD_END
    assert set(result.failures) <= {"http://site.test/down"}


@pytest.mark.asyncio()
async def test_random_walk_all_candidates_fail(sink):
    pages = {SEED: links_page("/down"), "http://site.test/down": 500}
    result = await Traversal(FakeFetcher(pages), sink).random_walk(SEED, max_steps=5)
    assert result.hops == []
    assert result.failures == ["http://site.test/down"]
    assert result.stop_reason is StopReason.DEAD_END


@pytest.mark.asyncio()
async def test_random_walk_seed_failure(sink):
    with pytest.raises(SeedFetchError):
        await Traversal(FakeFetcher({SEED: 500}), sink).random_walk(SEED, max_steps=3)


@pytest.mark.asyncio()
@pytest.mark.parametrize("steps", [0, -1, None, 2.5])
async def test_random_walk_needs_positive_step_limit(sink, steps):
    with pytest.raises(ValueError):
        await Traversal(FakeFetcher(WIKI), sink).random_walk("https://wiki.test/wiki/Start", max_steps=steps)


@pytest.mark.asyncio()
async def test_set_stop_event_prevents_any_fetch(sink):
    stop = asyncio.Event()
    stop.set()
    fetcher = FakeFetcher(WIKI)
    result = await Traversal(fetcher, sink, stop_event=stop).random_walk("https://wiki.test/wiki/Start", max_steps=5)
    assert result.stop_reason is StopReason.CANCELLED
    assert fetcher.calls == []
    assert result.visited == []


@pytest.mark.asyncio()
async def test_stop_event_ends_walk_between_hops(sink):
    stop = asyncio.Event()

    class StoppingFetcher(FakeFetcher):
        async def fetch(self, url):
            stop.set()
            return await super().fetch(url)

    fetcher = StoppingFetcher(WIKI)
    result = await Traversal(fetcher, sink, stop_event=stop).random_walk("https://wiki.test/wiki/Start", max_steps=5)
    assert result.stop_reason is StopReason.CANCELLED
    assert fetcher.calls == ["https://wiki.test/wiki/Start"]
    assert result.hops == []


# --------------------------------------------------------------------------- #
#                          External-preferred walk                            #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_external_walk_prefers_external_and_keeps_seed_origin(sink):
    pages = {
        SEED: links_page("/b", "http://one.test/"),
        "http://one.test/": links_page("/inner", "http://site.test/b"),
        # /inner is on one.test, external to the seed origin
        "http://one.test/inner": links_page("/deeper"),
        "http://one.test/deeper": "<p>end</p>",
    }
    result = await Traversal(FakeFetcher(pages), sink, rng=random.Random(5)).external_walk(SEED, max_steps=10)

    assert result.policy is Policy.EXTERNAL
    assert result.hops[0] == "http://one.test/"
    assert "http://site.test/b" not in result.hops
    assert result.stop_reason in (StopReason.DEAD_END, StopReason.STEP_LIMIT)


@pytest.mark.asyncio()
async def test_external_walk_falls_back_to_internal_silently(sink):
    pages = {
        SEED: links_page("/b"),
        "http://site.test/b": links_page("http://far.test/x"),
        "http://far.test/x": "<p>end</p>",
    }
    result = await Traversal(FakeFetcher(pages), sink).external_walk(SEED, max_steps=10)

    assert result.hops == ["http://far.test/x"]
    assert result.visited == [SEED, "http://site.test/b", "http://far.test/x"]
    assert sink.lines == ["hop\thttp://far.test/x"]
    assert result.stop_reason is StopReason.DEAD_END


@pytest.mark.asyncio()
async def test_external_walk_reanchor_changes_classification(sink):
    pages = {
        SEED: links_page("http://one.test/"),
        "http://one.test/": links_page("/local", "http://site.test/back"),
        "http://one.test/local": "<p>end</p>",
        "http://site.test/back": "<p>end</p>",
    }
    fixed = await Traversal(FakeFetcher(pages), sink).external_walk(SEED, max_steps=5)
    assert fixed.hops == ["http://one.test/", "http://one.test/local"]

    reanchored = await Traversal(FakeFetcher(pages), sink).external_walk(SEED, max_steps=5, reanchor=True)
    assert reanchored.hops == ["http://one.test/", "http://site.test/back"]


@pytest.mark.asyncio()
async def test_external_walk_no_links_dead_end(sink):
    result = await Traversal(FakeFetcher({SEED: "<p>alone</p>"}), sink).external_walk(SEED, max_steps=3)
    assert result.stop_reason is StopReason.DEAD_END
    assert result.steps == 0
    assert sink.events == []


@pytest.mark.asyncio()
async def test_external_walk_falls_back_to_internal_after_failed_external(sink):
    pages = {
        SEED: links_page("http://down.test/", "/b"),
        "http://down.test/": 503,
        "http://site.test/b": links_page("http://far.test/x"),
        "http://far.test/x": "<p>end</p>",
    }
    fetcher = FakeFetcher(pages)
    result = await Traversal(fetcher, sink).external_walk(SEED, max_steps=10)

    assert result.failures == ["http://down.test/"]
    assert result.visited == [SEED, "http://site.test/b", "http://far.test/x"]
    assert result.hops == ["http://far.test/x"]
    assert result.steps == 3
    assert sink.lines == ["failure\thttp://down.test/", "hop\thttp://far.test/x"]
    assert result.stop_reason is StopReason.DEAD_END
