# linkwalk/crawler/fetcher.py
"""
Fetcher module: the capability the traversal engine consumes, plus an
aiohttp implementation with timeout and optional retry/backoff.
"""
from __future__ import annotations

import asyncio
import random
from typing import Optional, Protocol, Sequence, runtime_checkable

from aiohttp import ClientError, ClientSession, ClientTimeout

from linkwalk.crawler.models import FetchResult
from linkwalk.errors import TransportFailure
from linkwalk.logger import logger

RETRY_STATUS: Sequence[int] = tuple(range(500, 600)) + (429,)


@runtime_checkable
class Fetcher(Protocol):
    """fetch(url) -> FetchResult, raising TransportFailure on any failure."""

    async def fetch(self, url: str) -> FetchResult:
        ...


class AiohttpFetcher:
    """
    Handles HTTP fetching with timeout and bounded retries/backoff.

    A caller-supplied *session* is used with its own headers and timeout and
    is left open on exit.
    """

    def __init__(
        self,
        *,
        user_agent: str = "LinkWalkBot/1.0",
        timeout: float = 10.0,
        retry_times: int = 0,
        retry_status: Sequence[int] = RETRY_STATUS,
        backoff_factor: float = 1.0,
        session: Optional[ClientSession] = None,
    ) -> None:
        self.user_agent = user_agent
        self.timeout = timeout
        self.retry_times = retry_times
        self._retry_status = tuple(retry_status)
        self.backoff_factor = backoff_factor
        self.session = session
        self._owns_session = session is None

    @classmethod
    def from_config(cls, config) -> AiohttpFetcher:
        return cls(
            user_agent=config.user_agent,
            timeout=config.timeout,
            retry_times=config.retry_times,
        )

    async def __aenter__(self) -> AiohttpFetcher:
        if self.session is None:
            self.session = ClientSession(
                timeout=ClientTimeout(total=self.timeout),
                headers={"User-Agent": self.user_agent},
                raise_for_status=False,
            )
            self._owns_session = True
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()
        if self._owns_session:
            self.session = None

    async def fetch(self, url: str) -> FetchResult:
        """
        GET *url*.

        Non-2xx statuses and transport errors raise TransportFailure; 5xx and
        429 are retried ``retry_times`` times with exponential backoff.
        """
        if not self.session:
            raise RuntimeError("Session not initialized")

        attempts = 0
        while True:
            try:
                async with self.session.get(url) as resp:
                    status = resp.status
                    if status in self._retry_status and attempts < self.retry_times:
                        raise ClientError(f"retryable status {status}")
                    if status < 200 or status >= 300:
                        raise TransportFailure(url, status)
                    body = await resp.read()
                    ctype = resp.headers.get("Content-Type", "").split(";", 1)[0].strip().lower()
                    logger.debug("Fetched %s -> %s (%d bytes)", url, status, len(body))
                    return FetchResult(url=url, status=status, body=body, content_type=ctype)
            except asyncio.TimeoutError as exc:
                # no retry on timeout
                raise TransportFailure(url, reason="timeout") from exc
            except ClientError as exc:
                attempts += 1
                if attempts > self.retry_times:
                    raise TransportFailure(url, reason=str(exc) or type(exc).__name__) from exc
                backoff = min(60, self.backoff_factor * (2**attempts + random.random()))
                logger.debug("Retry %d/%d for %s after %.2f s", attempts, self.retry_times, url, backoff)
                await asyncio.sleep(backoff)
