# linkwalk/crawler/frontier.py
"""
Visited sets plus pending work for a single traversal run.
"""
from __future__ import annotations

import random
from collections import deque
from enum import Enum
from typing import Deque, Dict, FrozenSet, Optional, Set, Tuple

from linkwalk.crawler.models import Classification


class FrontierOrder(str, Enum):
    FIFO = "fifo"
    RANDOM = "random"


class Frontier:
    """
    Pending URLs and the per-classification visited record.

    A URL is scheduled at most once per classification bucket: ``offer``
    refuses URLs that are already visited or already pending, and ``take``
    moves the returned URL into its visited set. ``offer`` and
    ``mark_visited`` never await, so under asyncio each call is an atomic
    check-and-insert. Sharing one instance across threads needs a lock
    around both.
    """

    def __init__(self, order: FrontierOrder = FrontierOrder.FIFO, rng: Optional[random.Random] = None) -> None:
        self.order = FrontierOrder(order)
        self._rng = rng or random.Random()
        self._pending: Deque[Tuple[str, Classification]] = deque()
        self._queued: Dict[Classification, Set[str]] = {c: set() for c in Classification}
        self._visited: Dict[Classification, Set[str]] = {c: set() for c in Classification}

    def __len__(self) -> int:
        return len(self._pending)

    def __bool__(self) -> bool:
        return bool(self._pending)

    def offer(self, url: str, classification: Classification) -> bool:
        """Enqueue *url* unless it is already visited or pending; True if enqueued."""
        c = Classification(classification)
        if url in self._visited[c] or url in self._queued[c]:
            return False
        self._queued[c].add(url)
        self._pending.append((url, c))
        return True

    def take(self) -> Optional[str]:
        """Remove and return one pending URL, or None when nothing is pending."""
        if not self._pending:
            return None
        if self.order is FrontierOrder.RANDOM:
            idx = self._rng.randrange(len(self._pending))
            url, c = self._pending[idx]
            del self._pending[idx]
        else:
            url, c = self._pending.popleft()
        self._queued[c].discard(url)
        self._visited[c].add(url)
        return url

    def mark_visited(self, url: str, classification: Classification) -> bool:
        """Record *url* as visited; idempotent. True the first time."""
        bucket = self._visited[Classification(classification)]
        if url in bucket:
            return False
        bucket.add(url)
        return True

    def is_visited(self, url: str, classification: Classification) -> bool:
        return url in self._visited[Classification(classification)]

    def visited(self, classification: Classification) -> FrozenSet[str]:
        return frozenset(self._visited[Classification(classification)])
