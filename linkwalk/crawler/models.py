# linkwalk/crawler/models.py
"""
Data models for the LinkWalk crawler.
"""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional

from bs4 import BeautifulSoup


class Origin(NamedTuple):
    """Site boundary: scheme, host and explicit port."""

    scheme: str
    host: str
    port: int

    def __str__(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}"


class Classification(str, Enum):
    INTERNAL = "internal"
    EXTERNAL = "external"


@dataclass(frozen=True, slots=True)
class LinkRecord:
    """Resolved link relative to a reference origin."""

    url: str
    origin: Origin
    classification: Classification

    @property
    def is_external(self) -> bool:
        return self.classification is Classification.EXTERNAL


@dataclass(slots=True)
class FetchResult:
    """Raw response of a successful fetch."""

    url: str
    status: int
    body: bytes
    content_type: str = ""


@dataclass(slots=True)
class Page:
    """Parsed document of one fetch. Not kept after link extraction."""

    url: str
    document: BeautifulSoup


@dataclass(frozen=True, slots=True)
class Content:
    """Title and body text harvested from a target page."""

    url: str
    title: str
    body: str

    def __str__(self) -> str:
        return f"URL: {self.url}\nTITLE: {self.title}\nBODY:\n{self.body}"


class EventKind(str, Enum):
    VISIT = "visit"
    EXTERNAL = "external"
    HOP = "hop"
    FAILURE = "failure"
    CONTENT = "content"


@dataclass(frozen=True, slots=True)
class TraversalEvent:
    """One line of traversal output."""

    kind: EventKind
    url: str
    source: Optional[str] = None
    content: Optional[Content] = None

    def __str__(self) -> str:
        if self.kind is EventKind.CONTENT and self.content is not None:
            return str(self.content)
        return f"{self.kind.value}\t{self.url}"


class Policy(str, Enum):
    INTERNAL = "internal"
    RANDOM = "random"
    EXTERNAL = "external"
    HARVEST = "harvest"


class StopReason(str, Enum):
    EXHAUSTED = "exhausted"
    DEAD_END = "dead_end"
    STEP_LIMIT = "step_limit"
    PAGE_LIMIT = "page_limit"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class TraversalResult:
    """Summary of a traversal run, used by reports."""

    policy: Policy
    seed: str
    visited: List[str] = field(default_factory=list)
    external: List[str] = field(default_factory=list)
    hops: List[str] = field(default_factory=list)
    failures: List[str] = field(default_factory=list)
    contents: List[Content] = field(default_factory=list)
    steps: int = 0
    stop_reason: StopReason = StopReason.EXHAUSTED

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["policy"] = self.policy.value
        data["stop_reason"] = self.stop_reason.value
        return data

    def json(self, *, pretty: bool = False) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)
