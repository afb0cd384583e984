# File: linkwalk/report/sinks.py
"""Output sinks for traversal events: console lines or an in-memory list."""

from __future__ import annotations

from typing import List, Optional, Protocol, TextIO

import click

from linkwalk.crawler.models import EventKind, TraversalEvent


class ReportSink(Protocol):
    def emit(self, event: TraversalEvent) -> None:
        ...


class ConsoleSink:
    """Print one line per event (``str(event)``) to stdout or *file*."""

    def __init__(self, file: Optional[TextIO] = None, *, kinds: Optional[set[EventKind]] = None) -> None:
        self.file = file
        self.kinds = kinds

    def emit(self, event: TraversalEvent) -> None:
        if self.kinds is not None and event.kind not in self.kinds:
            return
        click.echo(str(event), file=self.file)


class MemorySink:
    """Keep every event; handy in tests and for building reports."""

    def __init__(self) -> None:
        self.events: List[TraversalEvent] = []

    def emit(self, event: TraversalEvent) -> None:
        self.events.append(event)

    @property
    def lines(self) -> List[str]:
        return [str(e) for e in self.events]

    def urls(self, kind: EventKind) -> List[str]:
        return [e.url for e in self.events if e.kind is kind]
