"""linkwalk.report: traversal output sinks and JSON/HTML reports."""

from linkwalk.report.sinks import ConsoleSink, MemorySink, ReportSink

__all__ = ["ConsoleSink", "MemorySink", "ReportSink"]
