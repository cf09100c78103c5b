"""Metrics sampling for the SSR dashboard.

Counters and gauges live in the app-owned `MeterRegistry`; a scheduled
`MetricsCollectorJob` samples them into immutable `MetricsSnapshot`s kept in a
bounded `MetricsStore`. All state is session-only memory.
"""

from .collector import MetricsCollectorJob
from .middleware import HttpMetricsMiddleware
from .registry import MeterRegistry
from .snapshot import MetricsSnapshot
from .store import MetricsStore

__all__ = [
    "HttpMetricsMiddleware",
    "MeterRegistry",
    "MetricsCollectorJob",
    "MetricsSnapshot",
    "MetricsStore",
]
