"""MetricsCollectorJob - scheduled sampler feeding the dashboard history.

Every period (30 s by default) the job reads the HTTP request counters and the
pool gauges from the meter registry, freezes them into a `MetricsSnapshot` and
appends it to the `MetricsStore`. Ticks only read in-memory meters, so they
never block the request path; a tick that fails is logged and skipped, and the
loop keeps going.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from computer_catalog.infrastructure.db_factory import PRIMARY_CLIENT_NAME, REPLICA_CLIENT_NAME
from computer_catalog.monitoring.registry import (
    CLIENT_NAME_TAG,
    HTTP_SERVER_REQUESTS,
    POOL_CURRENT,
    POOL_QUEUE_SIZE,
    MeterRegistry,
)
from computer_catalog.monitoring.snapshot import MetricsSnapshot
from computer_catalog.monitoring.store import MetricsStore
from computer_catalog.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_INTERVAL_SECONDS = 30.0
READ_METHODS = ("GET",)
WRITE_METHODS = ("POST", "PUT", "DELETE")


class MetricsCollectorJob:
    """Periodic job sampling counters and gauges into the snapshot store.

    Args:
        meters: Registry holding the request counter and pool gauges
        store: History the snapshots are appended to
        interval_seconds: Period between ticks
    """

    def __init__(
        self,
        meters: MeterRegistry,
        store: MetricsStore,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    ) -> None:
        self.meters = meters
        self.store = store
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None

    def _sum_requests(self, methods: tuple[str, ...]) -> float:
        return sum(self.meters.sum(HTTP_SERVER_REQUESTS, method=method) for method in methods)

    def _gauge(self, meter_name: str, client_name: str) -> float:
        return self.meters.sum(meter_name, **{CLIENT_NAME_TAG: client_name})

    def sample(self) -> MetricsSnapshot:
        """Read every meter once and build a snapshot, without storing it."""
        return MetricsSnapshot.of(
            http_reads=self._sum_requests(READ_METHODS),
            http_writes=self._sum_requests(WRITE_METHODS),
            primary_in_use=self._gauge(POOL_CURRENT, PRIMARY_CLIENT_NAME),
            primary_pending=self._gauge(POOL_QUEUE_SIZE, PRIMARY_CLIENT_NAME),
            replica_in_use=self._gauge(POOL_CURRENT, REPLICA_CLIENT_NAME),
            replica_pending=self._gauge(POOL_QUEUE_SIZE, REPLICA_CLIENT_NAME),
        )

    def collect(self) -> Optional[MetricsSnapshot]:
        """Run one tick. Returns the stored snapshot, or None if sampling failed."""
        try:
            snapshot = self.sample()
        except Exception:
            logger.exception("[SSR] metrics tick failed, skipping")
            return None

        self.store.add(snapshot)
        logger.info(
            "[SSR] snapshot collected - HTTP reads=%.0f writes=%.0f | "
            "primary in-use=%.0f pending=%.0f | replica in-use=%.0f pending=%.0f",
            snapshot.http_reads,
            snapshot.http_writes,
            snapshot.primary_pool_in_use,
            snapshot.primary_pool_pending,
            snapshot.replica_pool_in_use,
            snapshot.replica_pool_pending,
        )
        return snapshot

    async def _run(self, stop_event: asyncio.Event) -> None:
        logger.info(f"Metrics collector started, period {self.interval_seconds:g}s")
        while not stop_event.is_set():
            try:
                # Wait for the period or until stop is requested
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval_seconds)
                break
            except asyncio.TimeoutError:
                pass
            self.collect()
        logger.info("Metrics collector stopped")

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the background task on the running event loop."""
        if self.running:
            logger.warning("Metrics collector already running")
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run(self._stop_event), name="ssr-metrics-collector")

    async def stop(self) -> None:
        """Stop the background task and wait for it to finish."""
        if self._stop_event is not None:
            self._stop_event.set()
        if self._task is not None:
            try:
                await asyncio.wait_for(self._task, timeout=5.0)
            except asyncio.TimeoutError:
                self._task.cancel()
                await asyncio.gather(self._task, return_exceptions=True)
        self._task = None
        self._stop_event = None


__all__ = ["DEFAULT_INTERVAL_SECONDS", "MetricsCollectorJob", "READ_METHODS", "WRITE_METHODS"]
