from __future__ import annotations

import asyncio

import pytest

from computer_catalog.infrastructure.db_factory import (
    PRIMARY_CLIENT_NAME,
    REPLICA_CLIENT_NAME,
    pool_usage,
)
from computer_catalog.monitoring.collector import MetricsCollectorJob
from computer_catalog.monitoring.registry import (
    HTTP_SERVER_REQUESTS,
    POOL_CURRENT,
    POOL_QUEUE_SIZE,
    MeterRegistry,
    prometheus_name,
)
from computer_catalog.monitoring.store import MetricsStore


class _StatsPool:
    """Stands in for an AsyncConnectionPool; only `get_stats` is read."""

    def __init__(self, pool_size: int = 0, pool_available: int = 0, requests_waiting: int = 0):
        self.stats = {
            "pool_size": pool_size,
            "pool_available": pool_available,
            "requests_waiting": requests_waiting,
        }

    def get_stats(self) -> dict[str, int]:
        return dict(self.stats)


def _record(meters: MeterRegistry, method: str, count: int, uri: str = "/computer") -> None:
    for _ in range(count):
        meters.record_request(method, uri, 200)


def test_prometheus_name_replaces_dots() -> None:
    assert prometheus_name("postgresql.queue.size") == "postgresql_queue_size"


def test_sum_of_unknown_meter_is_zero() -> None:
    assert MeterRegistry().sum("no.such.meter") == 0.0


def test_sum_filters_by_tags() -> None:
    meters = MeterRegistry()
    _record(meters, "GET", 3)
    _record(meters, "GET", 2, uri="/computer/pagination")
    _record(meters, "POST", 1)

    assert meters.sum(HTTP_SERVER_REQUESTS) == 6.0
    assert meters.sum(HTTP_SERVER_REQUESTS, method="GET") == 5.0
    assert meters.sum(HTTP_SERVER_REQUESTS, method="PATCH") == 0.0


def test_pool_usage_reads_stats() -> None:
    pool = _StatsPool(pool_size=5, pool_available=2, requests_waiting=4)
    assert pool_usage(pool) == (3, 4)


def test_bound_pool_gauges_follow_the_pool() -> None:
    meters = MeterRegistry()
    pool = _StatsPool(pool_size=4, pool_available=4)
    meters.bind_pool(pool, PRIMARY_CLIENT_NAME)

    assert meters.sum(POOL_CURRENT, clientName=PRIMARY_CLIENT_NAME) == 0.0

    pool.stats.update(pool_available=1, requests_waiting=2)

    assert meters.sum(POOL_CURRENT, clientName=PRIMARY_CLIENT_NAME) == 3.0
    assert meters.sum(POOL_QUEUE_SIZE, clientName=PRIMARY_CLIENT_NAME) == 2.0
    assert meters.sum(POOL_CURRENT, clientName=REPLICA_CLIENT_NAME) == 0.0


def test_collect_builds_snapshot_from_meters() -> None:
    meters = MeterRegistry()
    meters.bind_pool(_StatsPool(pool_size=3, pool_available=1, requests_waiting=1), PRIMARY_CLIENT_NAME)
    meters.bind_pool(_StatsPool(pool_size=6, pool_available=1, requests_waiting=0), REPLICA_CLIENT_NAME)
    _record(meters, "GET", 4)
    _record(meters, "POST", 2)
    _record(meters, "DELETE", 1)
    _record(meters, "PUT", 1)
    _record(meters, "PATCH", 5)
    store = MetricsStore()

    snapshot = MetricsCollectorJob(meters, store).collect()

    assert snapshot is not None
    assert snapshot.http_reads == 4.0
    assert snapshot.http_writes == 4.0
    assert snapshot.primary_pool_in_use == 2.0
    assert snapshot.primary_pool_pending == 1.0
    assert snapshot.replica_pool_in_use == 5.0
    assert snapshot.replica_pool_pending == 0.0
    assert store.get_all() == [snapshot]


def test_collect_without_bound_pools_reports_zero() -> None:
    snapshot = MetricsCollectorJob(MeterRegistry(), MetricsStore()).collect()
    assert snapshot.primary_pool_in_use == 0.0
    assert snapshot.replica_pool_pending == 0.0


def test_counters_are_cumulative_across_ticks() -> None:
    meters = MeterRegistry()
    job = MetricsCollectorJob(meters, MetricsStore())

    _record(meters, "GET", 2)
    first = job.collect()
    _record(meters, "GET", 3)
    second = job.collect()

    assert first.http_reads == 2.0
    assert second.http_reads == 5.0
    assert second.timestamp >= first.timestamp


def test_failed_tick_is_skipped(monkeypatch) -> None:
    meters = MeterRegistry()
    store = MetricsStore()
    job = MetricsCollectorJob(meters, store)

    def broken(*args, **kwargs):
        raise RuntimeError("registry unavailable")

    monkeypatch.setattr(meters, "sum", broken)

    assert job.collect() is None
    assert store.get_all() == []

    monkeypatch.undo()
    assert job.collect() is not None
    assert len(store) == 1


@pytest.mark.asyncio
async def test_background_job_collects_periodically_and_stops() -> None:
    store = MetricsStore()
    job = MetricsCollectorJob(MeterRegistry(), store, interval_seconds=0.01)

    job.start()
    assert job.running
    await asyncio.sleep(0.1)
    await job.stop()

    assert not job.running
    assert len(store) >= 1
    collected = len(store)
    await asyncio.sleep(0.05)
    assert len(store) == collected
