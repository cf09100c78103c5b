"""MeterRegistry - the process-wide counters and gauges the collector samples.

Backed by a dedicated `prometheus_client.CollectorRegistry`. Meters are known
by their logical dotted names (`http.server.requests`, `postgresql.current`,
`postgresql.queue.size`), mapped onto Prometheus-legal names by replacing dots
with underscores. Readers select meters by name and tags and get the sum over
every matching series; a meter that does not exist yet sums to 0.

Writers:
- the HTTP middleware increments `http.server.requests{method,uri,status}`;
- each pool is bound once at startup and reports its in-use and queued counts
  through callback gauges tagged `clientName`.
"""

from __future__ import annotations

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest
from psycopg_pool import AsyncConnectionPool

from computer_catalog.infrastructure.db_factory import pool_usage

HTTP_SERVER_REQUESTS = "http.server.requests"
POOL_CURRENT = "postgresql.current"
POOL_QUEUE_SIZE = "postgresql.queue.size"
CLIENT_NAME_TAG = "clientName"


def prometheus_name(meter_name: str) -> str:
    return meter_name.replace(".", "_")


class MeterRegistry:
    """Counters and gauges for the request pipeline and the two pools."""

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        self.registry = registry or CollectorRegistry()
        self.http_requests = Counter(
            prometheus_name(HTTP_SERVER_REQUESTS),
            "Completed HTTP server requests",
            ["method", "uri", "status"],
            registry=self.registry,
        )
        self.pool_current = Gauge(
            prometheus_name(POOL_CURRENT),
            "Connections currently borrowed from the pool",
            [CLIENT_NAME_TAG],
            registry=self.registry,
        )
        self.pool_queue_size = Gauge(
            prometheus_name(POOL_QUEUE_SIZE),
            "Callers waiting for a pool connection",
            [CLIENT_NAME_TAG],
            registry=self.registry,
        )

    def record_request(self, method: str, uri: str, status_code: int) -> None:
        """Count one completed HTTP request."""
        self.http_requests.labels(
            method=method.upper(), uri=uri, status=str(status_code)
        ).inc()

    def bind_pool(self, pool: AsyncConnectionPool, client_name: str) -> None:
        """Expose a pool's in-use and pending counts as gauges, read on demand."""
        self.pool_current.labels(**{CLIENT_NAME_TAG: client_name}).set_function(
            lambda: pool_usage(pool)[0]
        )
        self.pool_queue_size.labels(**{CLIENT_NAME_TAG: client_name}).set_function(
            lambda: pool_usage(pool)[1]
        )

    def sum(self, meter_name: str, **tags: str) -> float:
        """
        Sum the current value of every series of `meter_name` whose tags match.

        Counters contribute their running total (never reset); gauges their
        current reading. Unknown meters and unmatched tags give 0.
        """
        base = prometheus_name(meter_name)
        accepted = {base, f"{base}_total"}
        total = 0.0
        for family in self.registry.collect():
            if family.name != base:
                continue
            for sample in family.samples:
                if sample.name not in accepted:
                    continue
                if all(sample.labels.get(key) == value for key, value in tags.items()):
                    total += sample.value
        return total

    def exposition(self) -> bytes:
        """Prometheus text exposition of every meter."""
        return generate_latest(self.registry)


__all__ = [
    "CLIENT_NAME_TAG",
    "HTTP_SERVER_REQUESTS",
    "POOL_CURRENT",
    "POOL_QUEUE_SIZE",
    "MeterRegistry",
    "prometheus_name",
]
