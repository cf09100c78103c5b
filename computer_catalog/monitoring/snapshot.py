"""Immutable sample of HTTP and connection-pool metrics at one instant."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

# Fixed width so that string order equals time order.
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utc_timestamp(now: datetime | None = None) -> str:
    """ISO-8601 UTC instant, microsecond precision, `Z` suffix."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


class MetricsSnapshot(BaseModel):
    """
    One collector tick: HTTP read/write totals plus in-use and pending
    connection counts for the primary and replica pools.

    Serialized with the camelCase names the dashboard consumes.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timestamp: str
    http_reads: float = Field(0.0, ge=0, alias="httpReads")
    http_writes: float = Field(0.0, ge=0, alias="httpWrites")
    primary_pool_in_use: float = Field(0.0, ge=0, alias="primaryPoolInUse")
    primary_pool_pending: float = Field(0.0, ge=0, alias="primaryPoolPending")
    replica_pool_in_use: float = Field(0.0, ge=0, alias="replicaPoolInUse")
    replica_pool_pending: float = Field(0.0, ge=0, alias="replicaPoolPending")

    @classmethod
    def of(
        cls,
        http_reads: float,
        http_writes: float,
        primary_in_use: float,
        primary_pending: float,
        replica_in_use: float,
        replica_pending: float,
    ) -> "MetricsSnapshot":
        """Stamp the current instant on a new snapshot. Negative readings count as 0."""
        return cls(
            timestamp=utc_timestamp(),
            http_reads=max(0.0, float(http_reads)),
            http_writes=max(0.0, float(http_writes)),
            primary_pool_in_use=max(0.0, float(primary_in_use)),
            primary_pool_pending=max(0.0, float(primary_pending)),
            replica_pool_in_use=max(0.0, float(replica_in_use)),
            replica_pool_pending=max(0.0, float(replica_pending)),
        )


__all__ = ["MetricsSnapshot", "TIMESTAMP_FORMAT", "utc_timestamp"]
