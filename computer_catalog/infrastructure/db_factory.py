"""
Datasource factory for the Computer Catalog service.

Owns the two independent async connection pools over the same logical dataset:
the primary (`<default>`) that takes every write, and the replica (`leitura`)
that serves every read. Pools are created once at startup and handed to the
services explicitly; nothing here is a process-wide singleton.

Includes retry logic for transient connection failures using tenacity, and the
`with_transaction` combinator used by the write path.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

import psycopg
from psycopg import AsyncConnection
from psycopg_pool import AsyncConnectionPool, PoolTimeout
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from computer_catalog.config import Settings, get_settings
from computer_catalog.utils.logging import get_logger

log = get_logger(__name__)

PRIMARY_CLIENT_NAME = "<default>"
REPLICA_CLIENT_NAME = "leitura"

T = TypeVar("T")


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, PoolTimeout)),
    reraise=True,
)
async def open_pool(
    conninfo: str,
    name: str,
    min_size: int = 1,
    max_size: int = 10,
    timeout: float = 30.0,
) -> AsyncConnectionPool:
    """
    Create and open an async connection pool with automatic retry.

    A pool that failed to open cannot be reopened, so every attempt builds a
    fresh one. Connections run in autocommit mode: reads never hold an implicit
    transaction, and writes open one explicitly through `with_transaction`.

    Parameters
    ----------
    conninfo : str
        libpq connection string or URL.
    name : str
        Logical datasource name, also used as the `clientName` metrics tag.
    min_size : int
        Minimum number of idle connections to keep.
    max_size : int
        Maximum total connections in the pool.
    timeout : float
        Seconds to wait for the pool to fill `min_size` and for a borrow.

    Raises
    ------
    PoolTimeout
        If the pool cannot reach `min_size` after all retry attempts.
    """
    pool = AsyncConnectionPool(
        conninfo=conninfo,
        min_size=min_size,
        max_size=max_size,
        name=name,
        timeout=timeout,
        kwargs={"autocommit": True},
        open=False,
    )
    await pool.open(wait=True, timeout=timeout)
    log.info("Connection pool opened", extra={"pool": name, "max_size": max_size})
    return pool


@dataclass
class DataSources:
    """
    The primary and replica pools, kept side by side but never mixed.

    Only the write service may borrow from `primary`; only the read service
    may borrow from `replica`.
    """

    primary: AsyncConnectionPool
    replica: AsyncConnectionPool

    @classmethod
    async def open(cls, settings: Optional[Settings] = None) -> "DataSources":
        settings = settings or get_settings()
        primary = await open_pool(
            settings.primary_database_url,
            name=PRIMARY_CLIENT_NAME,
            min_size=settings.primary_pool_min_size,
            max_size=settings.primary_pool_max_size,
            timeout=settings.pool_timeout_seconds,
        )
        try:
            replica = await open_pool(
                settings.replica_database_url,
                name=REPLICA_CLIENT_NAME,
                min_size=settings.replica_pool_min_size,
                max_size=settings.replica_pool_max_size,
                timeout=settings.pool_timeout_seconds,
            )
        except BaseException:
            await primary.close()
            raise
        return cls(primary=primary, replica=replica)

    async def close(self) -> None:
        """
        Close both pools and release their connections.
        """
        for pool in (self.replica, self.primary):
            await pool.close()
        log.info("Connection pools closed")


async def with_transaction(
    pool: AsyncConnectionPool, fn: Callable[[AsyncConnection], Awaitable[T]]
) -> T:
    """
    Run `fn` inside a transaction on a connection borrowed from `pool`.

    Commits when `fn` returns, rolls back when it raises, including on task
    cancellation. The connection goes back to the pool either way.

    Example
    -------
        async def insert(conn):
            await conn.execute("INSERT INTO computers (name) VALUES (%s)", ("box1",))

        await with_transaction(datasources.primary, insert)
    """
    async with pool.connection() as conn:
        async with conn.transaction():
            return await fn(conn)


def pool_usage(pool: AsyncConnectionPool) -> tuple[int, int]:
    """
    Return `(in_use, pending)` for a pool.

    `in_use` is the number of connections currently lent out and `pending`
    the number of callers queued for a connection.
    """
    stats = pool.get_stats()
    in_use = stats.get("pool_size", 0) - stats.get("pool_available", 0)
    return max(in_use, 0), max(stats.get("requests_waiting", 0), 0)


__all__ = [
    "PRIMARY_CLIENT_NAME",
    "REPLICA_CLIENT_NAME",
    "DataSources",
    "open_pool",
    "pool_usage",
    "with_transaction",
]
