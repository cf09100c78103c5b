"""
Read path of the catalog, bound to the replica pool.

Every query here is read-only, runs on a connection borrowed from the replica
and never opens an explicit transaction. Replica reads may trail primary
writes; callers accept eventual consistency.

Query shapes:
- list / stream: plain scan in primary-key order.
- keyset pagination over `(created_at, id)`, newest first.
- JSON path projections into `description` for GPU model and RAM capacity.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, AsyncGenerator, Callable, List, Mapping, Optional

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from computer_catalog.domain.models import Computer
from computer_catalog.errors import InvalidInputError, StorageError
from computer_catalog.services.row_mapper import map_row
from computer_catalog.utils.logging import get_logger

log = get_logger(__name__)

# Postgres bigint range, the type of `computers.id`
BIGINT_MIN = -9223372036854775808
BIGINT_MAX = 9223372036854775807

_COLUMNS = "id, name, price, description::text AS description, created_at"

SELECT_ALL_SQL = f"SELECT {_COLUMNS} FROM computers ORDER BY id"

PAGINATE_SQL = f"""
    SELECT {_COLUMNS}
    FROM computers
    WHERE created_at < COALESCE(%(created_at)s::timestamp, LOCALTIMESTAMP)
       OR (
            created_at = COALESCE(%(created_at)s::timestamp, LOCALTIMESTAMP)
            AND id < COALESCE(%(id)s::bigint, {BIGINT_MAX})
       )
    ORDER BY created_at DESC, id DESC
    LIMIT %(limit)s
"""

SEARCH_GPU_SQL = f"""
    SELECT {_COLUMNS}
    FROM computers
    WHERE (description -> 'placa_video' ->> 'modelo') ILIKE ('%%' || %(q)s || '%%')
    ORDER BY id
"""

# Non-integer or absent projections yield NULL, which never equals the target.
SEARCH_RAM_SQL = f"""
    SELECT {_COLUMNS}
    FROM computers
    WHERE CASE
            WHEN (description -> 'memoria_ram' ->> 'capacidade_total_gb') ~ '^-?[0-9]{{1,9}}$'
            THEN (description -> 'memoria_ram' ->> 'capacidade_total_gb')::int
          END = %(gb)s
    ORDER BY id
"""


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so user input only ever matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class ComputerReadService:
    """
    Queries over the replica datasource.

    Parameters
    ----------
    pool : AsyncConnectionPool
        The replica pool. The primary must never be passed here.
    mapper : callable
        Row mapper turning a `dict_row` into a `Computer`.
    """

    def __init__(
        self,
        pool: AsyncConnectionPool,
        mapper: Callable[[Mapping[str, Any]], Computer] = map_row,
    ) -> None:
        self._pool = pool
        self._mapper = mapper

    async def _fetch(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> List[Computer]:
        try:
            async with self._pool.connection() as conn:
                async with conn.cursor(row_factory=dict_row) as cur:
                    await cur.execute(sql, params)
                    rows = await cur.fetchall()
        except psycopg.Error as exc:
            log.exception("Replica query failed")
            raise StorageError("replica query failed") from exc
        return [self._mapper(row) for row in rows]

    async def list_all(self) -> List[Computer]:
        return await self._fetch(SELECT_ALL_SQL)

    async def stream_all(self) -> AsyncGenerator[Computer, None]:
        """
        Yield computers one at a time as rows arrive from the server.

        The result set is never materialized. The iterator is finite and
        cannot be restarted; call again for a fresh scan.
        """
        try:
            async with self._pool.connection() as conn:
                async with conn.cursor(row_factory=dict_row) as cur:
                    async for row in cur.stream(SELECT_ALL_SQL):
                        yield self._mapper(row)
        except psycopg.Error as exc:
            log.exception("Replica stream failed")
            raise StorageError("replica stream failed") from exc

    async def paginate(
        self,
        created_at: Optional[datetime] = None,
        id: Optional[int] = None,
        limit: int = 20,
    ) -> List[Computer]:
        """
        Keyset pagination over `(created_at, id)`, newest first.

        Pass the `(created_at, id)` of the last row of a page to get the next
        one. A missing `created_at` means "now", a missing `id` means no upper
        bound on the id.

        Raises
        ------
        InvalidInputError
            If `limit` is not positive.
        """
        if limit <= 0:
            raise InvalidInputError(f"limit must be positive, got {limit}")
        return await self._fetch(
            PAGINATE_SQL, {"created_at": created_at, "id": id, "limit": limit}
        )

    async def search_by_gpu(self, search: str) -> List[Computer]:
        """Case-insensitive substring match on `placa_video.modelo`."""
        return await self._fetch(SEARCH_GPU_SQL, {"q": escape_like(search)})

    async def search_by_ram_capacity(self, capacity_gb: int) -> List[Computer]:
        """Exact match on `memoria_ram.capacidade_total_gb`."""
        return await self._fetch(SEARCH_RAM_SQL, {"gb": capacity_gb})


__all__ = [
    "BIGINT_MAX",
    "BIGINT_MIN",
    "ComputerReadService",
    "escape_like",
    "PAGINATE_SQL",
    "SEARCH_GPU_SQL",
    "SEARCH_RAM_SQL",
    "SELECT_ALL_SQL",
]
