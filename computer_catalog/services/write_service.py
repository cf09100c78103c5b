"""
Write path of the catalog, bound to the primary pool.

Every operation runs inside `with_transaction`, scoped to the single call: it
commits only when the statement succeeded and rolls back on any error or on
cancellation of the calling task.
"""

from __future__ import annotations

import hashlib
from typing import Any, Callable, Mapping

import psycopg
from psycopg import AsyncConnection
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from computer_catalog.domain.description import ComputerDescription, encode_description
from computer_catalog.domain.models import Computer
from computer_catalog.errors import (
    DescriptionSerializationError,
    InvalidInputError,
    StorageError,
)
from computer_catalog.infrastructure.db_factory import with_transaction
from computer_catalog.services.row_mapper import map_row
from computer_catalog.utils.logging import get_logger

log = get_logger(__name__)

NAME_MAX_LENGTH = 40

INSERT_SQL = """
    INSERT INTO computers (name, price, description)
    VALUES (%(name)s, %(price)s, %(description)s::jsonb)
    RETURNING id, name, price, description::text AS description, created_at
"""

DELETE_BY_NAME_SQL = "DELETE FROM computers WHERE name = %(name)s"


def validate_name(name: Any) -> str:
    """
    Check a computer name: present, non-blank, at most 40 characters.

    Raises
    ------
    InvalidInputError
        If the name is unusable as a row name.
    """
    if not isinstance(name, str) or not name.strip():
        raise InvalidInputError("name is required")
    if len(name) > NAME_MAX_LENGTH:
        raise InvalidInputError(
            f"name must be at most {NAME_MAX_LENGTH} characters, got {len(name)}"
        )
    return name


def payload_fingerprint(desc: ComputerDescription) -> str:
    """Short, stable digest identifying a payload in logs without leaking it."""
    return hashlib.sha256(repr(desc).encode("utf-8")).hexdigest()[:16]


class ComputerWriteService:
    """
    Mutations over the primary datasource.

    Parameters
    ----------
    pool : AsyncConnectionPool
        The primary pool. The replica must never be passed here.
    mapper : callable
        Row mapper used on the `RETURNING` row of an insert.
    """

    def __init__(
        self,
        pool: AsyncConnectionPool,
        mapper: Callable[[Mapping[str, Any]], Computer] = map_row,
    ) -> None:
        self._pool = pool
        self._mapper = mapper

    async def create(self, desc: ComputerDescription) -> Computer:
        """
        Insert a computer built from a description and return the stored row.

        `name` and `price` come from the top level of the payload; the whole
        payload is serialized into `description`.

        Raises
        ------
        InvalidInputError
            If the name is missing, blank or longer than 40 characters.
        DescriptionSerializationError
            If the payload cannot be encoded.
        StorageError
            On any driver failure; the transaction is rolled back.
        """
        name = validate_name(desc.name)
        try:
            document = encode_description(desc)
        except DescriptionSerializationError:
            log.error(
                "Computer description could not be serialized",
                extra={"fingerprint": payload_fingerprint(desc)},
            )
            raise

        params = {"name": name, "price": desc.price, "description": document}

        async def insert(conn: AsyncConnection) -> Mapping[str, Any]:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(INSERT_SQL, params)
                return await cur.fetchone()

        try:
            row = await with_transaction(self._pool, insert)
        except psycopg.Error as exc:
            log.exception("Insert on primary failed", extra={"computer_name": name})
            raise StorageError("could not store computer") from exc

        computer = self._mapper(row)
        log.info("Computer created", extra={"computer_id": computer.id, "computer_name": name})
        return computer

    async def delete_by_name(self, name: str) -> int:
        """
        Delete every computer with this exact name.

        Returns
        -------
        int
            Number of rows removed; 0 means nothing matched.
        """

        async def delete(conn: AsyncConnection) -> int:
            async with conn.cursor() as cur:
                await cur.execute(DELETE_BY_NAME_SQL, {"name": name})
                return cur.rowcount

        try:
            deleted = await with_transaction(self._pool, delete)
        except psycopg.Error as exc:
            log.exception("Delete on primary failed", extra={"computer_name": name})
            raise StorageError("could not delete computer") from exc

        log.info("Computers deleted", extra={"computer_name": name, "deleted": deleted})
        return max(deleted, 0)


__all__ = [
    "ComputerWriteService",
    "DELETE_BY_NAME_SQL",
    "INSERT_SQL",
    "NAME_MAX_LENGTH",
    "payload_fingerprint",
    "validate_name",
]
