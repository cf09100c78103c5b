"""
Row mapper: turns a `dict_row` from the `computers` table into a `Computer`.

Pure function of its input; it neither reads settings nor touches a pool.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, List, Mapping

from computer_catalog.domain.models import Computer


def _raw_description(value: Any) -> str | None:
    # Queries cast the column to text; a driver-decoded jsonb value is re-rendered.
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8")
    return json.dumps(value)


def map_row(row: Mapping[str, Any]) -> Computer:
    """
    Build a `Computer` from a row exposing `id`, `name`, `price`,
    `description` and `created_at`.
    """
    return Computer(
        id=row["id"],
        name=row["name"],
        price=row.get("price"),
        description=_raw_description(row.get("description")),
        created_at=row.get("created_at"),
    )


def map_rows(rows: Iterable[Mapping[str, Any]]) -> List[Computer]:
    return [map_row(row) for row in rows]


__all__ = ["map_row", "map_rows"]
