from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal

from computer_catalog.domain.models import Computer
from computer_catalog.services.row_mapper import map_row, map_rows

CREATED_AT = datetime(2024, 5, 1, 12, 30, 0)


def _row(**overrides):
    row = {
        "id": 7,
        "name": "Gamer X",
        "price": Decimal("7999.90"),
        "description": '{"name": "Gamer X", "price": 7999.9}',
        "created_at": CREATED_AT,
    }
    row.update(overrides)
    return row


def test_map_row_copies_columns() -> None:
    computer = map_row(_row())

    assert isinstance(computer, Computer)
    assert computer.id == 7
    assert computer.name == "Gamer X"
    assert computer.price == Decimal("7999.90")
    assert computer.description == '{"name": "Gamer X", "price": 7999.9}'
    assert computer.created_at == CREATED_AT


def test_map_row_reserializes_decoded_json() -> None:
    computer = map_row(_row(description={"name": "Gamer X", "placa_video": {"modelo": "RX 7600"}}))
    assert json.loads(computer.description) == {
        "name": "Gamer X",
        "placa_video": {"modelo": "RX 7600"},
    }


def test_map_row_keeps_nulls() -> None:
    computer = map_row(_row(price=None, description=None))
    assert computer.price is None
    assert computer.description is None


def test_price_serializes_as_json_number() -> None:
    payload = json.loads(map_row(_row()).model_dump_json())
    assert payload["price"] == 7999.9


def test_map_rows_preserves_order() -> None:
    computers = map_rows([_row(id=3), _row(id=1), _row(id=2)])
    assert [c.id for c in computers] == [3, 1, 2]
