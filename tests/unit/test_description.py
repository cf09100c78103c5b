from __future__ import annotations

import json
from decimal import Decimal

import pytest

from computer_catalog.domain.description import (
    ComputerDescription,
    Ram,
    VideoCard,
    decode_description,
    encode_description,
)
from computer_catalog.errors import DescriptionSerializationError, InvalidInputError


def test_decode_reads_wire_names(build_payload) -> None:
    desc = decode_description(json.dumps(build_payload))

    assert desc.name == "Gamer X"
    assert desc.price == Decimal("7999.9")
    assert desc.video_card.model == "GeForce RTX 4070 Super"
    assert desc.ram.total_gb == 32
    assert len(desc.ram.modules) == 2
    assert desc.ram.modules[0].generation == "DDR5"
    assert desc.power_supply.wattage == 750
    assert desc.notes == "white build"


def test_decode_tolerates_absent_sections() -> None:
    desc = decode_description('{"name": "Office", "price": 1500}')

    assert desc.video_card is None
    assert desc.ram is None
    assert desc.case is None


def test_decode_ignores_unknown_keys() -> None:
    desc = decode_description('{"name": "Office", "price": 1500, "rgb": true}')
    assert desc.name == "Office"


def test_encode_omits_absent_fields_and_uses_wire_names() -> None:
    desc = ComputerDescription(
        name="Mini",
        price=Decimal("2500.50"),
        video_card=VideoCard(model="Arc A770"),
        ram=Ram(total_gb=16),
    )

    document = json.loads(encode_description(desc))

    assert document == {
        "name": "Mini",
        "price": 2500.5,
        "placa_video": {"modelo": "Arc A770"},
        "memoria_ram": {"capacidade_total_gb": 16},
    }


def test_integral_price_is_encoded_as_integer() -> None:
    desc = ComputerDescription(name="Budget", price=Decimal("1200"))
    assert json.loads(encode_description(desc))["price"] == 1200
    assert '"price":1200' in encode_description(desc)


def test_decode_of_encode_restores_value(build_payload) -> None:
    desc = decode_description(json.dumps(build_payload))
    assert decode_description(encode_description(desc)) == desc


def test_malformed_json_is_invalid_input() -> None:
    with pytest.raises(InvalidInputError):
        decode_description("{not json")


def test_missing_name_is_invalid_input() -> None:
    with pytest.raises(InvalidInputError) as excinfo:
        decode_description('{"price": 10}')
    assert "name" in excinfo.value.message
    assert excinfo.value.status_code == 400


@pytest.mark.parametrize(
    "document",
    [
        '{"name": "x", "price": -1}',
        '{"name": "x", "price": 1, "memoria_ram": {"capacidade_total_gb": -8}}',
        '{"name": "x", "price": 1, "placa_video": {"memoria_gb": -2}}',
    ],
)
def test_negative_numbers_are_rejected(document: str) -> None:
    with pytest.raises(InvalidInputError):
        decode_description(document)


def test_serialization_failure_is_wrapped(monkeypatch) -> None:
    desc = ComputerDescription(name="Broken", price=Decimal("1"))

    def boom(*args, **kwargs):
        raise TypeError("not serializable")

    monkeypatch.setattr(ComputerDescription, "model_dump_json", boom)

    with pytest.raises(DescriptionSerializationError) as excinfo:
        encode_description(desc)
    assert excinfo.value.status_code == 500


@pytest.mark.parametrize(
    "literal",
    ["1999.999999999999999", "12345678901234567.89", "0.000000000000000001"],
)
def test_decode_keeps_every_price_digit(literal: str) -> None:
    desc = decode_description(f'{{"name": "box", "price": {literal}}}')
    assert desc.price == Decimal(literal)


def test_encode_writes_exact_price_literal() -> None:
    desc = decode_description('{"name": "box", "price": 12345678901234567.89}')

    document = encode_description(desc)

    assert '"price":12345678901234567.89' in document
    assert json.loads(document, parse_float=Decimal)["price"] == Decimal("12345678901234567.89")
    assert decode_description(document).price == Decimal("12345678901234567.89")


def test_non_object_document_is_invalid_input() -> None:
    with pytest.raises(InvalidInputError):
        decode_description("[1, 2, 3]")
