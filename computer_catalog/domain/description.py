"""
Typed description of a computer build, stored as-is in the `description` jsonb column.

The wire keys are the snake_case Portuguese names the catalog has always used
(`placa_video`, `memoria_ram`, ...); Python attributes are English and bound to
those keys through aliases. Every section and every field inside it is optional;
only the top-level `name` and `price` are required. Absent fields are omitted
on encode so they round-trip as absent.
"""

from __future__ import annotations

import json
from decimal import Decimal
from typing import Annotated, Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, ValidationError
from pydantic_core import PydanticSerializationError

from computer_catalog.errors import DescriptionSerializationError, InvalidInputError

NonNegativeInt = Annotated[int, Field(ge=0)]


def _decimal_to_number(value: Decimal) -> Union[int, float]:
    """
    Prices travel as JSON numbers, not strings.

    Response bodies carry float precision; the stored document keeps the exact
    literal (see `encode_description`).
    """
    if value == value.to_integral_value():
        return int(value)
    return float(value)


Price = Annotated[
    Decimal,
    Field(ge=0),
    PlainSerializer(_decimal_to_number, return_type=Any, when_used="json"),
]


class _Section(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class PowerSupply(_Section):
    model: Optional[str] = Field(None, alias="modelo")
    wattage: Optional[NonNegativeInt] = Field(None, alias="potencia_watts")
    certification: Optional[str] = Field(None, alias="certificacao")  # 80 Plus Bronze..Titanium
    modular: Optional[bool] = Field(None, alias="modular")
    manufacturer: Optional[str] = Field(None, alias="fabricante")


class Motherboard(_Section):
    model: Optional[str] = Field(None, alias="modelo")
    manufacturer: Optional[str] = Field(None, alias="fabricante")
    socket: Optional[str] = Field(None, alias="socket")
    chipset: Optional[str] = Field(None, alias="chipset")
    form_factor: Optional[str] = Field(None, alias="formato")
    ram_slots: Optional[NonNegativeInt] = Field(None, alias="slots_ram")
    max_ram_gb: Optional[NonNegativeInt] = Field(None, alias="ram_max_gb")
    pcie_slots: Optional[NonNegativeInt] = Field(None, alias="slots_pcie")


class VideoCard(_Section):
    model: Optional[str] = Field(None, alias="modelo")
    manufacturer: Optional[str] = Field(None, alias="fabricante")
    chipset: Optional[str] = Field(None, alias="chipset")
    memory_gb: Optional[NonNegativeInt] = Field(None, alias="memoria_gb")
    memory_type: Optional[str] = Field(None, alias="tipo_memoria")
    clock_mhz: Optional[NonNegativeInt] = Field(None, alias="clock_mhz")
    tdp_watts: Optional[NonNegativeInt] = Field(None, alias="tdp_watts")
    bus_interface: Optional[str] = Field(None, alias="interface")


class RamModule(_Section):
    model: Optional[str] = Field(None, alias="modelo")
    manufacturer: Optional[str] = Field(None, alias="fabricante")
    capacity_gb: Optional[NonNegativeInt] = Field(None, alias="capacidade_gb")
    generation: Optional[str] = Field(None, alias="tipo")  # DDR4, DDR5
    frequency_mhz: Optional[NonNegativeInt] = Field(None, alias="frequencia_mhz")
    latency: Optional[str] = Field(None, alias="latencia")  # CL16, CL30


class Ram(_Section):
    total_gb: Optional[NonNegativeInt] = Field(None, alias="capacidade_total_gb")
    modules: Optional[List[RamModule]] = Field(None, alias="modulos")


class StorageDevice(_Section):
    model: Optional[str] = Field(None, alias="modelo")
    manufacturer: Optional[str] = Field(None, alias="fabricante")
    kind: Optional[str] = Field(None, alias="tipo")  # SSD, HDD, NVMe
    capacity_gb: Optional[NonNegativeInt] = Field(None, alias="capacidade_gb")
    bus_interface: Optional[str] = Field(None, alias="interface")
    read_mbps: Optional[NonNegativeInt] = Field(None, alias="velocidade_leitura_mbps")
    write_mbps: Optional[NonNegativeInt] = Field(None, alias="velocidade_escrita_mbps")


class Storage(_Section):
    total_gb: Optional[NonNegativeInt] = Field(None, alias="capacidade_total_gb")
    devices: Optional[List[StorageDevice]] = Field(None, alias="dispositivos")


class Ventilation(_Section):
    included_fans: Optional[NonNegativeInt] = Field(None, alias="coolers_inclusos")
    radiator_support: Optional[str] = Field(None, alias="suporte_radiador")  # 240mm, 360mm
    front_fan_slots: Optional[NonNegativeInt] = Field(None, alias="slots_ventilacao_frontal")
    top_fan_slots: Optional[NonNegativeInt] = Field(None, alias="slots_ventilacao_superior")
    rear_fan_slots: Optional[NonNegativeInt] = Field(None, alias="slots_ventilacao_traseira")


class Case(_Section):
    model: Optional[str] = Field(None, alias="modelo")
    manufacturer: Optional[str] = Field(None, alias="fabricante")
    kind: Optional[str] = Field(None, alias="tipo")  # Full Tower, Mid Tower, SFF
    color: Optional[str] = Field(None, alias="cor")
    material: Optional[str] = Field(None, alias="material")
    motherboard_support: Optional[str] = Field(None, alias="tamanho_placa_mae_suportado")
    expansion_slots: Optional[NonNegativeInt] = Field(None, alias="slots_expansao")
    bays_35: Optional[NonNegativeInt] = Field(None, alias="baias_35_polegadas")
    bays_25: Optional[NonNegativeInt] = Field(None, alias="baias_25_polegadas")
    ventilation: Optional[Ventilation] = Field(None, alias="ventilacao")


class ComputerDescription(_Section):
    """
    Full description of a build as accepted by `POST /computer`.

    `name` and `price` are echoed into the row's own columns; the whole
    document (including them) lands in `description`.
    """

    name: str = Field(..., alias="name")
    price: Price = Field(..., alias="price")
    power_supply: Optional[PowerSupply] = Field(None, alias="fonte")
    motherboard: Optional[Motherboard] = Field(None, alias="placa_mae")
    video_card: Optional[VideoCard] = Field(None, alias="placa_video")
    ram: Optional[Ram] = Field(None, alias="memoria_ram")
    storage: Optional[Storage] = Field(None, alias="armazenamento")
    case: Optional[Case] = Field(None, alias="gabinete")
    notes: Optional[str] = Field(None, alias="observacoes")


def encode_description(desc: ComputerDescription) -> str:
    """
    Serialize a description to its canonical JSON document.

    The price is written as the exact decimal literal, so no digits are lost
    between the request body and the stored document.

    Raises
    ------
    DescriptionSerializationError
        If the value cannot be rendered as JSON. This is a programming error,
        never a client one.
    """
    try:
        body = desc.model_dump_json(by_alias=True, exclude_none=True, exclude={"price"})
    except (PydanticSerializationError, TypeError, ValueError) as exc:
        raise DescriptionSerializationError("could not serialize computer description") from exc
    # `name` is required, so the body always holds at least one member
    return '{"price":' + str(desc.price) + "," + body[1:]


def decode_description(raw: Union[str, bytes, bytearray]) -> ComputerDescription:
    """
    Parse a JSON document into a description, tolerating absent optional fields.

    Fractional numbers are read as `Decimal` so prices keep every digit.

    Raises
    ------
    InvalidInputError
        On malformed JSON or a document that violates the schema.
    """
    try:
        document = json.loads(raw, parse_float=Decimal)
    except ValueError as exc:
        raise InvalidInputError(f"malformed computer description: {exc}") from exc
    try:
        return ComputerDescription.model_validate(document)
    except ValidationError as exc:
        raise InvalidInputError(_summarize(exc)) from exc


def _summarize(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "body"
    return f"invalid computer description at '{location}': {first.get('msg', 'invalid value')}"


__all__ = [
    "PowerSupply",
    "Motherboard",
    "VideoCard",
    "RamModule",
    "Ram",
    "StorageDevice",
    "Storage",
    "Ventilation",
    "Case",
    "ComputerDescription",
    "encode_description",
    "decode_description",
]
