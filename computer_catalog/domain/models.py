"""
Domain models for the Computer Catalog service.

Defines the persisted record schema aligned with `db/init.sql`. The record is
a plain frozen value; the datasource it came from lives in the services, not
on the model.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from computer_catalog.domain.description import Price


class Computer(BaseModel):
    """
    Representation of a single row in the `computers` table.
    """

    id: int = Field(..., description="Primary key (BIGSERIAL).")
    name: str = Field(..., max_length=40, description="Short identifying name.")
    price: Optional[Price] = Field(None, description="Numeric price.")
    description: Optional[str] = Field(
        None, description="Raw JSON document stored in the jsonb column."
    )
    created_at: Optional[datetime] = Field(None, description="Row creation timestamp.")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "arbitrary_types_allowed": False,
    }


__all__ = ["Computer"]
