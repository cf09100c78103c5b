"""
Domain package for the Computer Catalog service.

Exports the persisted record and the typed build description.
Keep this package focused on data definitions and validation concerns.
"""

from computer_catalog.domain.description import (
    ComputerDescription,
    decode_description,
    encode_description,
)
from computer_catalog.domain.models import Computer

__all__ = [
    "Computer",
    "ComputerDescription",
    "decode_description",
    "encode_description",
]
