"""
Services package for the Computer Catalog.

Re-exports the service interfaces and the replica/primary-bound
implementations so downstream code can import from
`computer_catalog.services` directly.
"""

from computer_catalog.services.abstract import ComputerReader, ComputerWriter
from computer_catalog.services.read_service import ComputerReadService
from computer_catalog.services.row_mapper import map_row, map_rows
from computer_catalog.services.write_service import ComputerWriteService

__all__ = [
    # Interfaces
    "ComputerReader",
    "ComputerWriter",
    # Implementations
    "ComputerReadService",
    "ComputerWriteService",
    # Mapping
    "map_row",
    "map_rows",
]
