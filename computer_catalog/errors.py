"""
Typed errors surfaced by the catalog services.

Services raise these; the HTTP layer maps them to status codes through a single
exception handler (see `computer_catalog.app`). Cancellation is never
wrapped: `asyncio.CancelledError` propagates untouched so open transactions roll
back and no response is written.
"""

from __future__ import annotations


class CatalogError(Exception):
    """Base class for all catalog errors."""

    status_code: int = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(CatalogError):
    """Malformed body, bad name, non-positive limit, bad path parameter."""

    status_code = 400


class ComputerNotFoundError(CatalogError):
    """Nothing matched a delete-by-name."""

    status_code = 404


class DescriptionSerializationError(CatalogError):
    """The description could not be encoded for storage."""


class StorageError(CatalogError):
    """Driver/connection failure, constraint violation or rolled back transaction."""


__all__ = [
    "CatalogError",
    "InvalidInputError",
    "ComputerNotFoundError",
    "DescriptionSerializationError",
    "StorageError",
]
