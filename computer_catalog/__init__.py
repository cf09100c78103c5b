"""
Computer Catalog - HTTP service for computer build records.

Stores builds in PostgreSQL with a primary/replica split:

- Writes (create, delete by name) go to the primary inside a transaction
- Reads (list, stream, keyset pagination, GPU and RAM search) go to the replica
- Each build carries a free-form jsonb description queried by JSON path
- A scheduled collector samples HTTP and pool meters for the /ssr dashboard
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from computer_catalog.app import create_app
from computer_catalog.config import Settings, get_settings
from computer_catalog.domain import Computer, ComputerDescription
from computer_catalog.errors import (
    CatalogError,
    ComputerNotFoundError,
    DescriptionSerializationError,
    InvalidInputError,
    StorageError,
)
from computer_catalog.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Application
    "create_app",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "Computer",
    "ComputerDescription",
    # Errors
    "CatalogError",
    "ComputerNotFoundError",
    "DescriptionSerializationError",
    "InvalidInputError",
    "StorageError",
    # Logging
    "configure_logging",
    "get_logger",
]
