"""
Infrastructure package for the Computer Catalog service.

Centralizes database connectivity concerns (the primary/replica pools and the
transaction combinator). Keep this layer focused on I/O and resource
management, decoupled from query and HTTP logic.
"""

from computer_catalog.infrastructure.db_factory import (
    PRIMARY_CLIENT_NAME,
    REPLICA_CLIENT_NAME,
    DataSources,
    open_pool,
    pool_usage,
    with_transaction,
)

__all__ = [
    "PRIMARY_CLIENT_NAME",
    "REPLICA_CLIENT_NAME",
    "DataSources",
    "open_pool",
    "pool_usage",
    "with_transaction",
]
