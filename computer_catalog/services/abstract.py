"""
Service interfaces for the catalog read and write paths.

The HTTP layer depends on these protocols rather than on the concrete
psycopg-backed classes, so handlers can be exercised with in-memory fakes.
"""

from __future__ import annotations

from datetime import datetime
from typing import AsyncGenerator, List, Optional, Protocol, runtime_checkable

from computer_catalog.domain.description import ComputerDescription
from computer_catalog.domain.models import Computer


@runtime_checkable
class ComputerReader(Protocol):
    """
    Read-only queries, served from the replica.
    """

    async def list_all(self) -> List[Computer]:
        ...

    def stream_all(self) -> AsyncGenerator[Computer, None]:
        ...

    async def paginate(
        self,
        created_at: Optional[datetime] = None,
        id: Optional[int] = None,
        limit: int = 20,
    ) -> List[Computer]:
        ...

    async def search_by_gpu(self, search: str) -> List[Computer]:
        ...

    async def search_by_ram_capacity(self, capacity_gb: int) -> List[Computer]:
        ...


@runtime_checkable
class ComputerWriter(Protocol):
    """
    Transactional mutations, applied on the primary.
    """

    async def create(self, desc: ComputerDescription) -> Computer:
        ...

    async def delete_by_name(self, name: str) -> int:
        ...


__all__ = ["ComputerReader", "ComputerWriter"]
