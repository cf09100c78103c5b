"""Computer catalog REST endpoints.

Reads go to the replica-bound service and never open a transaction; writes go
to the primary-bound service, which wraps each call in its own transaction.
Typed service errors are turned into status codes by the app-level handlers.
"""

from __future__ import annotations

from datetime import datetime
from typing import AsyncIterator, List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.responses import StreamingResponse

from computer_catalog.api.dependencies import get_reader, get_writer
from computer_catalog.domain.description import decode_description
from computer_catalog.domain.models import Computer
from computer_catalog.errors import ComputerNotFoundError
from computer_catalog.services.abstract import ComputerReader, ComputerWriter
from computer_catalog.services.read_service import BIGINT_MAX, BIGINT_MIN

router = APIRouter(prefix="/computer", tags=["computers"])


@router.get("", response_model=List[Computer])
async def list_computers(reader: ComputerReader = Depends(get_reader)):
    """All computers, in id order."""
    return await reader.list_all()


@router.post("", status_code=status.HTTP_201_CREATED, response_model=Computer)
async def create_computer(request: Request, writer: ComputerWriter = Depends(get_writer)):
    """Create a computer from a full description document.

    The body is decoded by hand so that malformed JSON and schema violations
    both surface as 400 rather than FastAPI's 422.
    """
    desc = decode_description(await request.body())
    return await writer.create(desc)


@router.get("/stream")
async def stream_computers(reader: ComputerReader = Depends(get_reader)):
    """All computers as newline-delimited JSON, one row at a time."""
    rows = reader.stream_all().__aiter__()
    # Pull the first row eagerly so storage failures still map to a status code
    try:
        first: Optional[Computer] = await rows.__anext__()
    except StopAsyncIteration:
        first = None

    async def body() -> AsyncIterator[str]:
        # A client that disconnects mid-stream must not pin the replica connection
        try:
            if first is None:
                return
            yield first.model_dump_json() + "\n"
            async for computer in rows:
                yield computer.model_dump_json() + "\n"
        finally:
            await rows.aclose()

    return StreamingResponse(body(), media_type="application/x-ndjson")


@router.get("/search/gpu/{search}", response_model=List[Computer])
async def search_gpu(search: str, reader: ComputerReader = Depends(get_reader)):
    """Computers whose video card model contains `search`, case-insensitively."""
    return await reader.search_by_gpu(search)


@router.get("/search/ram/{capacity}", response_model=List[Computer])
async def search_ram(capacity: int, reader: ComputerReader = Depends(get_reader)):
    """Computers with exactly `capacity` GB of RAM in total."""
    return await reader.search_by_ram_capacity(capacity)


@router.get("/pagination", response_model=List[Computer])
async def paginate(
    created_at: Optional[datetime] = Query(None, alias="createdAt"),
    id: Optional[int] = Query(None, ge=BIGINT_MIN, le=BIGINT_MAX),
    limit: int = Query(20, le=BIGINT_MAX),
    reader: ComputerReader = Depends(get_reader),
):
    """Keyset page, newest first.

    Feed the `created_at` and `id` of the last row back as `createdAt` and
    `id` to fetch the next page.
    """
    return await reader.paginate(created_at=created_at, id=id, limit=limit)


@router.delete("/{name}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_computer(name: str, writer: ComputerWriter = Depends(get_writer)):
    """Delete every computer named `name`; 404 when none matched."""
    deleted = await writer.delete_by_name(name)
    if deleted == 0:
        raise ComputerNotFoundError(f"no computer named '{name}'")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
