"""SSR dashboard endpoints (Scheduled Service Report).

GET /ssr       -> self-contained HTML page charting the snapshot history
GET /ssr/data  -> the current snapshot history as JSON, oldest first
GET /metrics   -> Prometheus exposition of the underlying meters
"""

from __future__ import annotations

from functools import lru_cache
from importlib import resources
from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST

from computer_catalog.api.dependencies import get_meters, get_metrics_store
from computer_catalog.monitoring.registry import MeterRegistry
from computer_catalog.monitoring.snapshot import MetricsSnapshot
from computer_catalog.monitoring.store import MetricsStore

router = APIRouter(tags=["monitoring"])


@lru_cache(maxsize=1)
def dashboard_html() -> str:
    """The dashboard page shipped as package data."""
    return (resources.files("computer_catalog") / "static" / "ssr.html").read_text(encoding="utf-8")


@router.get("/ssr", response_class=HTMLResponse)
async def dashboard():
    return HTMLResponse(dashboard_html())


@router.get("/ssr/data", response_model=List[MetricsSnapshot])
async def dashboard_data(store: MetricsStore = Depends(get_metrics_store)):
    return store.get_all()


@router.get("/metrics")
async def prometheus_metrics(meters: MeterRegistry = Depends(get_meters)):
    return Response(meters.exposition(), media_type=CONTENT_TYPE_LATEST)


__all__ = ["dashboard_html", "router"]
