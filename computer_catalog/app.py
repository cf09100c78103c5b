"""
FastAPI application factory for the Computer Catalog service.

Wires the two datasources, the replica-bound read service, the primary-bound
write service, the HTTP request meter and the scheduled SSR metrics collector.

Run with:
    uvicorn computer_catalog.app:create_app --factory
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from computer_catalog import api
from computer_catalog.config import Settings, get_settings
from computer_catalog.errors import CatalogError, ComputerNotFoundError
from computer_catalog.infrastructure.db_factory import (
    PRIMARY_CLIENT_NAME,
    REPLICA_CLIENT_NAME,
    DataSources,
)
from computer_catalog.monitoring.collector import MetricsCollectorJob
from computer_catalog.monitoring.middleware import HttpMetricsMiddleware
from computer_catalog.monitoring.registry import MeterRegistry
from computer_catalog.monitoring.store import MetricsStore
from computer_catalog.services.read_service import ComputerReadService
from computer_catalog.services.write_service import ComputerWriteService
from computer_catalog.utils.logging import get_logger

log = get_logger(__name__)


async def catalog_error_handler(request: Request, exc: CatalogError) -> Response:
    if isinstance(exc, ComputerNotFoundError):
        return Response(status_code=status.HTTP_404_NOT_FOUND)
    if exc.status_code >= 500:
        log.error(
            "Request failed",
            extra={"path": request.url.path, "error": type(exc).__name__},
        )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def validation_error_handler(request: Request, exc: RequestValidationError) -> Response:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        detail = f"invalid parameter '{location}': {first.get('msg', 'invalid value')}"
    else:
        detail = "invalid request"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": detail})


def create_app(
    settings: Optional[Settings] = None,
    datasources: Optional[DataSources] = None,
    meters: Optional[MeterRegistry] = None,
) -> FastAPI:
    """
    Build the application.

    Parameters
    ----------
    settings : Settings, optional
        Effective configuration; defaults to `get_settings()`.
    datasources : DataSources, optional
        Already-open pools. When omitted, the pools are opened on startup and
        closed on shutdown; when given, their lifecycle stays with the caller.
    meters : MeterRegistry, optional
        Registry for the request counter and pool gauges; a fresh one becomes
        the process-wide registry when omitted.
    """
    settings = settings or get_settings()
    meters = meters or MeterRegistry()

    store = MetricsStore(settings.metrics_history_capacity)
    collector = MetricsCollectorJob(
        meters, store, interval_seconds=settings.metrics_collect_interval_seconds
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = datasources is None
        sources = await DataSources.open(settings) if owned else datasources

        meters.bind_pool(sources.primary, PRIMARY_CLIENT_NAME)
        meters.bind_pool(sources.replica, REPLICA_CLIENT_NAME)
        app.state.datasources = sources
        app.state.read_service = ComputerReadService(sources.replica)
        app.state.write_service = ComputerWriteService(sources.primary)

        if settings.metrics_collector_enabled:
            collector.start()
        log.info("Computer catalog started", extra={"env": settings.app_env})
        try:
            yield
        finally:
            await collector.stop()
            if owned:
                await sources.close()
            log.info("Computer catalog stopped")

    app = FastAPI(title="Computer Catalog", lifespan=lifespan)
    app.state.settings = settings
    app.state.meters = meters
    app.state.metrics_store = store
    app.state.metrics_collector = collector

    app.add_middleware(HttpMetricsMiddleware, meters=meters)
    app.add_exception_handler(CatalogError, catalog_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.include_router(api.router)
    return app


__all__ = ["catalog_error_handler", "create_app", "validation_error_handler"]
