"""FastAPI middleware counting completed HTTP requests.

Every request, whatever its outcome, increments
`http.server.requests{method, uri, status}` once the handler has produced a
response. `uri` is the matched route template (`/computer/{name}`), never the
raw path, so series stay bounded.
"""

from __future__ import annotations

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from computer_catalog.monitoring.registry import MeterRegistry
from computer_catalog.utils.logging import get_logger

logger = get_logger(__name__)


def _route_template(request: Request) -> str:
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    return path or "UNKNOWN"


class HttpMetricsMiddleware(BaseHTTPMiddleware):
    """Middleware that feeds the request counter of a `MeterRegistry`."""

    def __init__(self, app: ASGIApp, meters: MeterRegistry) -> None:
        super().__init__(app)
        self.meters = meters

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            response = await call_next(request)
        except Exception:
            self._record(request, 500)
            raise
        self._record(request, response.status_code)
        return response

    def _record(self, request: Request, status_code: int) -> None:
        # Metrics must never break the request path
        try:
            self.meters.record_request(request.method, _route_template(request), status_code)
        except Exception as exc:
            logger.debug(
                f"Metrics middleware error for {request.method} {request.url.path}: {exc}"
            )


__all__ = ["HttpMetricsMiddleware"]
