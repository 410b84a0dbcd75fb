from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from app.orderit.core.logging import log_json
from app.orderit.core.metrics import metrics

logger = logging.getLogger("orderit.request")


def route_template(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


def request_event(request: Request, status_code: int, latency_ms: float) -> dict:
    state = request.state
    return {
        "event": "http_request",
        "trace_id": getattr(state, "trace_id", ""),
        "route": route_template(request),
        "method": request.method,
        "status_code": status_code,
        "latency_ms": round(latency_ms, 2),
        "upstream_status": getattr(state, "upstream_status", None),
        "error_code": getattr(state, "error_code", None),
        "error_class": getattr(state, "error_class", None),
    }


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """One ``http_request`` log line and one metrics sample per request.

    Server errors are logged at ERROR so they stand out from proxied 4xx noise.
    """

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            latency_ms = (time.perf_counter() - started) * 1000
            event = request_event(request, status_code, latency_ms)
            log_json(logger, event, logging.ERROR if status_code >= 500 else logging.INFO)
            metrics.record_http_request(
                route=event["route"],
                method=event["method"],
                status_code=status_code,
                latency_ms=latency_ms,
            )
