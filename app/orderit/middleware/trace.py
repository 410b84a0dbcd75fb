import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from app.orderit.core.context import MAX_TRACE_ID_LENGTH, TRACE_HEADER, TRACE_HEADER_FALLBACKS, trace_id_var


def incoming_trace_id(request: Request) -> str | None:
    for header in (TRACE_HEADER, *TRACE_HEADER_FALLBACKS):
        value = (request.headers.get(header) or "").strip()
        if value and len(value) <= MAX_TRACE_ID_LENGTH:
            return value
    return None


class TraceIdMiddleware(BaseHTTPMiddleware):
    """Tags every request with a trace id, reusing the caller's when it sends one."""

    async def dispatch(self, request: Request, call_next):
        trace_id = incoming_trace_id(request) or str(uuid.uuid4())
        request.state.trace_id = trace_id
        token = trace_id_var.set(trace_id)
        try:
            response = await call_next(request)
        finally:
            trace_id_var.reset(token)
        response.headers[TRACE_HEADER] = trace_id
        return response
