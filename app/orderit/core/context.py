from contextvars import ContextVar

from fastapi import Request

TRACE_HEADER = "X-Trace-ID"
TRACE_HEADER_FALLBACKS = ("X-Request-ID",)
MAX_TRACE_ID_LENGTH = 128

trace_id_var: ContextVar[str] = ContextVar("orderit_trace_id", default="")


def current_trace_id() -> str:
    return trace_id_var.get()


def request_trace_id(request: Request) -> str:
    return getattr(request.state, "trace_id", "") or current_trace_id()
