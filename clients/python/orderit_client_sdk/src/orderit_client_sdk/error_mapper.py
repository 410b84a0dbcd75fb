from __future__ import annotations

from typing import Any, Mapping

from .exceptions import (
    ApiError,
    AuthError,
    ConflictError,
    NotFoundError,
    PermissionError,
    RateLimitError,
    ServerError,
    ValidationError,
)

STATUS_ERRORS: dict[int, type[ApiError]] = {
    400: ValidationError,
    401: AuthError,
    403: PermissionError,
    404: NotFoundError,
    409: ConflictError,
    412: ConflictError,
    422: ValidationError,
    429: RateLimitError,
}


def error_class(status_code: int) -> type[ApiError]:
    if status_code >= 500:
        return ServerError
    return STATUS_ERRORS.get(status_code, ApiError)


def _first(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = payload.get(key)
        if value not in (None, "", [], {}):
            return value
    return None


def map_error(status_code: int, payload: Mapping[str, Any] | None, trace_id: str | None) -> ApiError:
    """Turn an error body into a typed :class:`ApiError`.

    Understands both the ``{code, message, details, trace_id}`` envelope and
    problem-details bodies (``title``/``detail``/``errors``/``traceId``).
    A trace id in the body wins over the one from the response headers.
    """
    payload = payload or {}
    body_trace_id = _first(payload, "trace_id", "traceId")
    return error_class(status_code)(
        code=str(_first(payload, "code") or "HTTP_ERROR"),
        message=str(_first(payload, "message", "title", "detail") or "Request failed"),
        details=_first(payload, "details", "errors"),
        trace_id=str(body_trace_id) if body_trace_id is not None else trace_id,
        status_code=status_code,
        raw_payload=dict(payload),
    )
