from __future__ import annotations


class ApiError(Exception):
    """A non-2xx answer (or no answer at all) from the OrderIt backend."""

    def __init__(
        self,
        *,
        code: str,
        message: str,
        status_code: int,
        details: object | None = None,
        trace_id: str | None = None,
        raw_payload: object | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        self.trace_id = trace_id
        self.raw_payload = raw_payload

    def __str__(self) -> str:
        text = f"[{self.status_code}] {self.code}: {self.message}"
        return f"{text} trace_id={self.trace_id}" if self.trace_id else text


class AuthError(ApiError):
    """Backend rejected the bearer token."""


class PermissionError(ApiError):
    """Caller is authenticated but not allowed to touch the resource."""


class NotFoundError(ApiError):
    pass


class ValidationError(ApiError):
    pass


class ConflictError(ApiError):
    """409/412: the order changed since it was read."""


class RateLimitError(ApiError):
    """429 throttling."""


class ServerError(ApiError):
    pass


class TransportError(ApiError):
    """The request never got an HTTP response."""


class PlanogramUnavailableError(LookupError):
    """No planogram exists to lay an order out on."""


class IncompleteWriteError(ApiError):
    """A multi-request write stopped part way; ``details`` names what was saved."""
