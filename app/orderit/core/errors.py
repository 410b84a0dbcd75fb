import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.orderit.core.context import request_trace_id
from app.orderit.core.error_catalog import AppError, ErrorCatalog
from app.orderit.schemas.errors import ValidationErrorDetails, ValidationIssue

logger = logging.getLogger(__name__)

HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}
_LOCATION_PREFIXES = {"body", "query", "path", "header"}


def error_response(
    request: Request,
    *,
    code: str,
    message: str,
    status_code: int,
    details: object | None = None,
    exc: Exception | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build the ``{code, message, details, trace_id}`` envelope and tag the request for logging."""
    request.state.error_code = code
    if exc is not None:
        request.state.error_class = exc.__class__.__name__
    content = {
        "code": code,
        "message": message,
        "details": jsonable_encoder(details),
        "trace_id": request_trace_id(request),
    }
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def validation_details(exc: RequestValidationError) -> dict:
    issues = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] in _LOCATION_PREFIXES:
            loc = loc[1:]
        field = ".".join(loc)
        issues.append(
            ValidationIssue(
                field=field or None,
                message=error.get("msg", "Invalid value"),
                type=error.get("type", "value_error"),
            )
        )
    return ValidationErrorDetails(errors=issues).model_dump()


async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    return error_response(
        request,
        code=exc.error.code,
        message=exc.message,
        status_code=exc.error.status_code,
        details=exc.details,
        exc=exc,
    )


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, dict) and detail.get("code"):
        code = str(detail["code"])
        message = str(detail.get("message") or code)
        details = detail.get("details")
    else:
        code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
        message = str(detail) if detail else "HTTP error"
        details = None
    return error_response(
        request,
        code=code,
        message=message,
        status_code=exc.status_code,
        details=details,
        exc=exc,
        headers=getattr(exc, "headers", None),
    )


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    error = ErrorCatalog.VALIDATION_ERROR
    return error_response(
        request,
        code=error.code,
        message=error.message,
        status_code=error.status_code,
        details=validation_details(exc),
        exc=exc,
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    error = ErrorCatalog.INTERNAL_ERROR
    return error_response(
        request,
        code=error.code,
        message=error.message,
        status_code=error.status_code,
        details={"type": exc.__class__.__name__},
        exc=exc,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, handle_app_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
