from typing import Any

from pydantic import BaseModel, Field


class ApiErrorResponse(BaseModel):
    """Body of every non-proxied error response."""

    code: str = Field(examples=["POD_PATH_OUTSIDE_BASE"])
    message: str = Field(examples=["Invalid path"])
    details: Any = None
    trace_id: str = ""


class ValidationIssue(BaseModel):
    field: str | None = None
    message: str
    type: str


class ValidationErrorDetails(BaseModel):
    errors: list[ValidationIssue] = Field(default_factory=list)
