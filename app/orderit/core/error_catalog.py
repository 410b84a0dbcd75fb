from dataclasses import dataclass

from fastapi import status


@dataclass(frozen=True)
class ErrorDefinition:
    code: str
    message: str
    status_code: int


def _define(code: str, message: str, status_code: int) -> ErrorDefinition:
    return ErrorDefinition(code=code, message=message, status_code=status_code)


class ErrorCatalog:
    """Stable error codes returned in the ``code`` field of every error body."""

    POD_PATH_REQUIRED = _define("POD_PATH_REQUIRED", "Missing path", status.HTTP_400_BAD_REQUEST)
    POD_PATH_NOT_LOCAL = _define("POD_PATH_NOT_LOCAL", "Path must be a local file reference", status.HTTP_400_BAD_REQUEST)
    POD_PATH_OUTSIDE_BASE = _define("POD_PATH_OUTSIDE_BASE", "Invalid path", status.HTTP_400_BAD_REQUEST)
    POD_IMAGE_NOT_FOUND = _define("POD_IMAGE_NOT_FOUND", "Image not found", status.HTTP_404_NOT_FOUND)
    VALIDATION_ERROR = _define("VALIDATION_ERROR", "Validation error", status.HTTP_422_UNPROCESSABLE_ENTITY)
    INTERNAL_ERROR = _define("INTERNAL_ERROR", "Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR)

    @classmethod
    def all(cls) -> list[ErrorDefinition]:
        return [value for value in vars(cls).values() if isinstance(value, ErrorDefinition)]


class AppError(Exception):
    def __init__(self, error: ErrorDefinition, details: object | None = None, message: str | None = None) -> None:
        self.error = error
        self.details = details
        self.message = message or error.message
        super().__init__(self.message)
