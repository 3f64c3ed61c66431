from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException


class TrackerError(Exception):
    """Base class for every error a guarded operation can raise."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "error"
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None, *, details: Any | None = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class Unauthorized(TrackerError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthorized"
    default_message = "Unauthorized"


class NoOrganizationSelected(TrackerError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "no_organization_selected"
    default_message = "No Organization Selected"


class AccessDenied(TrackerError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "access_denied"
    default_message = "Access denied"


class NotFound(TrackerError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_message = "Not found"

    @classmethod
    def for_resource(cls, resource: str) -> "NotFound":
        return cls(f"{resource} not found")


class CrossOrganizationAccess(NotFound):
    """Resource exists but belongs to another organization.

    Rendered exactly like :class:`NotFound` so callers cannot discover ids
    owned by other tenants.
    """


class InvalidSprintTransition(TrackerError):
    status_code = status.HTTP_409_CONFLICT
    code = "invalid_sprint_transition"
    default_message = "Invalid sprint status transition"


class BoardReadOnly(TrackerError):
    status_code = status.HTTP_409_CONFLICT
    code = "board_read_only"
    default_message = "Board cannot be updated"


class ValidationError(TrackerError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "validation_error"
    default_message = "Validation failed"


class Conflict(TrackerError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"
    default_message = "Conflict"


class PersistenceFailure(TrackerError):
    status_code = status.HTTP_409_CONFLICT
    code = "persistence_failure"
    default_message = "Could not persist changes"


class ErrorEnvelope(JSONResponse):
    def __init__(
        self,
        *,
        status_code: int,
        code: str,
        message: str,
        details: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        payload: dict[str, Any] = {"code": code, "message": message}
        if details is not None:
            payload["details"] = details
        super().__init__(payload, status_code=status_code, headers=headers)


async def tracker_error_handler(request: Request, exc: TrackerError):
    return ErrorEnvelope(
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
        details=exc.details,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    message = detail if isinstance(detail, str) else "Error"
    details = detail if isinstance(detail, dict) else None
    return ErrorEnvelope(
        status_code=exc.status_code,
        code="http_error",
        message=message,
        details=details,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return ErrorEnvelope(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        code="validation_error",
        message="Validation failed",
        details={"errors": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    cleaned: list[dict[str, Any]] = []
    for error in exc.errors():
        cleaned.append({key: value for key, value in error.items() if key in ("loc", "msg", "type")})
    return cleaned
