from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class PortalError(Exception):
    """Base class for typed failures raised by the ledger and directory.

    ``details`` carries the current values a caller needs to decide whether to
    adjust and retry (for instance the units still ``available``).
    """

    code = "portal_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class NotFound(PortalError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class InvalidQuantity(PortalError):
    code = "invalid_quantity"
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidInput(PortalError):
    """A field passed schema validation but was rejected by the domain layer."""

    code = "validation_error"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class InsufficientCapacity(PortalError):
    code = "insufficient_capacity"
    status_code = status.HTTP_409_CONFLICT


class OverReturn(PortalError):
    code = "over_return"
    status_code = status.HTTP_409_CONFLICT


class DuplicateId(PortalError):
    code = "duplicate_id"
    status_code = status.HTTP_409_CONFLICT


class Forbidden(PortalError):
    code = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class StoreUnavailable(PortalError):
    code = "store_unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


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


async def portal_error_handler(request: Request, exc: PortalError):
    level = logging.ERROR if isinstance(exc, StoreUnavailable) else logging.INFO
    logger.log(
        level,
        "request.rejected",
        extra={"extra_data": {"code": exc.code, "path": request.url.path, **exc.details}},
    )
    return ErrorEnvelope(
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
        details=exc.details or None,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    if isinstance(detail, str):
        message = detail
    else:
        try:
            message = HTTPStatus(exc.status_code).phrase
        except ValueError:
            message = "Error"
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
    errors = []
    for error in exc.errors():
        # ``ctx`` may hold the raw exception object, which JSON cannot encode.
        errors.append({k: v for k, v in error.items() if k != "ctx"})
    return errors


def register_exception_handlers(app) -> None:
    app.add_exception_handler(PortalError, portal_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
