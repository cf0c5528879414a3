"""
Custom exceptions and error handlers for consistent error responses.

Maps coordinator failure kinds and API exceptions to one JSON envelope:
{"error_code", "message", "details"}.
"""

import logging

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from typing import Any, Dict

from fleetflow.app.domain.fleet.errors import (
    CoordinatorError, NotFoundError, ConflictError,
    UnprocessableEntityError, BadRequestError, StorageError
)

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class InsufficientPermissionsError(AppException):
    """Raised when user doesn't have permission to perform an action."""

    def __init__(self, message: str = "Insufficient permissions", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_FORBIDDEN",
            status_code=status.HTTP_403_FORBIDDEN,
            details=details
        )


# Coordinator error kind -> (HTTP status, error code)
COORDINATOR_ERROR_MAP = {
    NotFoundError: (status.HTTP_404_NOT_FOUND, "ERR_NOT_FOUND"),
    ConflictError: (status.HTTP_409_CONFLICT, "ERR_CONFLICT"),
    UnprocessableEntityError: (status.HTTP_422_UNPROCESSABLE_ENTITY, "ERR_UNPROCESSABLE"),
    BadRequestError: (status.HTTP_400_BAD_REQUEST, "ERR_BAD_REQUEST"),
}


def _error_body(error_code: str, message: str, details: Dict[str, Any] = None) -> Dict[str, Any]:
    return {
        "error_code": error_code,
        "message": message,
        "details": jsonable_encoder(details or {})
    }


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.error_code, exc.message, exc.details)
    )


async def coordinator_exception_handler(request: Request, exc: CoordinatorError) -> JSONResponse:
    """Handler for business-rule failures raised by the fleet coordinator."""
    status_code, error_code = COORDINATOR_ERROR_MAP.get(
        type(exc), (status.HTTP_400_BAD_REQUEST, "ERR_BAD_REQUEST")
    )
    return JSONResponse(
        status_code=status_code,
        content=_error_body(error_code, exc.message, exc.details)
    )


async def storage_exception_handler(request: Request, exc: StorageError) -> JSONResponse:
    """Handler for storage failures. Clients may retry these."""
    logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=_error_body("ERR_STORAGE_UNAVAILABLE", "Storage temporarily unavailable, retry the request"),
        headers={"Retry-After": "1"}
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        409: "ERR_CONFLICT",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(error_code, exc.detail),
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body("ERR_VALIDATION", "Validation error", {"errors": exc.errors()})
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("ERR_INTERNAL_SERVER", "An internal server error occurred")
    )
