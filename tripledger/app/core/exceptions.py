"""
Custom exceptions and error handlers for consistent error responses.

Every ledger error carries its kind (error_code), the offending entity and
the violated rule so callers can render a specific message.
"""

import logging

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict, Optional

logger = logging.getLogger("tripledger")


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


def _error_details(entity: Optional[str], entity_id: Any, rule: Optional[str]) -> Dict[str, Any]:
    details = {"entity": entity, "id": entity_id}
    if rule is not None:
        details["rule"] = rule
    return details


class ValidationError(AppException):
    """Raised when a write would violate a ledger invariant."""

    def __init__(self, rule: str, entity: Optional[str] = None, entity_id: Any = None):
        self.rule = rule
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(
            message=rule,
            error_code="ERR_VALIDATION_RULE",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=_error_details(entity, entity_id, rule)
        )


class AuthorizationError(AppException):
    """Raised when the actor lacks the capability for an operation."""

    def __init__(self, rule: str, entity: Optional[str] = None, entity_id: Any = None):
        self.rule = rule
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(
            message=rule,
            error_code="ERR_FORBIDDEN",
            status_code=status.HTTP_403_FORBIDDEN,
            details=_error_details(entity, entity_id, rule)
        )


class NotFoundError(AppException):
    """Raised when requested resource is missing or not in the required state."""

    def __init__(self, entity: str, entity_id: Any = None, rule: Optional[str] = None):
        self.rule = rule
        self.entity = entity
        self.entity_id = entity_id
        message = f"{entity} not found"
        if entity_id:
            message = f"{entity} with ID {entity_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
            details=_error_details(entity, entity_id, rule)
        )


class ConflictError(AppException):
    """Raised when a write collides with concurrent state or an existing claim."""

    def __init__(self, rule: str, entity: Optional[str] = None, entity_id: Any = None):
        self.rule = rule
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(
            message=rule,
            error_code="ERR_CONFLICT",
            status_code=status.HTTP_409_CONFLICT,
            details=_error_details(entity, entity_id, rule)
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
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
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        },
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "ERR_VALIDATION",
            "message": "Validation error",
            "details": {
                "errors": jsonable_errors(exc)
            }
        }
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may hold exception instances that JSONResponse cannot encode
    return [
        {key: value for key, value in error.items() if key != "ctx"}
        for error in exc.errors()
    ]


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception("Unhandled exception: %s: %s", type(exc).__name__, exc)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {}
        }
    )
