"""
Global Error Handlers for the Smart Workplace Management Portal
"""

import logging
import traceback
from typing import Dict, Any, Optional
from datetime import datetime, timezone

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError, HTTPException
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import (
    SQLAlchemyError,
    IntegrityError,
    DataError,
    OperationalError,
    InvalidRequestError
)
from psycopg2.errors import (
    UniqueViolation,
    ForeignKeyViolation,
    InvalidTextRepresentation
)

from app.core.exceptions import BaseAPIException

# Set up logger
logger = logging.getLogger(__name__)


def create_error_response(
    status_code: int,
    detail: str,
    error_code: str = None,
    error_data: Dict[str, Any] = None,
    request_id: str = None,
    headers: Optional[Dict[str, str]] = None
) -> JSONResponse:
    """Create standardized error response."""

    content = {
        "error": True,
        "status_code": status_code,
        "detail": detail,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    if error_code:
        content["error_code"] = error_code

    if error_data:
        content["error_data"] = error_data

    if request_id:
        content["request_id"] = request_id

    return JSONResponse(
        status_code=status_code,
        content=content,
        headers=headers
    )


def api_exception_response(request: Request, exc: BaseAPIException) -> JSONResponse:
    return create_error_response(
        status_code=exc.status_code,
        detail=exc.detail,
        error_code=exc.error_code,
        error_data=exc.error_data,
        request_id=getattr(request.state, 'request_id', None),
        headers=exc.headers
    )


async def base_api_exception_handler(request: Request, exc: BaseAPIException) -> JSONResponse:
    """Handle custom API exceptions."""

    logger.warning(
        f"API Exception: {exc.error_code or 'UNKNOWN'} - {exc.detail}",
        extra={
            "status_code": exc.status_code,
            "error_code": exc.error_code,
            "request_id": getattr(request.state, 'request_id', None),
            "path": request.url.path,
            "method": request.method
        }
    )

    return api_exception_response(request, exc)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI and Starlette HTTP exceptions (404 routes, 405 methods)."""

    request_id = getattr(request.state, 'request_id', None)

    logger.warning(
        f"HTTP Exception: {exc.status_code} - {exc.detail}",
        extra={
            "status_code": exc.status_code,
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method
        }
    )

    return create_error_response(
        status_code=exc.status_code,
        detail=str(exc.detail),
        error_code="HTTP_EXCEPTION",
        request_id=request_id,
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors."""

    request_id = getattr(request.state, 'request_id', None)

    validation_errors = []
    for error in exc.errors():
        validation_errors.append({
            "field": " -> ".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"]
        })

    logger.warning(
        f"Validation Error: {len(validation_errors)} validation error(s)",
        extra={
            "validation_errors": validation_errors,
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method
        }
    )

    return create_error_response(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail="Request validation failed",
        error_code="VALIDATION_ERROR",
        error_data={"validation_errors": validation_errors},
        request_id=request_id
    )


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handle SQLAlchemy database exceptions that escaped the services."""

    request_id = getattr(request.state, 'request_id', None)

    if isinstance(exc, IntegrityError):
        if isinstance(exc.orig, UniqueViolation):
            detail = "Resource already exists with the provided data"
            error_code = "DUPLICATE_RESOURCE"
            status_code = status.HTTP_409_CONFLICT
        elif isinstance(exc.orig, ForeignKeyViolation):
            detail = "Referenced resource does not exist"
            error_code = "INVALID_REFERENCE"
            status_code = status.HTTP_400_BAD_REQUEST
        else:
            detail = "Data integrity constraint violated"
            error_code = "INTEGRITY_ERROR"
            status_code = status.HTTP_400_BAD_REQUEST

    elif isinstance(exc, DataError):
        if isinstance(exc.orig, InvalidTextRepresentation):
            detail = "Invalid data format provided"
            error_code = "INVALID_DATA_FORMAT"
        else:
            detail = "Invalid data provided"
            error_code = "DATA_ERROR"
        status_code = status.HTTP_400_BAD_REQUEST

    elif isinstance(exc, OperationalError):
        # connection refused, statement timeout, lock timeout
        detail = "Database temporarily unavailable"
        error_code = "EXTERNAL_SERVICE_UNAVAILABLE"
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    elif isinstance(exc, InvalidRequestError):
        detail = "Invalid database request"
        error_code = "INVALID_DB_REQUEST"
        status_code = status.HTTP_400_BAD_REQUEST

    else:
        detail = "Database error occurred"
        error_code = "DATABASE_ERROR"
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    logger.error(
        f"Database Error: {error_code} - {detail}",
        extra={
            "exception_type": type(exc).__name__,
            "error_details": str(exc),
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method
        }
    )

    return create_error_response(
        status_code=status_code,
        detail=detail,
        error_code=error_code,
        request_id=request_id
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all other unhandled exceptions. Details stay in the log."""

    request_id = getattr(request.state, 'request_id', None)

    logger.error(
        f"Unhandled Exception: {type(exc).__name__} - {str(exc)}",
        extra={
            "exception_type": type(exc).__name__,
            "traceback": traceback.format_exc(),
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method
        }
    )

    return create_error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An unexpected error occurred. Please try again later.",
        error_code="INTERNAL_SERVER_ERROR",
        request_id=request_id
    )


# Error handler mapping
ERROR_HANDLERS = {
    BaseAPIException: base_api_exception_handler,
    HTTPException: http_exception_handler,
    StarletteHTTPException: http_exception_handler,
    RequestValidationError: validation_exception_handler,
    SQLAlchemyError: sqlalchemy_exception_handler,
    Exception: generic_exception_handler,
}


def register_error_handlers(app):
    """Register all error handlers with the FastAPI app."""

    for exception_class, handler in ERROR_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)

    logger.info("Error handlers registered successfully")
