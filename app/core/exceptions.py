"""
Custom Exception Classes for the Smart Workplace Management Portal
"""

from typing import Any, Dict, Optional
from fastapi import HTTPException, status


class BaseAPIException(HTTPException):
    """Base exception class for API errors with enhanced error details."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        error_data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code
        self.error_data = error_data or {}


# Authentication Exceptions
class InvalidCredentialsError(BaseAPIException):
    """Unknown email or wrong password. Both collapse into one error."""

    def __init__(self, detail: str = "Invalid email or password"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code="INVALID_CREDENTIALS",
            headers={"WWW-Authenticate": "Bearer"}
        )


class AccountDisabledError(BaseAPIException):
    """Identity exists but has been deactivated."""

    def __init__(self, detail: str = "Account is disabled. Please contact administrator."):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code="ACCOUNT_DISABLED",
            headers={"WWW-Authenticate": "Bearer"}
        )


class UnauthorizedError(BaseAPIException):
    """Missing, invalid or expired token."""

    def __init__(
        self,
        detail: str = "Could not validate credentials",
        error_code: str = "UNAUTHORIZED",
        error_data: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code=error_code,
            error_data=error_data,
            headers={"WWW-Authenticate": "Bearer"}
        )


class MissingTokenError(UnauthorizedError):
    def __init__(self, detail: str = "Missing bearer token"):
        super().__init__(detail=detail, error_code="MISSING_TOKEN")


class TokenExpiredError(UnauthorizedError):
    def __init__(self, detail: str = "Token has expired"):
        super().__init__(detail=detail, error_code="TOKEN_EXPIRED")


class InvalidSignatureError(UnauthorizedError):
    def __init__(self, detail: str = "Token signature is invalid"):
        super().__init__(detail=detail, error_code="INVALID_SIGNATURE")


class MalformedTokenError(UnauthorizedError):
    def __init__(self, detail: str = "Token is malformed"):
        super().__init__(detail=detail, error_code="MALFORMED_TOKEN")


# Authorization Exceptions
class ForbiddenError(BaseAPIException):
    """Valid identity, insufficient role."""

    def __init__(self, detail: str = "Insufficient permissions", error_data: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code="FORBIDDEN",
            error_data=error_data
        )


# Resource Exceptions
class ResourceNotFoundError(BaseAPIException):
    """Requested resource not found."""

    def __init__(self, resource_type: str, resource_id: str = None, error_data: Optional[Dict[str, Any]] = None):
        detail = f"{resource_type} not found"
        if resource_id:
            detail += f" (ID: {resource_id})"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code="RESOURCE_NOT_FOUND",
            error_data={"resource_type": resource_type, "resource_id": resource_id, **(error_data or {})}
        )


class ResourceAlreadyExistsError(BaseAPIException):
    """Resource already exists."""

    def __init__(
        self,
        resource_type: str,
        field: str = None,
        value: str = None,
        error_data: Optional[Dict[str, Any]] = None,
        error_code: str = "RESOURCE_ALREADY_EXISTS"
    ):
        detail = f"{resource_type} already exists"
        if field and value:
            detail += f" with {field}: {value}"

        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code=error_code,
            error_data={"resource_type": resource_type, "field": field, **(error_data or {})}
        )


class DuplicateEmailError(ResourceAlreadyExistsError):
    def __init__(self, email: str):
        super().__init__("User", field="email", value=email, error_code="DUPLICATE_EMAIL")
        self.detail = "Email already in use"


# Validation Exceptions
class ValidationError(BaseAPIException):
    """Data validation failed."""

    def __init__(
        self,
        detail: str,
        field: str = None,
        value: Any = None,
        error_data: Optional[Dict[str, Any]] = None,
        error_code: str = "VALIDATION_ERROR"
    ):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            error_code=error_code,
            error_data={"field": field, "value": value, **(error_data or {})}
        )


class WeakPasswordError(ValidationError):
    """Password does not satisfy the password policy."""

    def __init__(self, detail: str, rule: str):
        # the rejected password itself is never echoed back
        super().__init__(
            detail=detail,
            field="password",
            error_data={"rule": rule},
            error_code="WEAK_PASSWORD"
        )


class InvalidDateRangeError(ValidationError):
    def __init__(self, start_date, end_date):
        super().__init__(
            detail="End date must be after or equal to start date",
            field="endDate",
            error_data={"start_date": str(start_date), "end_date": str(end_date)},
            error_code="INVALID_RANGE"
        )


# Workflow Exceptions
class OverlappingLeaveError(BaseAPIException):
    """A pending or approved leave already covers part of the requested range."""

    def __init__(self, conflicting_ids: list):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail="Leave request overlaps an existing pending or approved request",
            error_code="OVERLAPPING_LEAVE",
            error_data={"conflicting_ids": [str(i) for i in conflicting_ids]}
        )


class AlreadyProcessedError(BaseAPIException):
    """Leave request has already left the PENDING state."""

    def __init__(self, resource_id: str, current_status: str = None):
        detail = "Cannot update leave request that is already processed"
        if current_status:
            detail = f"Cannot update leave request that is already {current_status}"

        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code="ALREADY_PROCESSED",
            error_data={"resource_id": resource_id, "status": current_status}
        )


class InvalidStatusTransitionError(BaseAPIException):
    def __init__(self, detail: str, current_status: str = None, requested_status: str = None):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code="INVALID_STATUS_TRANSITION",
            error_data={"current_status": current_status, "requested_status": requested_status}
        )


# Database Exceptions
class DatabaseError(BaseAPIException):
    """Database operation failed."""

    def __init__(self, detail: str = "Database operation failed", operation: str = None, error_data: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            error_code="DATABASE_ERROR",
            error_data={"operation": operation, **(error_data or {})}
        )


# External Service Exceptions
class ExternalServiceError(BaseAPIException):
    """External collaborator unreachable or too slow."""

    def __init__(self, service_name: str, detail: str = None, error_data: Optional[Dict[str, Any]] = None):
        detail = detail or f"{service_name} service unavailable"

        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail,
            error_code="EXTERNAL_SERVICE_UNAVAILABLE",
            error_data={"service_name": service_name, **(error_data or {})}
        )


class DatabaseConnectionError(ExternalServiceError):
    """Database connection failed or timed out."""

    def __init__(self, detail: str = "Database temporarily unavailable"):
        super().__init__(service_name="database", detail=detail)
