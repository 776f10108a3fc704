"""
Validation Utilities for the Smart Workplace Management Portal
"""

import re
import uuid
from datetime import date

from app.core.exceptions import (
    ValidationError,
    WeakPasswordError,
    InvalidDateRangeError
)
from app.core.security import BCRYPT_MAX_PASSWORD_BYTES


def validate_uuid(value, field_name: str = "id") -> uuid.UUID:
    """Validate UUID format."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError):
        raise ValidationError(
            detail=f"Invalid UUID format for {field_name}",
            field=field_name,
            value=value
        )


def normalize_email(email: str) -> str:
    """Trim and case-fold an email address."""
    if not email or not isinstance(email, str) or not email.strip():
        raise ValidationError(
            detail="Email is required",
            field="email"
        )
    return email.strip().lower()


def validate_password(password: str, min_length: int = 8) -> str:
    """Enforce the password policy, naming the first rule violated."""
    if not password or not isinstance(password, str):
        raise WeakPasswordError("Password is required", rule="required")

    if len(password) < min_length:
        raise WeakPasswordError(
            f"Password must be at least {min_length} characters long",
            rule="min_length"
        )

    if len(password.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
        raise WeakPasswordError(
            f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes long",
            rule="max_length"
        )

    if not re.search(r'[A-Z]', password):
        raise WeakPasswordError(
            "Password must contain at least one uppercase letter",
            rule="uppercase"
        )

    if not re.search(r'[a-z]', password):
        raise WeakPasswordError(
            "Password must contain at least one lowercase letter",
            rule="lowercase"
        )

    if not re.search(r'\d', password):
        raise WeakPasswordError(
            "Password must contain at least one digit",
            rule="digit"
        )

    return password


def validate_date_range(start_date: date, end_date: date):
    """Validate that the end date is not before the start date."""
    if start_date is None or end_date is None:
        raise ValidationError(
            detail="Start date and end date are required",
            field="startDate" if start_date is None else "endDate"
        )

    if end_date < start_date:
        raise InvalidDateRangeError(start_date, end_date)
