"""
Base Service Class with Enhanced Error Handling
"""

import logging
from typing import Any, Dict, Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError, IntegrityError, OperationalError

from app.core.exceptions import (
    DatabaseError,
    DatabaseConnectionError,
    ResourceNotFoundError,
    ResourceAlreadyExistsError,
    ForbiddenError
)
from app.core.validators import validate_uuid

logger = logging.getLogger(__name__)


class BaseService:
    """Base service class with common error handling patterns."""

    def __init__(self, db: Session):
        self.db = db

    def safe_commit(self, error_message: str = "Database operation failed") -> bool:
        """Safely commit database transaction with error handling."""
        try:
            self.db.commit()
            return True
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Integrity error during commit: {str(e)}")
            raise ResourceAlreadyExistsError(resource_type="Resource")
        except OperationalError as e:
            self.db.rollback()
            logger.error(f"Database unavailable during commit: {str(e)}")
            raise DatabaseConnectionError()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error during commit: {str(e)}")
            raise DatabaseError(detail=error_message)

    def safe_rollback(self):
        """Safely rollback database transaction."""
        try:
            self.db.rollback()
        except SQLAlchemyError as e:
            logger.error(f"Error during rollback: {str(e)}")

    def get_or_404(self, model_class, resource_id, resource_type: str = None):
        """Get resource by ID or raise 404 error."""
        resource_type = resource_type or model_class.__name__
        resource_uuid = validate_uuid(resource_id, f"{resource_type.lower()}_id")

        try:
            resource = self.db.get(model_class, resource_uuid)
        except OperationalError as e:
            logger.error(f"Database unavailable in get_or_404: {str(e)}")
            raise DatabaseConnectionError()
        except SQLAlchemyError as e:
            logger.error(f"Database error in get_or_404: {str(e)}")
            raise DatabaseError(detail=f"Error retrieving {resource_type}")

        if not resource:
            raise ResourceNotFoundError(
                resource_type=resource_type,
                resource_id=str(resource_id)
            )

        return resource

    def check_unique_constraint(
        self,
        model_class,
        field_name: str,
        field_value: Any,
        resource_type: str = None
    ) -> bool:
        """Return True if no row already holds ``field_value``."""
        try:
            query = self.db.query(model_class).filter(
                getattr(model_class, field_name) == field_value
            )
            return query.first() is None

        except OperationalError as e:
            logger.error(f"Database unavailable in unique constraint check: {str(e)}")
            raise DatabaseConnectionError()
        except SQLAlchemyError as e:
            logger.error(f"Database error in unique constraint check: {str(e)}")
            raise DatabaseError(detail=f"Error checking uniqueness for {field_name}")

    def require_role(self, user, allowed_roles, action: str):
        """Raise 403 unless ``user`` holds one of ``allowed_roles``."""
        if user is None or user.role not in allowed_roles:
            role = getattr(user, "role", None)
            self.log_service_action(
                "forbidden",
                extra_data={
                    "attempted_action": action,
                    "user_id": str(getattr(user, "id", None)),
                    "user_role": getattr(role, "value", role)
                }
            )
            raise ForbiddenError(f"You do not have permission to {action}")

    def log_service_action(
        self,
        action: str,
        resource_type: str = None,
        resource_id: str = None,
        extra_data: Dict[str, Any] = None
    ):
        """Log service actions for auditing."""
        log_data = {
            "action": action,
            "service": self.__class__.__name__
        }

        if resource_type:
            log_data["resource_type"] = resource_type
        if resource_id:
            log_data["resource_id"] = resource_id
        if extra_data:
            log_data.update(extra_data)

        logger.info(f"Service action: {action}", extra=log_data)
