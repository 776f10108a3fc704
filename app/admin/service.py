import logging
from typing import List, Optional
from sqlalchemy.orm import Session
from app.auth.models import User, Role
from app.core.exceptions import ForbiddenError
from app.core.logging_config import log_security_event
from app.core.service_base import BaseService

logger = logging.getLogger(__name__)


class AdminService(BaseService):
    """User management for administrators."""

    def __init__(self, db: Session):
        super().__init__(db)

    def list_users(self, role: Optional[Role] = None, active: Optional[bool] = None) -> List[User]:
        query = self.db.query(User)
        if role is not None:
            query = query.filter(User.role == role)
        if active is not None:
            query = query.filter(User.is_active == active)
        return query.order_by(User.last_name.asc(), User.first_name.asc()).all()

    def get_user(self, user_id) -> User:
        return self.get_or_404(User, user_id, "User")

    def _get_other_user(self, user_id, admin: User, action: str) -> User:
        """Admins may not change their own role or active flag."""
        user = self.get_or_404(User, user_id, "User")
        if user.id == admin.id:
            log_security_event("self_change_rejected", admin.email, success=False, details={"action": action})
            raise ForbiddenError(f"Administrators cannot {action} their own account")
        return user

    def toggle_active(self, user_id, admin: User) -> User:
        """Flip the account's active flag."""
        user = self._get_other_user(user_id, admin, "change the active flag of")
        user.is_active = not user.is_active
        self.safe_commit("Error updating user status")
        self.db.refresh(user)

        log_security_event(
            "account_enabled" if user.is_active else "account_disabled",
            user.email,
            details={"by": admin.email}
        )
        return user

    def change_role(self, user_id, role: Role, admin: User) -> User:
        user = self._get_other_user(user_id, admin, "change the role of")
        previous = user.role
        user.role = role
        self.safe_commit("Error updating user role")
        self.db.refresh(user)

        log_security_event(
            "role_changed",
            user.email,
            details={"from": previous.value, "to": role.value, "by": admin.email}
        )
        return user

    def deactivate_user(self, user_id, admin: User) -> User:
        """Soft delete: the row is kept, the account can no longer sign in."""
        user = self._get_other_user(user_id, admin, "deactivate")
        user.is_active = False
        self.safe_commit("Error deactivating user")
        self.db.refresh(user)

        log_security_event("account_disabled", user.email, details={"by": admin.email})
        self.log_service_action("deactivate_user", "User", str(user.id))
        return user
