from fastapi import Depends, Request
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.core.exceptions import AccountDisabledError, ForbiddenError, UnauthorizedError
from app.auth.service import AuthService
from app.auth.models import User, Role


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """Load the identity the authorization middleware resolved for this request."""
    principal = getattr(request.state, "principal", None)
    if principal is None:
        raise UnauthorizedError("Not authenticated")

    user = AuthService(db).get_user_by_id(principal.user_id)
    if not user:
        raise UnauthorizedError("Could not validate credentials")

    if not user.is_active:
        raise AccountDisabledError()

    return user


def require_roles(*roles: Role):
    """Dependency factory restricting an endpoint to ``roles``."""
    allowed = frozenset(roles)

    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise ForbiddenError()
        return current_user

    return dependency


get_current_staff_user = require_roles(Role.MANAGER, Role.ADMIN)
get_current_admin_user = require_roles(Role.ADMIN)
