"""
Per-request authorization gate.

Every request is checked against the route policy table: public routes pass
straight through, everything else needs a valid bearer token whose subject
resolves to an active identity holding one of the route's roles.
"""

import logging
from typing import Callable, Optional

from app.auth.models import User
from app.auth.policy import ROUTE_POLICY, RoutePolicyTable
from app.auth.principal import Principal, to_principal
from app.core.exceptions import (
    AccountDisabledError,
    ForbiddenError,
    MissingTokenError,
    UnauthorizedError,
)
from app.core.logging_config import log_security_event
from app.core.security import TokenService, token_service

logger = logging.getLogger(__name__)

UserLoader = Callable[[str], Optional[User]]


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    parts = authorization.strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1].strip() or None


class RequestAuthorizer:
    def __init__(
        self,
        load_user: UserLoader,
        tokens: Optional[TokenService] = None,
        policy: Optional[RoutePolicyTable] = None
    ):
        self.load_user = load_user
        self.tokens = tokens or token_service
        self.policy = policy or ROUTE_POLICY

    def authorize(self, method: str, path: str, authorization: Optional[str]) -> Optional[Principal]:
        """
        Decide whether the caller may invoke (method, path).

        Returns the caller's principal, or None for public routes.
        Raises UnauthorizedError (or a subclass), AccountDisabledError or
        ForbiddenError otherwise.
        """
        rule = self.policy.resolve(method, path)
        if rule.public:
            return None

        token = extract_bearer_token(authorization)
        if not token:
            raise MissingTokenError()

        try:
            claims = self.tokens.validate(token)
        except UnauthorizedError as exc:
            log_security_event(
                "token_rejected",
                self.tokens.extract_subject(token),
                success=False,
                details={"reason": exc.error_code, "path": path}
            )
            raise

        user = self.load_user(claims.subject)
        if user is None:
            log_security_event("token_rejected", claims.subject, success=False, details={"reason": "unknown_subject"})
            raise UnauthorizedError("Invalid token")

        if not user.is_active:
            log_security_event("token_rejected", claims.subject, success=False, details={"reason": "account_disabled"})
            raise AccountDisabledError()

        if not rule.allows(user.role):
            log_security_event(
                "access_denied",
                claims.subject,
                success=False,
                details={"method": method, "path": path, "role": user.role.value}
            )
            raise ForbiddenError()

        return to_principal(user)
