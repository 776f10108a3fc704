from datetime import timedelta
from typing import Optional, Tuple
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, OperationalError
from app.auth.models import User, Role
from app.auth.principal import principal_claims
from app.auth.schemas import RegisterRequest, LoginRequest
from app.core.config import settings
from app.core.security import PasswordHasher, TokenService, password_hasher, token_service
from app.core.service_base import BaseService
from app.core.logging_config import log_security_event
from app.core.validators import normalize_email, validate_password
from app.core.exceptions import (
    AccountDisabledError,
    DatabaseConnectionError,
    DuplicateEmailError,
    InvalidCredentialsError,
    ResourceNotFoundError,
    UnauthorizedError
)


class AuthService(BaseService):
    """Registration, login and token refresh."""

    def __init__(
        self,
        db: Session,
        hasher: Optional[PasswordHasher] = None,
        tokens: Optional[TokenService] = None,
        refresh_grace: Optional[timedelta] = None
    ):
        super().__init__(db)
        self.hasher = hasher or password_hasher
        self.tokens = tokens or token_service
        self.refresh_grace = (
            refresh_grace if refresh_grace is not None
            else timedelta(minutes=settings.refresh_grace_minutes)
        )

    def register(self, data: RegisterRequest) -> Tuple[User, str]:
        """Create an EMPLOYEE identity and issue its first token."""
        email = normalize_email(data.email)

        if not self.check_unique_constraint(User, "email", email, "User"):
            log_security_event("registration_rejected", email, success=False, details={"reason": "duplicate_email"})
            raise DuplicateEmailError(email)

        validate_password(data.password)

        user = User(
            first_name=data.first_name.strip(),
            last_name=data.last_name.strip(),
            email=email,
            password_hash=self.hasher.hash(data.password),
            role=Role.EMPLOYEE,
            is_active=True,
            department=data.department
        )

        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # lost a race with a concurrent registration
            self.safe_rollback()
            raise DuplicateEmailError(email)
        except OperationalError:
            self.safe_rollback()
            raise DatabaseConnectionError()
        self.db.refresh(user)

        self.log_service_action("register", "User", str(user.id), {"role": user.role.value})
        log_security_event("registration", email)
        return user, self.create_token(user)

    def login(self, data: LoginRequest) -> Tuple[User, str]:
        """Check credentials and issue a token."""
        email = normalize_email(data.email)
        user = self.get_user_by_email(email)

        if not user:
            self.hasher.verify_dummy(data.password)
            log_security_event("login_failed", email, success=False, details={"reason": "user_not_found"})
            raise InvalidCredentialsError()

        # disabled accounts are rejected before the password is checked
        if not user.is_active:
            log_security_event("login_failed", email, success=False, details={"reason": "account_disabled"})
            raise AccountDisabledError()

        if not self.hasher.verify(data.password, user.password_hash):
            log_security_event("login_failed", email, success=False, details={"reason": "invalid_password"})
            raise InvalidCredentialsError()

        log_security_event("login", email)
        return user, self.create_token(user)

    def refresh(self, token: str) -> Tuple[User, str]:
        """
        Reissue a token for the identity behind ``token``.

        The signature is always verified; an expired token is still accepted
        for ``refresh_grace`` after its expiry.
        """
        claims = self.tokens.validate(token, leeway=self.refresh_grace)

        user = self.get_user_by_email(claims.subject)
        if not user:
            log_security_event("refresh_failed", claims.subject, success=False, details={"reason": "user_not_found"})
            raise UnauthorizedError("Invalid token")

        if not user.is_active:
            log_security_event("refresh_failed", claims.subject, success=False, details={"reason": "account_disabled"})
            raise AccountDisabledError("User account is disabled")

        log_security_event("token_refreshed", user.email)
        return user, self.create_token(user)

    def create_token(self, user: User) -> str:
        claims = principal_claims(user)
        return self.tokens.issue(claims["sub"], claims["role"])

    def get_user_by_email(self, email: str) -> Optional[User]:
        """Get user by (already normalized) email."""
        try:
            return self.db.query(User).filter(User.email == email).first()
        except OperationalError:
            raise DatabaseConnectionError()

    def get_user_by_id(self, user_id) -> Optional[User]:
        """Get user by ID."""
        try:
            return self.get_or_404(User, user_id, "User")
        except ResourceNotFoundError:
            return None
