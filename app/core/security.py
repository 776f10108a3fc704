"""
Password hashing and stateless bearer tokens.

Tokens are HS256 JWTs carrying the subject (email), role, issue time,
expiry and a random nonce. The server keeps no session state, so a token
stays usable until it expires.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import bcrypt
import jwt

from app.core.config import settings
from app.core.exceptions import (
    InvalidSignatureError,
    MalformedTokenError,
    TokenExpiredError,
)

logger = logging.getLogger(__name__)

BCRYPT_MAX_PASSWORD_BYTES = 72

REQUIRED_CLAIMS = ["sub", "role", "iat", "exp"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PasswordHasher:
    """Salted, cost-factor bcrypt hashing."""

    def __init__(self, rounds: int = 12):
        self.rounds = rounds
        self._dummy_hash = None

    def hash(self, password: str) -> str:
        """Hash a password with a fresh random salt."""
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Check a password against a stored hash. Malformed hashes never match."""
        if not password or not password_hash:
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            logger.warning("Stored password hash is malformed")
            return False

    def verify_dummy(self, password: str) -> bool:
        """Spend the same work as a real check when there is no stored hash."""
        if self._dummy_hash is None:
            self._dummy_hash = self.hash(uuid.uuid4().hex)
        self.verify(password, self._dummy_hash)
        return False


@dataclass(frozen=True)
class TokenClaims:
    subject: str
    role: str
    issued_at: datetime
    expires_at: datetime
    token_id: Optional[str] = None


class TokenService:
    """Issues and validates signed, self-contained bearer tokens."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        ttl: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = utcnow
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.ttl = ttl
        self.clock = clock

    def issue(self, subject: str, role: str) -> str:
        now = self.clock()
        payload = {
            "sub": subject,
            "role": role,
            "iat": int(now.timestamp()),
            "exp": int((now + self.ttl).timestamp()),
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def validate(self, token: str, leeway: timedelta = timedelta(0)) -> TokenClaims:
        """
        Verify the signature, then the expiry.

        Claims of a token whose signature does not verify are never read.
        ``leeway`` extends the accepted window past ``exp`` (used by refresh).
        """
        if not token or not isinstance(token, str):
            raise MalformedTokenError()

        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "require": REQUIRED_CLAIMS,
                },
            )
        except jwt.InvalidSignatureError as exc:
            raise InvalidSignatureError() from exc
        except jwt.InvalidTokenError as exc:
            raise MalformedTokenError() from exc

        claims = self._to_claims(payload)

        if self.clock() >= claims.expires_at + leeway:
            raise TokenExpiredError()

        return claims

    def extract_subject(self, token: str) -> Optional[str]:
        """
        Read the subject without verifying the signature.

        Only for audit logging; never use the result for an access decision.
        """
        try:
            payload = jwt.decode(token, options={"verify_signature": False})
        except jwt.InvalidTokenError:
            return None
        subject = payload.get("sub")
        return subject if isinstance(subject, str) else None

    @staticmethod
    def _to_claims(payload: dict) -> TokenClaims:
        subject = payload.get("sub")
        role = payload.get("role")
        if not isinstance(subject, str) or not subject or not isinstance(role, str):
            raise MalformedTokenError()
        try:
            issued_at = datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc)
            expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError) as exc:
            raise MalformedTokenError() from exc
        return TokenClaims(
            subject=subject,
            role=role,
            issued_at=issued_at,
            expires_at=expires_at,
            token_id=payload.get("jti"),
        )


password_hasher = PasswordHasher(rounds=settings.bcrypt_rounds)

token_service = TokenService(
    secret_key=settings.secret_key,
    algorithm=settings.algorithm,
    ttl=timedelta(minutes=settings.access_token_expire_minutes),
)
