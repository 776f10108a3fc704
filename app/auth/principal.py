from dataclasses import dataclass
from uuid import UUID

from app.auth.models import Role, User


@dataclass(frozen=True)
class Principal:
    """The resolved caller of a request."""

    user_id: UUID
    subject: str
    role: Role


def principal_claims(user: User) -> dict:
    """Claims a token carries for ``user``."""
    return {"sub": user.email, "role": user.role.value}


def to_principal(user: User) -> Principal:
    return Principal(user_id=user.id, subject=user.email, role=user.role)
