from pydantic import AliasChoices, EmailStr, Field
from typing import Optional
from datetime import datetime
from uuid import UUID
from app.auth.models import Role
from app.core.schemas import CamelModel


class RegisterRequest(CamelModel):
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str
    department: Optional[str] = Field(None, max_length=100)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str


class RefreshRequest(CamelModel):
    token: Optional[str] = None


class AuthResponse(CamelModel):
    token: str
    user_id: UUID
    email: str
    role: Role
    full_name: str


class UserResponse(CamelModel):
    id: UUID
    email: str
    first_name: str
    last_name: str
    full_name: str
    role: Role
    is_active: bool = Field(
        ...,
        validation_alias=AliasChoices("is_active", "active"),
        serialization_alias="active"
    )
    department: Optional[str] = None
    phone_number: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
