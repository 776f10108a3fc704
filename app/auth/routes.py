from fastapi import APIRouter, Depends, Header, status
from sqlalchemy.orm import Session
from typing import Optional
from app.core.database import get_db
from app.core.dependencies import get_current_user
from app.core.exceptions import MissingTokenError
from app.auth.authorizer import extract_bearer_token
from app.auth.models import User
from app.auth.schemas import RegisterRequest, LoginRequest, RefreshRequest, AuthResponse, UserResponse
from app.auth.service import AuthService

router = APIRouter(prefix="/api/auth", tags=["authentication"])

# Handlers that hash or verify passwords are plain functions so FastAPI runs
# them in its threadpool.


def to_auth_response(user: User, token: str) -> AuthResponse:
    return AuthResponse(
        token=token,
        user_id=user.id,
        email=user.email,
        role=user.role,
        full_name=user.full_name
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register_user(user_data: RegisterRequest, db: Session = Depends(get_db)):
    """Register a new employee account and return its first token."""
    user, token = AuthService(db).register(user_data)
    return to_auth_response(user, token)


@router.post("/login", response_model=AuthResponse)
def login_user(login_data: LoginRequest, db: Session = Depends(get_db)):
    """Login user and return a bearer token."""
    user, token = AuthService(db).login(login_data)
    return to_auth_response(user, token)


@router.post("/refresh", response_model=AuthResponse)
def refresh_token(
    request: Optional[RefreshRequest] = None,
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db)
):
    """Exchange a current (or recently expired) token for a fresh one."""
    token = (request.token if request else None) or extract_bearer_token(authorization)
    if not token:
        raise MissingTokenError()

    user, new_token = AuthService(db).refresh(token)
    return to_auth_response(user, new_token)


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current user information."""
    return current_user
