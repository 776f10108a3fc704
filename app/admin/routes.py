from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
from app.core.database import get_db
from app.core.dependencies import get_current_admin_user
from app.auth.models import User, Role
from app.auth.schemas import UserResponse
from app.admin.service import AdminService
from app.core.route_decorators import log_route_access

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/users", response_model=List[UserResponse])
async def list_users(
    role: Optional[Role] = None,
    active: Optional[bool] = None,
    current_user: User = Depends(get_current_admin_user),
    db: Session = Depends(get_db)
):
    """List users, optionally filtered by role and active flag."""
    return AdminService(db).list_users(role=role, active=active)


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: UUID,
    current_user: User = Depends(get_current_admin_user),
    db: Session = Depends(get_db)
):
    return AdminService(db).get_user(user_id)


@router.put("/users/{user_id}/toggle-active", response_model=UserResponse)
@log_route_access
async def toggle_user_active(
    user_id: UUID,
    current_user: User = Depends(get_current_admin_user),
    db: Session = Depends(get_db)
):
    return AdminService(db).toggle_active(user_id, current_user)


@router.put("/users/{user_id}/role", response_model=UserResponse)
@log_route_access
async def change_user_role(
    user_id: UUID,
    role: Role,
    current_user: User = Depends(get_current_admin_user),
    db: Session = Depends(get_db)
):
    return AdminService(db).change_role(user_id, role, current_user)


@router.delete("/users/{user_id}", response_model=UserResponse)
@log_route_access
async def deactivate_user(
    user_id: UUID,
    current_user: User = Depends(get_current_admin_user),
    db: Session = Depends(get_db)
):
    """Soft delete a user by deactivating the account."""
    return AdminService(db).deactivate_user(user_id, current_user)
