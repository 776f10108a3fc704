from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
from app.core.database import get_db
from app.core.dependencies import get_current_user, get_current_staff_user
from app.auth.models import User
from app.leaves.models import LeaveStatus
from app.leaves.schemas import LeaveCreate, LeaveResponse
from app.leaves.service import LeaveService

router = APIRouter(prefix="/api/leave", tags=["leave"])


@router.post("/submit", response_model=LeaveResponse, status_code=status.HTTP_201_CREATED)
async def submit_leave(
    leave_data: LeaveCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Submit a leave request for the current user."""
    leave_service = LeaveService(db)
    leave = leave_service.submit_leave(
        current_user,
        leave_data.start_date,
        leave_data.end_date,
        leave_data.reason.strip()
    )
    return LeaveResponse.from_leave(leave)


@router.get("/my-requests", response_model=List[LeaveResponse])
async def get_my_requests(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    leaves = LeaveService(db).get_my_leaves(current_user)
    return [LeaveResponse.from_leave(leave) for leave in leaves]


@router.get("/all", response_model=List[LeaveResponse])
async def get_all_requests(
    status: Optional[LeaveStatus] = None,
    current_user: User = Depends(get_current_staff_user),
    db: Session = Depends(get_db)
):
    """List every leave request, optionally filtered by status."""
    leaves = LeaveService(db).get_all_leaves(status)
    return [LeaveResponse.from_leave(leave) for leave in leaves]


@router.put("/{leave_id}/approve", response_model=LeaveResponse)
async def approve_leave(
    leave_id: UUID,
    current_user: User = Depends(get_current_staff_user),
    db: Session = Depends(get_db)
):
    leave = LeaveService(db).approve(leave_id, current_user)
    return LeaveResponse.from_leave(leave)


@router.put("/{leave_id}/reject", response_model=LeaveResponse)
async def reject_leave(
    leave_id: UUID,
    current_user: User = Depends(get_current_staff_user),
    db: Session = Depends(get_db)
):
    leave = LeaveService(db).reject(leave_id, current_user)
    return LeaveResponse.from_leave(leave)
