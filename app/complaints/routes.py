from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
from app.core.database import get_db
from app.core.dependencies import get_current_user, get_current_staff_user, get_current_admin_user
from app.auth.models import User
from app.complaints.models import ComplaintStatus
from app.complaints.schemas import ComplaintCreate, ComplaintUpdate, ComplaintResponse
from app.complaints.service import ComplaintService

router = APIRouter(prefix="/api/complaints", tags=["complaints"])


@router.post("", response_model=ComplaintResponse, status_code=status.HTTP_201_CREATED)
async def submit_complaint(
    complaint_data: ComplaintCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Submit a new complaint."""
    complaint = ComplaintService(db).submit_complaint(
        current_user,
        complaint_data.title,
        complaint_data.description,
        complaint_data.category,
        complaint_data.priority
    )
    return ComplaintResponse.from_complaint(complaint)


@router.get("/my", response_model=List[ComplaintResponse])
async def get_my_complaints(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    complaints = ComplaintService(db).get_my_complaints(current_user)
    return [ComplaintResponse.from_complaint(c) for c in complaints]


@router.get("/all", response_model=List[ComplaintResponse])
async def get_all_complaints(
    status: Optional[ComplaintStatus] = None,
    current_user: User = Depends(get_current_staff_user),
    db: Session = Depends(get_db)
):
    complaints = ComplaintService(db).get_all_complaints(status)
    return [ComplaintResponse.from_complaint(c) for c in complaints]


@router.get("/assigned", response_model=List[ComplaintResponse])
async def get_assigned_complaints(
    current_user: User = Depends(get_current_staff_user),
    db: Session = Depends(get_db)
):
    """Complaints assigned to the current staff member."""
    complaints = ComplaintService(db).get_assigned_complaints(current_user)
    return [ComplaintResponse.from_complaint(c) for c in complaints]


@router.get("/unassigned", response_model=List[ComplaintResponse])
async def get_unassigned_complaints(
    current_user: User = Depends(get_current_staff_user),
    db: Session = Depends(get_db)
):
    complaints = ComplaintService(db).get_unassigned_complaints()
    return [ComplaintResponse.from_complaint(c) for c in complaints]


@router.put("/{complaint_id}/assign/{staff_id}", response_model=ComplaintResponse)
async def assign_complaint(
    complaint_id: UUID,
    staff_id: UUID,
    current_user: User = Depends(get_current_staff_user),
    db: Session = Depends(get_db)
):
    complaint = ComplaintService(db).assign_complaint(complaint_id, staff_id, current_user)
    return ComplaintResponse.from_complaint(complaint)


@router.put("/{complaint_id}", response_model=ComplaintResponse)
async def update_complaint(
    complaint_id: UUID,
    update_data: ComplaintUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update status or resolution. Restricted to the assignee or an admin."""
    complaint = ComplaintService(db).update_complaint(
        complaint_id,
        current_user,
        status=update_data.status,
        resolution=update_data.resolution
    )
    return ComplaintResponse.from_complaint(complaint)


@router.delete("/{complaint_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_complaint(
    complaint_id: UUID,
    current_user: User = Depends(get_current_admin_user),
    db: Session = Depends(get_db)
):
    ComplaintService(db).delete_complaint(complaint_id, current_user)
