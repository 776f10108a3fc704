from pydantic import Field
from typing import Optional
from datetime import datetime
from uuid import UUID
from app.core.schemas import CamelModel
from app.complaints.models import Complaint, ComplaintPriority, ComplaintStatus


class ComplaintCreate(CamelModel):
    title: str = Field(..., min_length=5, max_length=200)
    description: str = Field(..., min_length=20, max_length=2000)
    category: Optional[str] = Field(None, max_length=50)
    priority: Optional[ComplaintPriority] = None


class ComplaintUpdate(CamelModel):
    status: Optional[ComplaintStatus] = None
    resolution: Optional[str] = Field(None, max_length=2000)


class ComplaintResponse(CamelModel):
    id: UUID
    user_id: UUID
    user_name: Optional[str] = None
    title: str
    description: str
    category: Optional[str] = None
    priority: ComplaintPriority
    status: ComplaintStatus
    assigned_to_id: Optional[UUID] = None
    assigned_to_name: Optional[str] = None
    resolution: Optional[str] = None
    submitted_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    @classmethod
    def from_complaint(cls, complaint: Complaint) -> "ComplaintResponse":
        return cls(
            id=complaint.id,
            user_id=complaint.user_id,
            user_name=complaint.user.full_name if complaint.user else None,
            title=complaint.title,
            description=complaint.description,
            category=complaint.category,
            priority=complaint.priority,
            status=complaint.status,
            assigned_to_id=complaint.assigned_to_id,
            assigned_to_name=complaint.assigned_to.full_name if complaint.assigned_to else None,
            resolution=complaint.resolution,
            submitted_at=complaint.submitted_at,
            updated_at=complaint.updated_at,
            resolved_at=complaint.resolved_at
        )
