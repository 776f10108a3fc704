from pydantic import Field, field_validator
from typing import Optional
from datetime import date, datetime
from uuid import UUID
from app.core.schemas import CamelModel
from app.leaves.models import LeaveRequest, LeaveStatus


class LeaveCreate(CamelModel):
    start_date: date
    end_date: date
    reason: str = Field(..., min_length=10, max_length=500)

    @field_validator("start_date")
    @classmethod
    def start_date_not_in_past(cls, value: date) -> date:
        if value < date.today():
            raise ValueError("Start date cannot be in the past")
        return value

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Reason is required and cannot be blank")
        return value


class LeaveResponse(CamelModel):
    id: UUID
    employee_id: UUID
    employee_name: Optional[str] = None
    start_date: date
    end_date: date
    reason: str
    status: LeaveStatus
    manager_id: Optional[UUID] = None
    manager_name: Optional[str] = None
    submitted_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None

    @classmethod
    def from_leave(cls, leave: LeaveRequest) -> "LeaveResponse":
        return cls(
            id=leave.id,
            employee_id=leave.employee_id,
            employee_name=leave.employee.full_name if leave.employee else None,
            start_date=leave.start_date,
            end_date=leave.end_date,
            reason=leave.reason,
            status=leave.status,
            manager_id=leave.manager_id,
            manager_name=leave.manager.full_name if leave.manager else None,
            submitted_at=leave.submitted_at,
            processed_at=leave.processed_at
        )
