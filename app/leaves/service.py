"""
Leave request workflow.

PENDING is the only non-terminal state. A decision moves a request to
APPROVED or REJECTED exactly once; the move is a conditional UPDATE so
that, of two concurrent decisions, only the first to commit wins.
"""

import logging
from datetime import date, datetime
from typing import Callable, List, Optional
from sqlalchemy import update
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from app.auth.models import User, STAFF_ROLES
from app.core.exceptions import (
    AlreadyProcessedError,
    DatabaseConnectionError,
    OverlappingLeaveError,
    ValidationError
)
from app.core.security import utcnow
from app.core.service_base import BaseService
from app.core.validators import validate_date_range
from app.leaves.models import LeaveRequest, LeaveStatus, BLOCKING_STATUSES

logger = logging.getLogger(__name__)

DECISIONS = (LeaveStatus.APPROVED, LeaveStatus.REJECTED)


class LeaveService(BaseService):
    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow):
        super().__init__(db)
        self.clock = clock

    def submit_leave(self, employee: User, start_date: date, end_date: date, reason: str) -> LeaveRequest:
        """Create a PENDING request after the range and overlap checks."""
        validate_date_range(start_date, end_date)

        overlapping = self.find_overlapping(employee.id, start_date, end_date)
        if overlapping:
            self.log_service_action(
                "leave_overlap_rejected",
                "LeaveRequest",
                extra_data={"employee_id": str(employee.id), "conflicting": len(overlapping)}
            )
            raise OverlappingLeaveError([leave.id for leave in overlapping])

        leave = LeaveRequest(
            employee_id=employee.id,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
            status=LeaveStatus.PENDING,
            submitted_at=self.clock()
        )

        self.db.add(leave)
        self.safe_commit("Error submitting leave request")
        self.db.refresh(leave)

        self.log_service_action("submit_leave", "LeaveRequest", str(leave.id), {"employee_id": str(employee.id)})
        return leave

    def find_overlapping(self, employee_id, start_date: date, end_date: date) -> List[LeaveRequest]:
        """Pending or approved requests of the employee intersecting [start_date, end_date]."""
        try:
            return (
                self.db.query(LeaveRequest)
                .filter(
                    LeaveRequest.employee_id == employee_id,
                    LeaveRequest.status.in_(BLOCKING_STATUSES),
                    LeaveRequest.start_date <= end_date,
                    LeaveRequest.end_date >= start_date
                )
                .all()
            )
        except OperationalError:
            raise DatabaseConnectionError()

    def get_my_leaves(self, employee: User) -> List[LeaveRequest]:
        return (
            self.db.query(LeaveRequest)
            .filter(LeaveRequest.employee_id == employee.id)
            .order_by(LeaveRequest.start_date.desc())
            .all()
        )

    def get_all_leaves(self, status: Optional[LeaveStatus] = None) -> List[LeaveRequest]:
        query = self.db.query(LeaveRequest)
        if status is not None:
            query = query.filter(LeaveRequest.status == status)
        return query.order_by(LeaveRequest.start_date.asc()).all()

    def approve(self, leave_id, manager: User) -> LeaveRequest:
        return self.decide(leave_id, manager, LeaveStatus.APPROVED)

    def reject(self, leave_id, manager: User) -> LeaveRequest:
        return self.decide(leave_id, manager, LeaveStatus.REJECTED)

    def decide(self, leave_id, manager: User, outcome: LeaveStatus) -> LeaveRequest:
        """Move a PENDING request to ``outcome``, recording who decided and when."""
        if outcome not in DECISIONS:
            raise ValidationError(
                detail="Outcome must be APPROVED or REJECTED",
                field="status",
                value=getattr(outcome, "value", outcome)
            )

        self.require_role(manager, STAFF_ROLES, "approve or reject leave requests")

        leave = self.get_or_404(LeaveRequest, leave_id, "Leave request")
        if leave.status != LeaveStatus.PENDING:
            raise AlreadyProcessedError(str(leave.id), leave.status.value)

        processed_at = self.clock()
        try:
            result = self.db.execute(
                update(LeaveRequest)
                .where(
                    LeaveRequest.id == leave.id,
                    LeaveRequest.status == LeaveStatus.PENDING
                )
                .values(status=outcome, manager_id=manager.id, processed_at=processed_at)
                .execution_options(synchronize_session=False)
            )
        except OperationalError:
            self.safe_rollback()
            raise DatabaseConnectionError()

        if result.rowcount != 1:
            # another decision committed between our read and our write
            self.safe_rollback()
            self.db.refresh(leave)
            logger.info(f"Leave request {leave.id} was decided concurrently; now {leave.status.value}")
            raise AlreadyProcessedError(str(leave.id), leave.status.value)

        self.safe_commit("Error updating leave request")
        self.db.refresh(leave)

        self.log_service_action(
            "decide_leave",
            "LeaveRequest",
            str(leave.id),
            {"status": outcome.value, "manager_id": str(manager.id)}
        )
        return leave
