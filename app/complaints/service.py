import logging
from datetime import datetime
from typing import Callable, List, Optional
from sqlalchemy.orm import Session
from app.auth.models import User, Role, STAFF_ROLES
from app.complaints.models import Complaint, ComplaintPriority, ComplaintStatus
from app.core.exceptions import ForbiddenError, InvalidStatusTransitionError
from app.core.security import utcnow
from app.core.service_base import BaseService

logger = logging.getLogger(__name__)


class ComplaintService(BaseService):
    def __init__(self, db: Session, clock: Callable[[], datetime] = utcnow):
        super().__init__(db)
        self.clock = clock

    def submit_complaint(
        self,
        user: User,
        title: str,
        description: str,
        category: Optional[str] = None,
        priority: Optional[ComplaintPriority] = None
    ) -> Complaint:
        """File a new OPEN, unassigned complaint."""
        complaint = Complaint(
            user_id=user.id,
            title=title,
            description=description,
            category=category,
            priority=priority or ComplaintPriority.MEDIUM,
            status=ComplaintStatus.OPEN,
            submitted_at=self.clock()
        )

        self.db.add(complaint)
        self.safe_commit("Error submitting complaint")
        self.db.refresh(complaint)

        self.log_service_action("submit_complaint", "Complaint", str(complaint.id), {"user_id": str(user.id)})
        return complaint

    def get_my_complaints(self, user: User) -> List[Complaint]:
        return (
            self.db.query(Complaint)
            .filter(Complaint.user_id == user.id)
            .order_by(Complaint.submitted_at.desc())
            .all()
        )

    def get_all_complaints(self, status: Optional[ComplaintStatus] = None) -> List[Complaint]:
        query = self.db.query(Complaint)
        if status is not None:
            query = query.filter(Complaint.status == status)
        return query.order_by(Complaint.submitted_at.desc()).all()

    def get_assigned_complaints(self, staff: User) -> List[Complaint]:
        return (
            self.db.query(Complaint)
            .filter(Complaint.assigned_to_id == staff.id)
            .order_by(Complaint.submitted_at.desc())
            .all()
        )

    def get_unassigned_complaints(self) -> List[Complaint]:
        return (
            self.db.query(Complaint)
            .filter(Complaint.assigned_to_id.is_(None))
            .order_by(Complaint.submitted_at.asc())
            .all()
        )

    def assign_complaint(self, complaint_id, staff_id, acting_user: User) -> Complaint:
        """Hand a complaint to a staff member and mark it IN_PROGRESS."""
        self.require_role(acting_user, STAFF_ROLES, "assign complaints")

        complaint = self.get_or_404(Complaint, complaint_id, "Complaint")
        staff = self.get_or_404(User, staff_id, "Staff")

        complaint.assigned_to_id = staff.id
        complaint.status = ComplaintStatus.IN_PROGRESS
        complaint.updated_at = self.clock()

        self.safe_commit("Error assigning complaint")
        self.db.refresh(complaint)

        self.log_service_action(
            "assign_complaint",
            "Complaint",
            str(complaint.id),
            {"assigned_to_id": str(staff.id), "assigned_by": str(acting_user.id)}
        )
        return complaint

    def update_complaint(
        self,
        complaint_id,
        acting_user: User,
        status: Optional[ComplaintStatus] = None,
        resolution: Optional[str] = None
    ) -> Complaint:
        """
        Change status and/or resolution.

        Only the assignee or an admin may update. ``resolved_at`` is stamped
        the first time the complaint reaches RESOLVED and never moved again.
        """
        complaint = self.get_or_404(Complaint, complaint_id, "Complaint")

        is_admin = acting_user.role == Role.ADMIN
        is_assignee = complaint.assigned_to_id is not None and complaint.assigned_to_id == acting_user.id
        if not (is_admin or is_assignee):
            self.log_service_action(
                "forbidden",
                "Complaint",
                str(complaint.id),
                {"attempted_action": "update complaint", "user_id": str(acting_user.id)}
            )
            raise ForbiddenError("Only the assignee or an administrator can update this complaint")

        if status == ComplaintStatus.OPEN and complaint.assigned_to_id is not None:
            raise InvalidStatusTransitionError(
                "An assigned complaint cannot be reopened as OPEN",
                current_status=complaint.status.value,
                requested_status=status.value
            )

        now = self.clock()
        if status is not None:
            complaint.status = status
            if status == ComplaintStatus.RESOLVED and complaint.resolved_at is None:
                complaint.resolved_at = now
        if resolution is not None:
            complaint.resolution = resolution
        complaint.updated_at = now

        self.safe_commit("Error updating complaint")
        self.db.refresh(complaint)

        self.log_service_action(
            "update_complaint",
            "Complaint",
            str(complaint.id),
            {"status": complaint.status.value, "updated_by": str(acting_user.id)}
        )
        return complaint

    def delete_complaint(self, complaint_id, acting_user: User) -> None:
        self.require_role(acting_user, (Role.ADMIN,), "delete complaints")

        complaint = self.get_or_404(Complaint, complaint_id, "Complaint")
        self.db.delete(complaint)
        self.safe_commit("Error deleting complaint")

        self.log_service_action("delete_complaint", "Complaint", str(complaint_id), {"deleted_by": str(acting_user.id)})
