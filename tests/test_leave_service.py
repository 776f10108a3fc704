"""
Tests for the leave request workflow
"""

import threading
import uuid
from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.auth.models import Role, User
from app.core.database import Base
from app.core.exceptions import (
    AlreadyProcessedError,
    ForbiddenError,
    InvalidDateRangeError,
    OverlappingLeaveError,
    ResourceNotFoundError,
    ValidationError,
)
from app.leaves.models import LeaveStatus
from app.leaves.service import LeaveService

REASON = "Family visit out of town"


@pytest.fixture
def service(db_session):
    return LeaveService(db_session)


class TestSubmit:
    def test_submit_creates_pending_request(self, service, employee):
        leave = service.submit_leave(employee, date(2025, 2, 1), date(2025, 2, 5), REASON)

        assert leave.status == LeaveStatus.PENDING
        assert leave.employee_id == employee.id
        assert leave.manager_id is None
        assert leave.processed_at is None
        assert leave.submitted_at is not None

    def test_single_day_leave(self, service, employee):
        leave = service.submit_leave(employee, date(2025, 2, 1), date(2025, 2, 1), REASON)
        assert leave.start_date == leave.end_date

    def test_end_before_start(self, service, employee):
        with pytest.raises(InvalidDateRangeError) as exc_info:
            service.submit_leave(employee, date(2025, 1, 10), date(2025, 1, 5), REASON)
        assert exc_info.value.error_code == "INVALID_RANGE"
        assert service.get_my_leaves(employee) == []

    def test_overlap_with_pending(self, service, employee):
        first = service.submit_leave(employee, date(2025, 2, 1), date(2025, 2, 5), REASON)

        with pytest.raises(OverlappingLeaveError) as exc_info:
            service.submit_leave(employee, date(2025, 2, 3), date(2025, 2, 10), REASON)
        assert exc_info.value.error_data["conflicting_ids"] == [str(first.id)]

    def test_adjacent_range_allowed(self, service, employee):
        service.submit_leave(employee, date(2025, 2, 1), date(2025, 2, 5), REASON)
        leave = service.submit_leave(employee, date(2025, 2, 6), date(2025, 2, 10), REASON)
        assert leave.status == LeaveStatus.PENDING

    def test_touching_boundary_day_overlaps(self, service, employee):
        """Ranges are inclusive on both ends."""
        service.submit_leave(employee, date(2025, 2, 1), date(2025, 2, 5), REASON)
        with pytest.raises(OverlappingLeaveError):
            service.submit_leave(employee, date(2025, 2, 5), date(2025, 2, 7), REASON)

    def test_overlap_with_approved(self, service, employee, manager):
        first = service.submit_leave(employee, date(2025, 3, 1), date(2025, 3, 5), REASON)
        service.approve(first.id, manager)

        with pytest.raises(OverlappingLeaveError):
            service.submit_leave(employee, date(2025, 3, 4), date(2025, 3, 6), REASON)

    def test_rejected_does_not_block(self, service, employee, manager):
        first = service.submit_leave(employee, date(2025, 3, 1), date(2025, 3, 5), REASON)
        service.reject(first.id, manager)

        leave = service.submit_leave(employee, date(2025, 3, 1), date(2025, 3, 5), REASON)
        assert leave.status == LeaveStatus.PENDING

    def test_other_employees_do_not_block(self, service, make_user):
        alice = make_user(Role.EMPLOYEE)
        bob = make_user(Role.EMPLOYEE)
        service.submit_leave(alice, date(2025, 4, 1), date(2025, 4, 5), REASON)

        leave = service.submit_leave(bob, date(2025, 4, 1), date(2025, 4, 5), REASON)
        assert leave.employee_id == bob.id


class TestDecide:
    def test_approve(self, service, employee, manager):
        leave = service.submit_leave(employee, date(2025, 2, 1), date(2025, 2, 5), REASON)
        decided = service.approve(leave.id, manager)

        assert decided.status == LeaveStatus.APPROVED
        assert decided.manager_id == manager.id
        assert decided.processed_at is not None

    def test_admin_can_reject(self, service, employee, admin):
        leave = service.submit_leave(employee, date(2025, 2, 1), date(2025, 2, 5), REASON)
        decided = service.reject(leave.id, admin)

        assert decided.status == LeaveStatus.REJECTED
        assert decided.manager_id == admin.id

    def test_employee_cannot_decide(self, service, employee, make_user):
        other = make_user(Role.EMPLOYEE)
        leave = service.submit_leave(employee, date(2025, 2, 1), date(2025, 2, 5), REASON)

        with pytest.raises(ForbiddenError):
            service.approve(leave.id, other)
        assert service.get_all_leaves()[0].status == LeaveStatus.PENDING

    def test_unknown_leave(self, service, manager):
        with pytest.raises(ResourceNotFoundError):
            service.approve(uuid.uuid4(), manager)

    def test_second_decision_rejected(self, service, employee, manager):
        leave = service.submit_leave(employee, date(2025, 2, 1), date(2025, 2, 5), REASON)
        service.approve(leave.id, manager)

        with pytest.raises(AlreadyProcessedError) as exc_info:
            service.reject(leave.id, manager)
        assert exc_info.value.status_code == 409
        assert exc_info.value.error_data["status"] == "APPROVED"

    def test_pending_is_not_a_decision(self, service, employee, manager):
        leave = service.submit_leave(employee, date(2025, 2, 1), date(2025, 2, 5), REASON)
        with pytest.raises(ValidationError):
            service.decide(leave.id, manager, LeaveStatus.PENDING)


class TestListing:
    def test_my_leaves_newest_first(self, service, employee, make_user):
        other = make_user(Role.EMPLOYEE)
        service.submit_leave(employee, date(2025, 1, 1), date(2025, 1, 2), REASON)
        service.submit_leave(employee, date(2025, 6, 1), date(2025, 6, 2), REASON)
        service.submit_leave(other, date(2025, 3, 1), date(2025, 3, 2), REASON)

        mine = service.get_my_leaves(employee)
        assert [leave.start_date for leave in mine] == [date(2025, 6, 1), date(2025, 1, 1)]

    def test_all_leaves_status_filter(self, service, employee, manager):
        first = service.submit_leave(employee, date(2025, 1, 1), date(2025, 1, 2), REASON)
        service.submit_leave(employee, date(2025, 2, 1), date(2025, 2, 2), REASON)
        service.approve(first.id, manager)

        assert len(service.get_all_leaves()) == 2
        pending = service.get_all_leaves(LeaveStatus.PENDING)
        assert [leave.start_date for leave in pending] == [date(2025, 2, 1)]


@pytest.fixture
def file_sessions(tmp_path):
    """Independent sessions on a file database, as concurrent requests would have."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'leave.db'}",
        connect_args={"check_same_thread": False, "timeout": 10}
    )
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield Session
    engine.dispose()


def _seed(Session):
    with Session() as session:
        employee = User(first_name="E", last_name="One", email="e@x.com", password_hash="x", role=Role.EMPLOYEE)
        manager_a = User(first_name="M", last_name="A", email="ma@x.com", password_hash="x", role=Role.MANAGER)
        manager_b = User(first_name="M", last_name="B", email="mb@x.com", password_hash="x", role=Role.MANAGER)
        session.add_all([employee, manager_a, manager_b])
        session.commit()
        leave = LeaveService(session).submit_leave(employee, date(2025, 5, 1), date(2025, 5, 3), REASON)
        return leave.id, manager_a.id, manager_b.id


class TestConcurrentDecisions:
    def test_stale_read_loses(self, file_sessions):
        """Both deciders saw PENDING; only the first write takes effect."""
        leave_id, manager_a_id, manager_b_id = _seed(file_sessions)

        session_a = file_sessions()
        session_b = file_sessions()
        try:
            manager_a = session_a.get(User, manager_a_id)
            manager_b = session_b.get(User, manager_b_id)
            service_a = LeaveService(session_a)
            service_b = LeaveService(session_b)

            # both load the request while it is still pending
            assert service_a.get_all_leaves()[0].status == LeaveStatus.PENDING
            assert service_b.get_all_leaves()[0].status == LeaveStatus.PENDING

            service_a.approve(leave_id, manager_a)
            with pytest.raises(AlreadyProcessedError) as exc_info:
                service_b.reject(leave_id, manager_b)
            assert exc_info.value.error_data["status"] == "APPROVED"
        finally:
            session_a.close()
            session_b.close()

        with file_sessions() as session:
            leave = LeaveService(session).get_all_leaves()[0]
            assert leave.status == LeaveStatus.APPROVED
            assert leave.manager_id == manager_a_id

    def test_threads_exactly_one_wins(self, file_sessions):
        leave_id, manager_a_id, manager_b_id = _seed(file_sessions)
        barrier = threading.Barrier(2)
        outcomes = {}

        def decide(name, manager_id, outcome):
            with file_sessions() as session:
                manager = session.get(User, manager_id)
                barrier.wait()
                try:
                    LeaveService(session).decide(leave_id, manager, outcome)
                    outcomes[name] = "ok"
                except AlreadyProcessedError:
                    outcomes[name] = "already_processed"

        threads = [
            threading.Thread(target=decide, args=("a", manager_a_id, LeaveStatus.APPROVED)),
            threading.Thread(target=decide, args=("b", manager_b_id, LeaveStatus.REJECTED)),
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert sorted(outcomes.values()) == ["already_processed", "ok"]

        with file_sessions() as session:
            leave = LeaveService(session).get_all_leaves()[0]
            winner = manager_a_id if outcomes["a"] == "ok" else manager_b_id
            assert leave.manager_id == winner
