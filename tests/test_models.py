from __future__ import annotations

import uuid
from datetime import UTC, datetime

from fieldops.models import (
    AuditLog,
    LeaveApproval,
    LeaveRequest,
    LeaveUsage,
    SQLModel,
    Task,
    TaskAssignment,
    User,
    Vehicle,
)
from fieldops.models.enums import LeaveStatus, Role, TaskStatus, VehicleStatus

EXPECTED_TABLES = {
    "app_user",
    "audit_log",
    "leave_approval",
    "leave_request",
    "leave_usage",
    "task",
    "task_assignment",
    "vehicle",
}


def test_all_tables_registered() -> None:
    assert set(SQLModel.metadata.tables.keys()) == EXPECTED_TABLES


def test_user_defaults() -> None:
    user = User(name="Anan")
    assert user.role == Role.TECH
    assert user.supervisor_id is None
    assert user.is_active is True
    assert user.id is not None


def test_task_defaults() -> None:
    task = Task(
        job_number="J-1",
        title="Install",
        start_at=datetime(2026, 1, 10, tzinfo=UTC),
        end_at=datetime(2026, 1, 12, tzinfo=UTC),
    )
    assert task.status == TaskStatus.WAITING
    assert task.vehicle_id is None


def test_vehicle_defaults() -> None:
    assert Vehicle(license_plate="VAN-1").status == VehicleStatus.AVAILABLE


def test_assignment_defaults() -> None:
    assignment = TaskAssignment(task_id=uuid.uuid4(), user_id=uuid.uuid4())
    assert assignment.is_lead is False
    assert assignment.position == 0


def test_leave_request_defaults() -> None:
    leave = LeaveRequest(
        requester_id=uuid.uuid4(),
        category="SICK",
        start_at=datetime(2026, 1, 5, tzinfo=UTC),
        end_at=datetime(2026, 1, 5, 23, 59, tzinfo=UTC),
        total_minutes=480,
    )
    assert leave.status == LeaveStatus.PENDING
    assert leave.is_full_day is True
    assert leave.decided_at is None


def test_leave_usage_defaults() -> None:
    usage = LeaveUsage(user_id=uuid.uuid4(), category="SICK")
    assert usage.used_minutes == 0
    assert usage.quota_minutes is None
    assert usage.version == 1


def test_chain_level_is_unique_per_request() -> None:
    table = LeaveApproval.__table__
    constraints = {c.name for c in table.constraints}  # type: ignore[attr-defined]
    assert "uq_leave_approval_level" in constraints


def test_audit_log_instantiation() -> None:
    entry = AuditLog(actor_id=uuid.uuid4(), entity_type="TASK", entity_id=uuid.uuid4(), action="ASSIGN")
    assert entry.before_json is None
    assert entry.created_at is not None
