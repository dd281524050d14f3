from sqlmodel import SQLModel

from fieldops.models.audit import AuditLog
from fieldops.models.base import TimestampMixin, UUIDBase
from fieldops.models.enums import (
    ApprovalDecision,
    AuditAction,
    AuditEntityType,
    ConflictKind,
    LeaveCategory,
    LeaveDurationType,
    LeaveStatus,
    ProrationMethod,
    Role,
    TaskStatus,
    VehicleStatus,
)
from fieldops.models.leave import LeaveApproval, LeaveRequest
from fieldops.models.task import Task, TaskAssignment, Vehicle
from fieldops.models.user import LeaveUsage, User

__all__ = [
    "ApprovalDecision",
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "ConflictKind",
    "LeaveApproval",
    "LeaveCategory",
    "LeaveDurationType",
    "LeaveRequest",
    "LeaveStatus",
    "LeaveUsage",
    "ProrationMethod",
    "Role",
    "SQLModel",
    "Task",
    "TaskAssignment",
    "TaskStatus",
    "TimestampMixin",
    "UUIDBase",
    "User",
    "Vehicle",
]
