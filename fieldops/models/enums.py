from __future__ import annotations

import enum


class Role(enum.StrEnum):
    """Organizational role of a user."""

    ADMIN = "ADMIN"
    FINANCE_LEADER = "FINANCE_LEADER"
    SALES_LEADER = "SALES_LEADER"
    HEAD_TECH = "HEAD_TECH"
    CUSTOMER_SERVICE = "CUSTOMER_SERVICE"
    LEADER = "LEADER"
    FINANCE = "FINANCE"
    SALES = "SALES"
    TECH = "TECH"


class TaskStatus(enum.StrEnum):
    """Lifecycle of a dispatched task."""

    WAITING = "WAITING"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"
    CANCELLED = "CANCELLED"


class VehicleStatus(enum.StrEnum):
    AVAILABLE = "AVAILABLE"
    IN_USE = "IN_USE"
    MAINTENANCE = "MAINTENANCE"
    OUT_OF_SERVICE = "OUT_OF_SERVICE"


class LeaveStatus(enum.StrEnum):
    """State machine for leave requests."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class LeaveCategory(enum.StrEnum):
    """Category of a leave request."""

    SICK = "SICK"
    PERSONAL = "PERSONAL"
    VACATION = "VACATION"
    BIRTHDAY = "BIRTHDAY"
    OTHER = "OTHER"


class LeaveDurationType(enum.StrEnum):
    """Whether leave spans whole days or a clock-bounded part of one day."""

    FULL_DAY = "FULL_DAY"
    TIME_BASED = "TIME_BASED"


class ApprovalDecision(enum.StrEnum):
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ConflictKind(enum.StrEnum):
    """Origin of a conflicting booking."""

    TASK = "TASK"
    LEAVE = "LEAVE"


class ProrationMethod(enum.StrEnum):
    """How tenure-based entitlements are calculated."""

    NONE = "NONE"
    MONTHS_EMPLOYED = "MONTHS_EMPLOYED"
    FIRST_YEAR_PRORATA = "FIRST_YEAR_PRORATA"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    LEAVE_REQUEST = "LEAVE_REQUEST"
    LEAVE_USAGE = "LEAVE_USAGE"
    TASK = "TASK"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    CANCEL = "CANCEL"
    SUBMIT = "SUBMIT"
    ASSIGN = "ASSIGN"
