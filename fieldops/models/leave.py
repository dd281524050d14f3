# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime, time

import sqlalchemy as sa
from sqlmodel import Field

from fieldops.models.base import TimestampMixin, UUIDBase, aware_datetime_type, now_utc
from fieldops.models.enums import LeaveStatus


class LeaveRequest(UUIDBase, TimestampMixin, table=True):
    """A user's leave request with approval workflow state."""

    __tablename__ = "leave_request"
    __table_args__ = (sa.Index("ix_leave_requester_status", "requester_id", "status"),)

    requester_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    category: str = Field(max_length=50, index=True)
    start_at: datetime = Field(sa_type=aware_datetime_type())  # ty: ignore[invalid-argument-type]
    end_at: datetime = Field(sa_type=aware_datetime_type())  # ty: ignore[invalid-argument-type]
    is_full_day: bool = True
    start_time: time | None = None
    end_time: time | None = None
    total_minutes: int
    reason: str | None = None
    status: str = Field(
        default=LeaveStatus.PENDING, max_length=50, index=True, sa_column_kwargs={"server_default": "PENDING"}
    )
    current_approver_id: uuid.UUID | None = None
    decided_at: datetime | None = Field(
        default=None,
        sa_type=aware_datetime_type(),  # ty: ignore[invalid-argument-type]
    )
    decided_by: uuid.UUID | None = None
    rejection_reason: str | None = None


class LeaveApproval(UUIDBase, table=True):
    """Append-only approval chain entry; one per level per request."""

    __tablename__ = "leave_approval"
    __table_args__ = (sa.UniqueConstraint("leave_request_id", "level", name="uq_leave_approval_level"),)

    leave_request_id: uuid.UUID = Field(
        sa_column=sa.Column(
            sa.Uuid, sa.ForeignKey("leave_request.id", ondelete="CASCADE"), nullable=False, index=True
        ),
    )
    level: int
    approver_id: uuid.UUID
    approver_role: str = Field(max_length=50)
    decision: str = Field(max_length=50)
    comment: str | None = None
    decided_at: datetime = Field(
        default_factory=now_utc,
        sa_type=aware_datetime_type(),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now()},
    )
