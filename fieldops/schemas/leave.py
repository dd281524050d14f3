# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime, time
from typing import Self

from pydantic import BaseModel, Field, model_validator

from fieldops.models.enums import ApprovalDecision, LeaveCategory, LeaveStatus, Role
from fieldops.schemas.conflict import ConflictEntry

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class SubmitLeavePayload(BaseModel):
    """Request body for a new leave request.

    Full-day leave takes whole calendar days between ``start_date`` and
    ``end_date``. Partial-day leave needs ``start_time``/``end_time`` and a
    single calendar day.
    """

    category: LeaveCategory
    start_date: date
    end_date: date
    is_full_day: bool = True
    start_time: time | None = None
    end_time: time | None = None
    reason: str | None = Field(default=None, max_length=1000)

    @model_validator(mode="after")
    def _validate_dates(self) -> Self:
        if self.end_date < self.start_date:
            msg = "end_date must not be before start_date"
            raise ValueError(msg)
        return self


class DecisionPayload(BaseModel):
    """Request body for approve/reject actions."""

    comment: str | None = Field(default=None, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ApprovalEntryResponse(BaseModel):
    level: int
    approver_id: uuid.UUID
    approver_role: Role
    decision: ApprovalDecision
    comment: str | None
    decided_at: datetime


class LeaveRequestResponse(BaseModel):
    """Response schema for a single leave request."""

    id: uuid.UUID
    requester_id: uuid.UUID
    category: LeaveCategory
    start_at: datetime
    end_at: datetime
    is_full_day: bool
    start_time: time | None
    end_time: time | None
    total_minutes: int
    reason: str | None
    status: LeaveStatus
    current_approver_id: uuid.UUID | None
    decided_at: datetime | None
    decided_by: uuid.UUID | None
    rejection_reason: str | None
    approval_chain: list[ApprovalEntryResponse] = Field(default_factory=list)
    created_at: datetime


class LeaveSubmissionResponse(BaseModel):
    """A newly submitted request with non-blocking warnings."""

    leave: LeaveRequestResponse
    warnings: list[str] = Field(default_factory=list)
    conflicting_tasks: list[ConflictEntry] = Field(default_factory=list)


class LeaveDecisionResponse(BaseModel):
    """Outcome of an approval decision."""

    leave: LeaveRequestResponse
    used_minutes: int | None = None  # approved minutes in the year the leave starts
    quota_minutes: int | None = None
    over_quota: bool = False


class LeaveListResponse(BaseModel):
    """Paginated list of leave requests."""

    items: list[LeaveRequestResponse]
    total: int


class LeaveValidationResponse(BaseModel):
    """Dry-run outcome of a prospective leave request; nothing is stored."""

    valid: bool
    total_minutes: int
    total_days: float
    display: str
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    conflicting_tasks: list[ConflictEntry] = Field(default_factory=list)
