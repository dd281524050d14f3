# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel, Field

from fieldops.models.enums import LeaveCategory, LeaveDurationType


class CategoryQuota(BaseModel):
    """Entitlement and usage of one leave category, in working minutes."""

    category: LeaveCategory
    total_minutes: int
    used_minutes: int = 0
    pending_minutes: int = 0
    remaining_minutes: int = 0


class UserLeaveBalance(BaseModel):
    """All category quotas of a user for one calendar year."""

    user_id: uuid.UUID
    year: int
    employment_start_date: date | None = None
    birth_month: int | None = None
    quotas: list[CategoryQuota] = Field(default_factory=list)

    def quota_for(self, category: LeaveCategory) -> CategoryQuota | None:
        return next((q for q in self.quotas if q.category == category), None)


class QuotaSummaryItem(BaseModel):
    """Display row for one category; ``over_quota`` is a warning only."""

    category: LeaveCategory
    label: str
    total_minutes: int
    used_minutes: int
    pending_minutes: int
    remaining_minutes: int
    total_days: float
    remaining_days: float
    over_quota: bool
    allowed_duration_types: list[LeaveDurationType]
    note: str | None = None


class LeaveBalanceResponse(BaseModel):
    balance: UserLeaveBalance
    summary: list[QuotaSummaryItem]
