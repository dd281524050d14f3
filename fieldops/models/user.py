# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from fieldops.models.base import TimestampMixin, UUIDBase, aware_datetime_type, now_utc
from fieldops.models.enums import Role


class User(UUIDBase, TimestampMixin, table=True):
    """A member of staff with a role and an optional direct supervisor."""

    __tablename__ = "app_user"

    name: str = Field(max_length=255)
    email: str | None = Field(default=None, max_length=255)
    role: str = Field(default=Role.TECH, max_length=50, index=True)
    supervisor_id: uuid.UUID | None = Field(
        default=None,
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("app_user.id", ondelete="SET NULL"), nullable=True, index=True),
    )
    department_id: uuid.UUID | None = Field(default=None, index=True)
    sub_unit_id: uuid.UUID | None = Field(default=None, index=True)
    employment_start_date: date | None = None
    birth_month: int | None = Field(default=None, ge=1, le=12)
    is_active: bool = True


class LeaveUsage(SQLModel, table=True):
    """Per-user, per-category leave counter mutated only by approval decisions."""

    __tablename__ = "leave_usage"
    __table_args__ = (sa.PrimaryKeyConstraint("user_id", "category"),)

    user_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False),
    )
    category: str = Field(max_length=50)
    quota_minutes: int | None = None  # overrides the policy entitlement when set
    used_minutes: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
    updated_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=now_utc,
        sa_type=aware_datetime_type(),
        sa_column_kwargs={"server_default": sa.func.now(), "onupdate": sa.func.now()},
    )
    version: int = Field(default=1, sa_column_kwargs={"server_default": "1"})
