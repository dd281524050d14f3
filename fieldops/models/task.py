# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field

from fieldops.models.base import TimestampMixin, UUIDBase, aware_datetime_type
from fieldops.models.enums import TaskStatus, VehicleStatus


class Vehicle(UUIDBase, TimestampMixin, table=True):
    """A bookable fleet vehicle."""

    __tablename__ = "vehicle"

    name: str | None = Field(default=None, max_length=255)
    license_plate: str = Field(max_length=50, unique=True)
    status: str = Field(default=VehicleStatus.AVAILABLE, max_length=50)


class Task(UUIDBase, TimestampMixin, table=True):
    """A dispatched job occupying technicians and optionally a vehicle."""

    __tablename__ = "task"
    __table_args__ = (sa.Index("ix_task_status_window", "status", "start_at", "end_at"),)

    job_number: str = Field(max_length=50, index=True)
    title: str = Field(max_length=255)
    status: str = Field(
        default=TaskStatus.WAITING, max_length=50, index=True, sa_column_kwargs={"server_default": "WAITING"}
    )
    start_at: datetime = Field(sa_type=aware_datetime_type())  # ty: ignore[invalid-argument-type]
    end_at: datetime = Field(sa_type=aware_datetime_type())  # ty: ignore[invalid-argument-type]
    vehicle_id: uuid.UUID | None = Field(
        default=None,
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("vehicle.id", ondelete="SET NULL"), nullable=True, index=True),
    )


class TaskAssignment(UUIDBase, TimestampMixin, table=True):
    """Binds a user to a task; position preserves the dispatcher's ordering."""

    __tablename__ = "task_assignment"
    __table_args__ = (sa.UniqueConstraint("task_id", "user_id", name="uq_assignment_task_user"),)

    task_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("task.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    user_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    is_lead: bool = False
    position: int = 0
