# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Self

from pydantic import BaseModel, Field, model_validator

from fieldops.models.enums import ConflictKind


class TimeWindow(BaseModel):
    """A closed [start, end] interval; touching boundaries overlap."""

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _validate_order(self) -> Self:
        if self.start > self.end:
            msg = "start must not be after end"
            raise ValueError(msg)
        return self


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------


class ConflictEntry(BaseModel):
    """A booking that overlaps the candidate window.

    ``kind`` tells task bookings and approved leave apart; ``source_id`` is the
    task id or the leave request id accordingly.
    """

    kind: ConflictKind
    source_id: uuid.UUID
    job_number: str | None = None
    title: str
    start_at: datetime
    end_at: datetime


class UserConflict(BaseModel):
    user_id: uuid.UUID
    user_name: str
    conflicting_tasks: list[ConflictEntry] = Field(default_factory=list)


class VehicleConflict(BaseModel):
    vehicle_id: uuid.UUID
    vehicle_name: str
    license_plate: str
    conflicting_tasks: list[ConflictEntry] = Field(default_factory=list)


class ConflictReport(BaseModel):
    """Result of a conflict scan. Only user conflicts are blocking."""

    has_conflict: bool = False
    user_conflicts: list[UserConflict] = Field(default_factory=list)
    vehicle_conflicts: list[VehicleConflict] = Field(default_factory=list)

    @property
    def has_vehicle_conflict(self) -> bool:
        return bool(self.vehicle_conflicts)


# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class ConflictCheckPayload(BaseModel):
    """Request body for an ad-hoc conflict check."""

    start_at: datetime
    end_at: datetime
    assignee_ids: list[uuid.UUID] = Field(default_factory=list)
    vehicle_id: uuid.UUID | None = None
    exclude_task_id: uuid.UUID | None = None

    @model_validator(mode="after")
    def _validate_dates(self) -> Self:
        if self.end_at < self.start_at:
            msg = "end_at must not be before start_at"
            raise ValueError(msg)
        return self

    def window(self) -> TimeWindow:
        return TimeWindow(start=self.start_at, end=self.end_at)
