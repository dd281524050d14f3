# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from fieldops.models.enums import TaskStatus
from fieldops.schemas.conflict import ConflictReport


class AssignTaskPayload(BaseModel):
    """Request body for binding technicians and a vehicle to a task.

    The first id in ``assignee_ids`` becomes the task lead.
    """

    assignee_ids: list[uuid.UUID] = Field(default_factory=list)
    vehicle_id: uuid.UUID | None = None


class TaskAssigneeResponse(BaseModel):
    user_id: uuid.UUID
    is_lead: bool
    position: int


class TaskResponse(BaseModel):
    """Response schema for a task with its current assignment set."""

    id: uuid.UUID
    job_number: str
    title: str
    status: TaskStatus
    start_at: datetime
    end_at: datetime
    vehicle_id: uuid.UUID | None
    assignees: list[TaskAssigneeResponse]
    created_at: datetime


class AssignmentResult(BaseModel):
    """Successful assignment, with advisory vehicle conflicts if any."""

    task: TaskResponse
    warnings: ConflictReport
