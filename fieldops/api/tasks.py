# ruff: noqa: TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter

from fieldops.api.deps import AuthDep
from fieldops.db import SessionDep
from fieldops.schemas.task import AssignmentResult, AssignTaskPayload, TaskResponse
from fieldops.services import assignment as assignment_service

tasks_router = APIRouter(prefix="/tasks", tags=["tasks"])


@tasks_router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: uuid.UUID,
    session: SessionDep,
    _auth: AuthDep,
) -> TaskResponse:
    """Get a task with its assignees, lead first."""
    return await assignment_service.get_task(session, task_id)


@tasks_router.post("/{task_id}/assign", response_model=AssignmentResult)
async def assign_task(
    task_id: uuid.UUID,
    payload: AssignTaskPayload,
    session: SessionDep,
    auth: AuthDep,
) -> AssignmentResult:
    """Replace the task's assignees and vehicle.

    Returns 409 with the conflict report when a user is double-booked or on
    leave. Vehicle overlaps come back as warnings.
    """
    return await assignment_service.assign_task(session, auth, task_id, payload)
