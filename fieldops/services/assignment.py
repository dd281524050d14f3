# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import delete, select
from sqlmodel import col

from fieldops.exceptions import (
    AuthorizationError,
    InvalidRequestError,
    NotFoundError,
    SchedulingConflictError,
    TaskStateError,
)
from fieldops.models.enums import AuditAction, AuditEntityType, TaskStatus
from fieldops.models.task import Task, TaskAssignment, Vehicle
from fieldops.models.user import User
from fieldops.schemas.conflict import ConflictReport, TimeWindow
from fieldops.schemas.task import AssignmentResult, TaskAssigneeResponse, TaskResponse
from fieldops.services.audit import model_to_audit_dict, write_audit_log
from fieldops.services.conflict import ACTIVE_TASK_STATUSES, detect_conflicts
from fieldops.services.hierarchy import can_assign_tasks
from fieldops.services.notification import TaskAssignedEvent, dispatch_task_assigned

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from fieldops.schemas.auth import AuthContext
    from fieldops.schemas.task import AssignTaskPayload

logger = logging.getLogger(__name__)


def _build_task_response(task: Task, assignments: list[TaskAssignment]) -> TaskResponse:
    """Build a TaskResponse from a task and its assignment rows."""
    return TaskResponse(
        id=task.id,
        job_number=task.job_number,
        title=task.title,
        status=TaskStatus(task.status),
        start_at=task.start_at,
        end_at=task.end_at,
        vehicle_id=task.vehicle_id,
        assignees=[
            TaskAssigneeResponse(user_id=a.user_id, is_lead=a.is_lead, position=a.position)
            for a in sorted(assignments, key=lambda a: a.position)
        ],
        created_at=task.created_at,
    )


async def _get_task_or_404(session: AsyncSession, task_id: uuid.UUID, for_update: bool = False) -> Task:
    query = select(Task).where(col(Task.id) == task_id)
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    task = result.scalar_one_or_none()
    if task is None:
        raise NotFoundError("Task not found")
    return task


async def _load_assignments(session: AsyncSession, task_id: uuid.UUID) -> list[TaskAssignment]:
    result = await session.execute(
        select(TaskAssignment).where(col(TaskAssignment.task_id) == task_id).order_by(col(TaskAssignment.position))
    )
    return list(result.scalars().all())


async def _verify_users_exist(session: AsyncSession, user_ids: list[uuid.UUID]) -> None:
    """Raise 400 listing any ids with no active user behind them."""
    if not user_ids:
        return
    result = await session.execute(
        select(col(User.id)).where(col(User.id).in_(user_ids), col(User.is_active).is_(True))
    )
    found = set(result.scalars().all())
    missing = [str(uid) for uid in user_ids if uid not in found]
    if missing:
        raise InvalidRequestError(f"Unknown or inactive users: {', '.join(missing)}")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def get_task(session: AsyncSession, task_id: uuid.UUID) -> TaskResponse:
    """Get a task with its current assignees in lead-first order."""
    task = await _get_task_or_404(session, task_id)
    return _build_task_response(task, await _load_assignments(session, task.id))


async def assign_task(
    session: AsyncSession,
    auth: AuthContext,
    task_id: uuid.UUID,
    payload: AssignTaskPayload,
) -> AssignmentResult:
    """Replace a task's assignees and vehicle, guarded by conflict detection.

    1. Check the caller may dispatch tasks.
    2. Lock the task; it must still be WAITING or IN_PROGRESS.
    3. Run conflict detection for the task's window, excluding the task.
    4. Abort with the full report on any user or leave conflict.
    5. Delete old assignments, insert the new set in caller order (first is
       lead), set the vehicle, audit and commit.
    6. Notify assignees after commit.

    Vehicle overlaps are advisory and returned with the successful result.
    """
    if not can_assign_tasks(auth.role):
        raise AuthorizationError("Not authorized to assign tasks")

    task = await _get_task_or_404(session, task_id, for_update=True)
    if task.status not in ACTIVE_TASK_STATUSES:
        raise TaskStateError("Only waiting or in-progress tasks can be assigned", current_status=task.status)

    assignee_ids = list(dict.fromkeys(payload.assignee_ids))
    await _verify_users_exist(session, assignee_ids)

    if payload.vehicle_id is not None and await session.get(Vehicle, payload.vehicle_id) is None:
        raise NotFoundError("Vehicle not found")

    report = await detect_conflicts(
        session,
        TimeWindow(start=task.start_at, end=task.end_at),
        assignee_ids,
        vehicle_id=payload.vehicle_id,
        exclude_task_id=task.id,
    )
    if report.has_conflict:
        await session.rollback()
        logger.info("Assignment of task %s aborted: %d user conflict(s)", task_id, len(report.user_conflicts))
        raise SchedulingConflictError("Assignment conflicts with existing bookings", report)

    try:
        before_dict = model_to_audit_dict(task)
        before_dict["assignee_ids"] = [str(a.user_id) for a in await _load_assignments(session, task.id)]

        await session.execute(delete(TaskAssignment).where(col(TaskAssignment.task_id) == task.id))

        assignments = [
            TaskAssignment(task_id=task.id, user_id=user_id, is_lead=position == 0, position=position)
            for position, user_id in enumerate(assignee_ids)
        ]
        session.add_all(assignments)
        task.vehicle_id = payload.vehicle_id

        await session.flush()

        after_dict = model_to_audit_dict(task)
        after_dict["assignee_ids"] = [str(uid) for uid in assignee_ids]
        await write_audit_log(
            session,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.TASK,
            entity_id=task.id,
            action=AuditAction.ASSIGN,
            before_json=before_dict,
            after_json=after_dict,
        )

        await session.commit()
    except Exception:
        await session.rollback()
        raise

    if report.has_vehicle_conflict:
        logger.info("Task %s assigned with a vehicle overlap on %s", task.id, payload.vehicle_id)

    if assignee_ids:
        actor = await session.get(User, auth.user_id)
        await dispatch_task_assigned(
            TaskAssignedEvent(
                task_id=task.id,
                task_title=task.title,
                assignee_ids=assignee_ids,
                actor_name=actor.name if actor is not None else str(auth.user_id),
            )
        )

    return AssignmentResult(
        task=_build_task_response(task, assignments),
        warnings=ConflictReport(vehicle_conflicts=report.vehicle_conflicts),
    )
