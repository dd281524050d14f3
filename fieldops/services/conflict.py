"""Resource double-booking detection across tasks, vehicles and approved leave.

Intervals are closed: a booking ending at the exact instant another starts is
a conflict. The same rule applies to task and leave overlaps.
"""

# ruff: noqa: TC003
from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from fieldops.models.enums import ConflictKind, LeaveStatus, TaskStatus
from fieldops.models.leave import LeaveRequest
from fieldops.models.task import Task, TaskAssignment, Vehicle
from fieldops.models.user import User
from fieldops.schemas.conflict import ConflictEntry, ConflictReport, TimeWindow, UserConflict, VehicleConflict

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

ACTIVE_TASK_STATUSES = (TaskStatus.WAITING.value, TaskStatus.IN_PROGRESS.value)


def windows_overlap(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    """Closed-interval overlap; touching boundaries count."""
    return start_a <= end_b and end_a >= start_b


def task_entry(task: Task) -> ConflictEntry:
    return ConflictEntry(
        kind=ConflictKind.TASK,
        source_id=task.id,
        job_number=task.job_number,
        title=task.title,
        start_at=task.start_at,
        end_at=task.end_at,
    )


def leave_entry(leave: LeaveRequest, user_name: str) -> ConflictEntry:
    return ConflictEntry(
        kind=ConflictKind.LEAVE,
        source_id=leave.id,
        title=f"On leave: {user_name}",
        start_at=leave.start_at,
        end_at=leave.end_at,
    )


# ---------------------------------------------------------------------------
# Pure report assembly
# ---------------------------------------------------------------------------


def build_conflict_report(
    user_ids: Sequence[uuid.UUID],
    task_matches: Iterable[tuple[Task, uuid.UUID]],
    leave_matches: Iterable[LeaveRequest],
    user_names: dict[uuid.UUID, str] | None = None,
    vehicle_id: uuid.UUID | None = None,
    vehicle_tasks: Sequence[Task] = (),
    vehicle: Vehicle | None = None,
) -> ConflictReport:
    """Fold matched bookings into a report.

    ``task_matches`` pairs each overlapping task with one of its assignees.
    Every conflict of a user is kept; leave is appended to the same per-user
    list as tasks. Vehicle conflicts never set ``has_conflict``.
    """
    candidates = set(user_ids)
    names = user_names or {}
    by_user: dict[uuid.UUID, UserConflict] = {}

    def _conflict_for(user_id: uuid.UUID) -> UserConflict:
        conflict = by_user.get(user_id)
        if conflict is None:
            conflict = UserConflict(user_id=user_id, user_name=names.get(user_id, ""))
            by_user[user_id] = conflict
        return conflict

    for task, user_id in task_matches:
        if user_id in candidates:
            _conflict_for(user_id).conflicting_tasks.append(task_entry(task))

    for leave in leave_matches:
        if leave.requester_id in candidates:
            name = names.get(leave.requester_id, "")
            _conflict_for(leave.requester_id).conflicting_tasks.append(leave_entry(leave, name))

    vehicle_conflicts: list[VehicleConflict] = []
    if vehicle_id is not None and vehicle_tasks:
        plate = vehicle.license_plate if vehicle is not None else ""
        vehicle_conflicts.append(
            VehicleConflict(
                vehicle_id=vehicle_id,
                vehicle_name=(vehicle.name if vehicle is not None else None) or plate,
                license_plate=plate,
                conflicting_tasks=[task_entry(t) for t in vehicle_tasks],
            )
        )

    user_conflicts = list(by_user.values())
    return ConflictReport(
        has_conflict=bool(user_conflicts),
        user_conflicts=user_conflicts,
        vehicle_conflicts=vehicle_conflicts,
    )


# ---------------------------------------------------------------------------
# Store queries
# ---------------------------------------------------------------------------


async def _find_user_task_matches(
    session: AsyncSession,
    window: TimeWindow,
    user_ids: Sequence[uuid.UUID],
    exclude_task_id: uuid.UUID | None,
) -> list[tuple[Task, uuid.UUID]]:
    query = (
        select(Task, col(TaskAssignment.user_id))
        .join(TaskAssignment, col(TaskAssignment.task_id) == col(Task.id))
        .where(
            col(Task.status).in_(ACTIVE_TASK_STATUSES),
            col(TaskAssignment.user_id).in_(user_ids),
            col(Task.start_at) <= window.end,
            col(Task.end_at) >= window.start,
        )
        .order_by(col(Task.start_at), col(Task.job_number), col(TaskAssignment.position))
    )
    if exclude_task_id is not None:
        query = query.where(col(Task.id) != exclude_task_id)

    result = await session.execute(query)
    return [(task, user_id) for task, user_id in result.all()]


async def _find_vehicle_tasks(
    session: AsyncSession,
    window: TimeWindow,
    vehicle_id: uuid.UUID,
    exclude_task_id: uuid.UUID | None,
) -> list[Task]:
    query = (
        select(Task)
        .where(
            col(Task.vehicle_id) == vehicle_id,
            col(Task.status).in_(ACTIVE_TASK_STATUSES),
            col(Task.start_at) <= window.end,
            col(Task.end_at) >= window.start,
        )
        .order_by(col(Task.start_at), col(Task.job_number))
    )
    if exclude_task_id is not None:
        query = query.where(col(Task.id) != exclude_task_id)

    result = await session.execute(query)
    return list(result.scalars().all())


async def _find_approved_leave(
    session: AsyncSession,
    window: TimeWindow,
    user_ids: Sequence[uuid.UUID],
) -> list[LeaveRequest]:
    result = await session.execute(
        select(LeaveRequest)
        .where(
            col(LeaveRequest.requester_id).in_(user_ids),
            col(LeaveRequest.status) == LeaveStatus.APPROVED.value,
            col(LeaveRequest.start_at) <= window.end,
            col(LeaveRequest.end_at) >= window.start,
        )
        .order_by(col(LeaveRequest.start_at))
    )
    return list(result.scalars().all())


async def _load_user_names(session: AsyncSession, user_ids: Sequence[uuid.UUID]) -> dict[uuid.UUID, str]:
    result = await session.execute(select(col(User.id), col(User.name)).where(col(User.id).in_(user_ids)))
    return {user_id: name for user_id, name in result.all()}


async def detect_conflicts(
    session: AsyncSession,
    window: TimeWindow,
    user_ids: Sequence[uuid.UUID],
    vehicle_id: uuid.UUID | None = None,
    exclude_task_id: uuid.UUID | None = None,
) -> ConflictReport:
    """Scan active tasks and approved leave for bookings overlapping ``window``.

    1. Active tasks (WAITING, IN_PROGRESS) of the candidate users.
    2. Active tasks using the candidate vehicle (advisory).
    3. Approved leave of the candidate users.
    """
    user_ids = list(dict.fromkeys(user_ids))
    task_matches: list[tuple[Task, uuid.UUID]] = []
    leave_matches: list[LeaveRequest] = []
    names: dict[uuid.UUID, str] = {}

    if user_ids:
        task_matches = await _find_user_task_matches(session, window, user_ids, exclude_task_id)
        leave_matches = await _find_approved_leave(session, window, user_ids)
        if task_matches or leave_matches:
            names = await _load_user_names(session, user_ids)

    vehicle: Vehicle | None = None
    vehicle_tasks: list[Task] = []
    if vehicle_id is not None:
        vehicle_tasks = await _find_vehicle_tasks(session, window, vehicle_id, exclude_task_id)
        if vehicle_tasks:
            vehicle = await session.get(Vehicle, vehicle_id)

    return build_conflict_report(user_ids, task_matches, leave_matches, names, vehicle_id, vehicle_tasks, vehicle)


async def find_tasks_during_leave(
    session: AsyncSession,
    user_id: uuid.UUID,
    window: TimeWindow,
) -> list[ConflictEntry]:
    """Waiting tasks assigned to ``user_id`` that overlap a leave window."""
    result = await session.execute(
        select(Task)
        .join(TaskAssignment, col(TaskAssignment.task_id) == col(Task.id))
        .where(
            col(Task.status) == TaskStatus.WAITING.value,
            col(TaskAssignment.user_id) == user_id,
            col(Task.start_at) <= window.end,
            col(Task.end_at) >= window.start,
        )
        .order_by(col(Task.start_at))
    )
    return [task_entry(task) for task in result.scalars().all()]
