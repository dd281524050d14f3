# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Protocol, runtime_checkable

from pydantic import BaseModel

from fieldops.models.enums import ApprovalDecision, LeaveCategory

logger = logging.getLogger(__name__)


class LeaveDecisionEvent(BaseModel):
    """Emitted after an approval decision has been committed."""

    leave_request_id: uuid.UUID
    requester_id: uuid.UUID
    actor_name: str
    decision: ApprovalDecision
    reason: str | None = None
    category: LeaveCategory
    category_label: str
    start_at: datetime
    end_at: datetime
    total_days: float


class LeaveRequestedEvent(BaseModel):
    """Emitted after a leave request has been submitted."""

    leave_request_id: uuid.UUID
    requester_id: uuid.UUID
    requester_name: str
    category_label: str
    start_at: datetime
    end_at: datetime
    approver_ids: list[uuid.UUID]


class TaskAssignedEvent(BaseModel):
    """Emitted after a task's assignment set has been replaced."""

    task_id: uuid.UUID
    task_title: str
    assignee_ids: list[uuid.UUID]
    actor_name: str


@runtime_checkable
class NotificationService(Protocol):
    """Interface for the external notification collaborator.

    Delivery (email, webhook, in-app) is the collaborator's concern. Callers
    invoke it only after their transaction has committed.
    """

    async def leave_decided(self, event: LeaveDecisionEvent) -> None: ...

    async def leave_requested(self, event: LeaveRequestedEvent) -> None: ...

    async def task_assigned(self, event: TaskAssignedEvent) -> None: ...


class InMemoryNotificationService:
    """Records events in memory; used for development and tests."""

    def __init__(self) -> None:
        self.events: list[LeaveDecisionEvent | LeaveRequestedEvent | TaskAssignedEvent] = []

    async def leave_decided(self, event: LeaveDecisionEvent) -> None:
        self.events.append(event)

    async def leave_requested(self, event: LeaveRequestedEvent) -> None:
        self.events.append(event)

    async def task_assigned(self, event: TaskAssignedEvent) -> None:
        self.events.append(event)


_notification_service: NotificationService = InMemoryNotificationService()


def get_notification_service() -> NotificationService:
    """Return the active notification collaborator."""
    return _notification_service


def set_notification_service(service: NotificationService) -> None:
    """Override the service (for testing or production wiring)."""
    global _notification_service
    _notification_service = service


async def dispatch_leave_decided(event: LeaveDecisionEvent) -> bool:
    """Best-effort delivery; a failure is logged and never undoes the decision."""
    try:
        await get_notification_service().leave_decided(event)
    except Exception:
        logger.exception("Failed to notify leave decision for request %s", event.leave_request_id)
        return False
    return True


async def dispatch_leave_requested(event: LeaveRequestedEvent) -> bool:
    try:
        await get_notification_service().leave_requested(event)
    except Exception:
        logger.exception("Failed to notify approvers of leave request %s", event.leave_request_id)
        return False
    return True


async def dispatch_task_assigned(event: TaskAssignedEvent) -> bool:
    try:
        await get_notification_service().task_assigned(event)
    except Exception:
        logger.exception("Failed to notify assignees of task %s", event.task_id)
        return False
    return True
