# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, time

from fastapi import APIRouter, Query, status

from fieldops.api.deps import AuthDep
from fieldops.db import SessionDep
from fieldops.exceptions import InvalidRequestError
from fieldops.models.enums import LeaveCategory, LeaveStatus
from fieldops.schemas.leave import (
    DecisionPayload,
    LeaveDecisionResponse,
    LeaveListResponse,
    LeaveRequestResponse,
    LeaveSubmissionResponse,
    LeaveValidationResponse,
    SubmitLeavePayload,
)
from fieldops.services import approval as approval_service
from fieldops.services import leave as leave_service

leaves_router = APIRouter(prefix="/leaves", tags=["leaves"])


@leaves_router.post("", response_model=LeaveSubmissionResponse, status_code=status.HTTP_201_CREATED)
async def submit_leave(
    payload: SubmitLeavePayload,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveSubmissionResponse:
    """Submit a leave request for the caller."""
    return await leave_service.submit_leave_request(session, auth, payload)


@leaves_router.get("", response_model=LeaveListResponse)
async def list_leaves(
    session: SessionDep,
    auth: AuthDep,
    status_filter: LeaveStatus | None = Query(default=None, alias="status"),
    requester_id: uuid.UUID | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
) -> LeaveListResponse:
    """List leave requests visible to the caller."""
    return await leave_service.list_leave_requests(session, auth, status_filter, requester_id, offset, limit)


@leaves_router.get("/validate", response_model=LeaveValidationResponse)
async def validate_leave(
    session: SessionDep,
    auth: AuthDep,
    category: LeaveCategory = Query(),
    start_date: date = Query(),
    end_date: date | None = Query(default=None),
    is_full_day: bool = Query(default=True),
    start_time: time | None = Query(default=None),
    end_time: time | None = Query(default=None),
) -> LeaveValidationResponse:
    """Dry-run the submission checks for the caller."""
    if end_date is not None and end_date < start_date:
        raise InvalidRequestError("end_date must not be before start_date")
    payload = SubmitLeavePayload(
        category=category,
        start_date=start_date,
        end_date=end_date or start_date,
        is_full_day=is_full_day,
        start_time=start_time,
        end_time=end_time,
    )
    return await leave_service.preview_leave_request(session, auth, payload)


@leaves_router.get("/{leave_id}", response_model=LeaveRequestResponse)
async def get_leave(
    leave_id: uuid.UUID,
    session: SessionDep,
    _auth: AuthDep,
) -> LeaveRequestResponse:
    """Get a single leave request with its approval chain."""
    return await leave_service.get_leave_request(session, leave_id)


@leaves_router.post("/{leave_id}/approve", response_model=LeaveDecisionResponse)
async def approve_leave(
    leave_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    payload: DecisionPayload | None = None,
) -> LeaveDecisionResponse:
    """Approve a pending leave request."""
    return await approval_service.approve_leave_request(
        session, auth, leave_id, payload.comment if payload else None
    )


@leaves_router.post("/{leave_id}/reject", response_model=LeaveDecisionResponse)
async def reject_leave(
    leave_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    payload: DecisionPayload | None = None,
) -> LeaveDecisionResponse:
    """Reject a pending leave request; the comment becomes the rejection reason."""
    return await approval_service.reject_leave_request(
        session, auth, leave_id, payload.comment if payload else None
    )


@leaves_router.post("/{leave_id}/cancel", response_model=LeaveRequestResponse)
async def cancel_leave(
    leave_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveRequestResponse:
    """Cancel a pending leave request."""
    return await leave_service.cancel_leave_request(session, auth, leave_id)
