# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, time
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from sqlalchemy import func, select
from sqlmodel import col

from fieldops.config import get_settings
from fieldops.exceptions import AuthorizationError, InvalidRequestError, LeaveStateError, NotFoundError
from fieldops.models.base import now_utc
from fieldops.models.enums import (
    ApprovalDecision,
    AuditAction,
    AuditEntityType,
    LeaveCategory,
    LeaveDurationType,
    LeaveStatus,
    Role,
)
from fieldops.models.leave import LeaveApproval, LeaveRequest
from fieldops.models.user import User
from fieldops.schemas.conflict import TimeWindow
from fieldops.schemas.leave import (
    ApprovalEntryResponse,
    LeaveListResponse,
    LeaveRequestResponse,
    LeaveSubmissionResponse,
    LeaveValidationResponse,
)
from fieldops.schemas.quota import LeaveBalanceResponse
from fieldops.services.audit import model_to_audit_dict, write_audit_log
from fieldops.services.conflict import find_tasks_during_leave
from fieldops.services.duration import (
    calculate_leave_minutes,
    format_minutes_full,
    is_weekend,
    minutes_to_days,
    validate_leave_time,
)
from fieldops.services.hierarchy import can_approve_leave_for, get_next_approvers
from fieldops.services.notification import LeaveRequestedEvent, dispatch_leave_requested
from fieldops.services.quota import (
    get_category_policy,
    get_leave_quota_summary,
    get_user_leave_balance,
    validate_leave_request,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from fieldops.schemas.auth import AuthContext
    from fieldops.schemas.leave import SubmitLeavePayload

logger = logging.getLogger(__name__)

_BLOCKING_STATUSES = (LeaveStatus.PENDING.value, LeaveStatus.APPROVED.value)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def build_leave_response(leave: LeaveRequest, chain: list[LeaveApproval] | None = None) -> LeaveRequestResponse:
    """Map a leave model and its approval chain to the response schema."""
    return LeaveRequestResponse(
        id=leave.id,
        requester_id=leave.requester_id,
        category=LeaveCategory(leave.category),
        start_at=leave.start_at,
        end_at=leave.end_at,
        is_full_day=leave.is_full_day,
        start_time=leave.start_time,
        end_time=leave.end_time,
        total_minutes=leave.total_minutes,
        reason=leave.reason,
        status=LeaveStatus(leave.status),
        current_approver_id=leave.current_approver_id,
        decided_at=leave.decided_at,
        decided_by=leave.decided_by,
        rejection_reason=leave.rejection_reason,
        approval_chain=[
            ApprovalEntryResponse(
                level=entry.level,
                approver_id=entry.approver_id,
                approver_role=Role(entry.approver_role),
                decision=ApprovalDecision(entry.decision),
                comment=entry.comment,
                decided_at=entry.decided_at,
            )
            for entry in chain or []
        ],
        created_at=leave.created_at,
    )


async def load_approval_chain(session: AsyncSession, leave_id: uuid.UUID) -> list[LeaveApproval]:
    """Return the chain entries of a request in ascending level order."""
    result = await session.execute(
        select(LeaveApproval)
        .where(col(LeaveApproval.leave_request_id) == leave_id)
        .order_by(col(LeaveApproval.level))
    )
    return list(result.scalars().all())


async def get_leave_or_404(session: AsyncSession, leave_id: uuid.UUID, for_update: bool = False) -> LeaveRequest:
    """Fetch a leave request, optionally locking its row. Raises 404 if not found."""
    query = select(LeaveRequest).where(col(LeaveRequest.id) == leave_id)
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    leave = result.scalar_one_or_none()
    if leave is None:
        raise NotFoundError("Leave request not found")
    return leave


async def get_user_or_404(session: AsyncSession, user_id: uuid.UUID) -> User:
    user = await session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def resolve_leave_window(payload: SubmitLeavePayload, tz: ZoneInfo | None = None) -> TimeWindow:
    """Turn a payload into concrete instants.

    Full-day leave covers the first through the last instant of its dates;
    partial-day leave is bounded by its clock times on the start date.
    """
    zone = tz or ZoneInfo(get_settings().timezone)
    if payload.is_full_day:
        return TimeWindow(
            start=datetime.combine(payload.start_date, time.min, tzinfo=zone),
            end=datetime.combine(payload.end_date, time.max, tzinfo=zone),
        )
    if payload.start_time is None or payload.end_time is None:
        raise InvalidRequestError("start_time and end_time are required for partial-day leave")
    return TimeWindow(
        start=datetime.combine(payload.start_date, payload.start_time, tzinfo=zone),
        end=datetime.combine(payload.start_date, payload.end_time, tzinfo=zone),
    )


def compute_request_minutes(payload: SubmitLeavePayload) -> tuple[LeaveDurationType, int]:
    """Validate clock times and return the duration type and working minutes.

    Raises ``InvalidRequestError`` when the request covers no working time.
    """
    if payload.is_full_day:
        duration_type = LeaveDurationType.FULL_DAY
    else:
        duration_type = LeaveDurationType.TIME_BASED
        if payload.start_time is None or payload.end_time is None:
            raise InvalidRequestError("start_time and end_time are required for partial-day leave")
        if payload.start_date != payload.end_date:
            raise InvalidRequestError("Partial-day leave must start and end on the same day")
        time_check = validate_leave_time(payload.start_time, payload.end_time)
        if not time_check.valid:
            raise InvalidRequestError(time_check.error or "Invalid leave time")
        if is_weekend(payload.start_date):
            raise InvalidRequestError("Leave covers no working time after excluding weekends")

    total_minutes = calculate_leave_minutes(
        payload.start_date, payload.end_date, payload.is_full_day, payload.start_time, payload.end_time
    )
    if total_minutes <= 0:
        raise InvalidRequestError("Leave covers no working time after excluding weekends")
    return duration_type, total_minutes


async def _check_leave_overlap(session: AsyncSession, requester_id: uuid.UUID, window: TimeWindow) -> None:
    """Raise 409 if the requester already has pending or approved leave in the window."""
    result = await session.execute(
        select(LeaveRequest.id).where(
            col(LeaveRequest.requester_id) == requester_id,
            col(LeaveRequest.status).in_(_BLOCKING_STATUSES),
            col(LeaveRequest.start_at) <= window.end,
            col(LeaveRequest.end_at) >= window.start,
        )
    )
    if result.first() is not None:
        raise LeaveStateError("Leave overlaps an existing pending or approved request")


async def _find_approver_ids(session: AsyncSession, requester: User) -> list[uuid.UUID]:
    """Direct supervisor first, then active holders of the chain roles."""
    approver_ids: list[uuid.UUID] = []
    if requester.supervisor_id is not None:
        approver_ids.append(requester.supervisor_id)

    chain_roles = [role.value for role in get_next_approvers(requester.role)]
    if chain_roles:
        result = await session.execute(
            select(col(User.id)).where(
                col(User.role).in_(chain_roles),
                col(User.is_active).is_(True),
                col(User.id) != requester.id,
            )
        )
        approver_ids.extend(uid for uid in result.scalars().all() if uid not in approver_ids)
    return approver_ids


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def submit_leave_request(
    session: AsyncSession,
    auth: AuthContext,
    payload: SubmitLeavePayload,
    today: date | None = None,
) -> LeaveSubmissionResponse:
    """Create a PENDING leave request for the caller.

    Flow:
    1. Validate partial-day clock times
    2. Compute working minutes (stored, never recomputed at approval)
    3. Reject overlap with the caller's own pending/approved leave
    4. Apply category rules (errors block, warnings are returned)
    5. Create the request and audit it
    6. Commit, then notify approvers
    """
    requester = await get_user_or_404(session, auth.user_id)

    # 1-2. Clock times and duration.
    duration_type, total_minutes = compute_request_minutes(payload)

    # 3. Overlap with own leave.
    window = resolve_leave_window(payload)
    await _check_leave_overlap(session, requester.id, window)

    # 4. Category rules.
    balance = await get_user_leave_balance(session, requester.id, payload.start_date.year, as_of=today)
    validation = validate_leave_request(
        payload.category,
        payload.start_date,
        payload.end_date,
        total_minutes,
        duration_type,
        balance,
        today=today,
    )
    if not validation.is_valid:
        raise InvalidRequestError("; ".join(validation.errors))

    conflicting_tasks = await find_tasks_during_leave(session, requester.id, window)

    # 5. Create.
    leave = LeaveRequest(
        requester_id=requester.id,
        category=payload.category.value,
        start_at=window.start,
        end_at=window.end,
        is_full_day=payload.is_full_day,
        start_time=None if payload.is_full_day else payload.start_time,
        end_time=None if payload.is_full_day else payload.end_time,
        total_minutes=total_minutes,
        reason=payload.reason,
        status=LeaveStatus.PENDING.value,
        current_approver_id=requester.supervisor_id,
    )
    session.add(leave)
    await session.flush()

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.LEAVE_REQUEST,
        entity_id=leave.id,
        action=AuditAction.SUBMIT,
        after_json=model_to_audit_dict(leave),
    )

    # 6. Commit, then notify.
    approver_ids = await _find_approver_ids(session, requester)
    await session.commit()

    await dispatch_leave_requested(
        LeaveRequestedEvent(
            leave_request_id=leave.id,
            requester_id=requester.id,
            requester_name=requester.name,
            category_label=get_category_policy(payload.category).label,
            start_at=leave.start_at,
            end_at=leave.end_at,
            approver_ids=approver_ids,
        )
    )

    warnings = list(validation.warnings)
    if conflicting_tasks:
        warnings.append(f"{len(conflicting_tasks)} waiting task(s) are scheduled during this leave")

    return LeaveSubmissionResponse(
        leave=build_leave_response(leave),
        warnings=warnings,
        conflicting_tasks=conflicting_tasks,
    )


async def cancel_leave_request(
    session: AsyncSession,
    auth: AuthContext,
    leave_id: uuid.UUID,
) -> LeaveRequestResponse:
    """Cancel a pending request. The requester or an admin may cancel.

    The row is kept with status CANCELLED rather than deleted, so the audit
    trail and the list filters still see it. Usage counters are untouched:
    only approved leave is ever counted.
    """
    leave = await get_leave_or_404(session, leave_id, for_update=True)

    if auth.user_id != leave.requester_id and auth.role != Role.ADMIN:
        raise AuthorizationError("Not authorized to cancel this leave request")

    if leave.status != LeaveStatus.PENDING.value:
        raise LeaveStateError("Only pending leave requests can be cancelled", current_status=leave.status)

    before_dict = model_to_audit_dict(leave)

    leave.status = LeaveStatus.CANCELLED.value
    leave.decided_at = now_utc()
    leave.decided_by = auth.user_id
    leave.current_approver_id = None

    await session.flush()

    await write_audit_log(
        session,
        actor_id=auth.user_id,
        entity_type=AuditEntityType.LEAVE_REQUEST,
        entity_id=leave.id,
        action=AuditAction.CANCEL,
        before_json=before_dict,
        after_json=model_to_audit_dict(leave),
    )

    await session.commit()
    return build_leave_response(leave, await load_approval_chain(session, leave.id))


async def get_leave_request(session: AsyncSession, leave_id: uuid.UUID) -> LeaveRequestResponse:
    """Get a single leave request with its approval chain."""
    leave = await get_leave_or_404(session, leave_id)
    return build_leave_response(leave, await load_approval_chain(session, leave.id))


async def list_leave_requests(
    session: AsyncSession,
    auth: AuthContext,
    status_filter: LeaveStatus | None = None,
    requester_id: uuid.UUID | None = None,
    offset: int = 0,
    limit: int = 20,
) -> LeaveListResponse:
    """List leave requests visible to the caller, newest first.

    Technicians see their own requests; leaders see their sub-unit; other
    roles see everything.
    """
    filters = []
    if status_filter is not None:
        filters.append(col(LeaveRequest.status) == status_filter.value)
    if requester_id is not None:
        filters.append(col(LeaveRequest.requester_id) == requester_id)

    if auth.role == Role.TECH:
        filters.append(col(LeaveRequest.requester_id) == auth.user_id)
    elif auth.role == Role.LEADER:
        actor = await get_user_or_404(session, auth.user_id)
        if actor.sub_unit_id is None:
            filters.append(col(LeaveRequest.requester_id) == auth.user_id)
        else:
            members = select(col(User.id)).where(col(User.sub_unit_id) == actor.sub_unit_id)
            filters.append(col(LeaveRequest.requester_id).in_(members))

    count_result = await session.execute(select(func.count()).select_from(LeaveRequest).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(LeaveRequest)
        .where(*filters)
        .order_by(col(LeaveRequest.created_at).desc())
        .offset(offset)
        .limit(limit)
    )
    items = [build_leave_response(leave) for leave in result.scalars().all()]
    return LeaveListResponse(items=items, total=total)


async def preview_leave_request(
    session: AsyncSession,
    auth: AuthContext,
    payload: SubmitLeavePayload,
    today: date | None = None,
) -> LeaveValidationResponse:
    """Run the submission checks for the caller without storing anything."""
    requester = await get_user_or_404(session, auth.user_id)

    try:
        duration_type, total_minutes = compute_request_minutes(payload)
    except InvalidRequestError as exc:
        return LeaveValidationResponse(
            valid=False, total_minutes=0, total_days=0, display=format_minutes_full(0), errors=[exc.message]
        )

    window = resolve_leave_window(payload)
    errors: list[str] = []
    try:
        await _check_leave_overlap(session, requester.id, window)
    except LeaveStateError as exc:
        errors.append(exc.message)

    balance = await get_user_leave_balance(session, requester.id, payload.start_date.year, as_of=today)
    validation = validate_leave_request(
        payload.category,
        payload.start_date,
        payload.end_date,
        total_minutes,
        duration_type,
        balance,
        today=today,
    )
    errors.extend(validation.errors)

    return LeaveValidationResponse(
        valid=not errors,
        total_minutes=total_minutes,
        total_days=minutes_to_days(total_minutes),
        display=format_minutes_full(total_minutes),
        errors=errors,
        warnings=validation.warnings,
        conflicting_tasks=await find_tasks_during_leave(session, requester.id, window),
    )


async def get_leave_balance(
    session: AsyncSession,
    auth: AuthContext,
    user_id: uuid.UUID,
    year: int | None = None,
    today: date | None = None,
) -> LeaveBalanceResponse:
    """Quota, usage and display summary of a user's leave for one year.

    Visible to the user, to anyone entitled to decide their leave, and to
    administrators.
    """
    user = await get_user_or_404(session, user_id)
    if auth.user_id != user.id and not can_approve_leave_for(auth.role, auth.user_id, user.role, user.supervisor_id):
        raise AuthorizationError("Not authorized to view this user's leave balance")

    as_of = today or date.today()
    balance = await get_user_leave_balance(session, user.id, year or as_of.year, as_of=as_of)
    return LeaveBalanceResponse(balance=balance, summary=get_leave_quota_summary(balance, as_of=as_of))
