# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from fieldops.exceptions import AuthorizationError, LeaveStateError
from fieldops.models.base import now_utc
from fieldops.models.enums import ApprovalDecision, AuditAction, AuditEntityType, LeaveCategory, LeaveStatus
from fieldops.models.leave import LeaveApproval
from fieldops.models.user import LeaveUsage, User
from fieldops.schemas.leave import LeaveDecisionResponse
from fieldops.services.audit import model_to_audit_dict, write_audit_log
from fieldops.services.duration import minutes_to_days
from fieldops.services.hierarchy import can_approve_leave_for
from fieldops.services.leave import build_leave_response, get_leave_or_404, get_user_or_404, load_approval_chain
from fieldops.services.notification import LeaveDecisionEvent, dispatch_leave_decided
from fieldops.services.quota import get_category_policy, get_user_leave_balance, local_year

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from fieldops.schemas.auth import AuthContext

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


async def _get_or_create_usage_for_update(
    session: AsyncSession,
    user_id: uuid.UUID,
    category: LeaveCategory,
) -> LeaveUsage:
    """Get the usage counter with a FOR UPDATE lock, creating it if absent."""
    result = await session.execute(
        select(LeaveUsage)
        .where(
            col(LeaveUsage.user_id) == user_id,
            col(LeaveUsage.category) == category.value,
        )
        .with_for_update()
    )
    usage = result.scalar_one_or_none()

    if usage is None:
        usage = LeaveUsage(user_id=user_id, category=category.value, used_minutes=0, version=1)
        session.add(usage)
        await session.flush()

    return usage


async def _next_chain_level(session: AsyncSession, leave_id: uuid.UUID) -> int:
    """One above the highest level recorded so far; prior levels are never overwritten."""
    result = await session.execute(
        select(func.max(LeaveApproval.level)).where(col(LeaveApproval.leave_request_id) == leave_id)
    )
    current = result.scalar_one_or_none()
    return (current or 0) + 1


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------


async def decide_leave_request(
    session: AsyncSession,
    auth: AuthContext,
    leave_id: uuid.UUID,
    approved: bool,
    comment: str | None = None,
) -> LeaveDecisionResponse:
    """Approve or reject a pending leave request.

    1. Lock the request and load the requester.
    2. Check the actor may decide for the requester (403, no mutation).
    3. Check the request is still PENDING (409, no mutation).
    4. Append a chain entry, update the request and, on approval only,
       add the stored minute total to the requester's usage counter.
    5. Audit and commit as one unit; roll back on any failure.
    6. Notify the requester after commit, best-effort.
    """
    leave = await get_leave_or_404(session, leave_id, for_update=True)
    requester = await get_user_or_404(session, leave.requester_id)

    if auth.user_id == requester.id:
        raise AuthorizationError("You cannot decide your own leave request")

    if not can_approve_leave_for(auth.role, auth.user_id, requester.role, requester.supervisor_id):
        raise AuthorizationError("Not authorized to decide leave for this user")

    if leave.status != LeaveStatus.PENDING.value:
        raise LeaveStateError("Leave request is not pending", current_status=leave.status)

    decision = ApprovalDecision.APPROVED if approved else ApprovalDecision.REJECTED
    category = LeaveCategory(leave.category)
    actor = await session.get(User, auth.user_id)
    actor_name = actor.name if actor is not None else str(auth.user_id)

    usage: LeaveUsage | None = None
    try:
        before_dict = model_to_audit_dict(leave)
        now = now_utc()

        session.add(
            LeaveApproval(
                leave_request_id=leave.id,
                level=await _next_chain_level(session, leave.id),
                approver_id=auth.user_id,
                approver_role=auth.role.value,
                decision=decision.value,
                comment=comment,
                decided_at=now,
            )
        )

        leave.status = LeaveStatus.APPROVED.value if approved else LeaveStatus.REJECTED.value
        leave.decided_at = now
        leave.decided_by = auth.user_id
        leave.rejection_reason = None if approved else comment
        leave.current_approver_id = None

        if approved:
            usage = await _get_or_create_usage_for_update(session, requester.id, category)
            usage.used_minutes += leave.total_minutes
            usage.updated_at = now
            usage.version += 1

        await session.flush()

        await write_audit_log(
            session,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.LEAVE_REQUEST,
            entity_id=leave.id,
            action=AuditAction.APPROVE if approved else AuditAction.REJECT,
            before_json=before_dict,
            after_json=model_to_audit_dict(leave),
        )

        await session.commit()
    except Exception:
        await session.rollback()
        raise

    chain = await load_approval_chain(session, leave.id)

    # The usage counter is lifetime; the entitlement is annual, so the quota
    # check reads approved minutes for the year the leave starts in.
    used_minutes: int | None = None
    quota_minutes: int | None = None
    over_quota = False
    if usage is not None:
        balance = await get_user_leave_balance(session, requester.id, local_year(leave.start_at))
        quota = balance.quota_for(category)
        if quota is not None:
            used_minutes = quota.used_minutes
            quota_minutes = quota.total_minutes
            over_quota = used_minutes > quota_minutes
        if over_quota:
            logger.warning(
                "Leave %s approved over quota for user %s: %s of %s minutes used",
                leave.id,
                requester.id,
                used_minutes,
                quota_minutes,
            )

    policy = get_category_policy(category)
    await dispatch_leave_decided(
        LeaveDecisionEvent(
            leave_request_id=leave.id,
            requester_id=requester.id,
            actor_name=actor_name,
            decision=decision,
            reason=comment,
            category=category,
            category_label=policy.label,
            start_at=leave.start_at,
            end_at=leave.end_at,
            total_days=minutes_to_days(leave.total_minutes),
        )
    )

    return LeaveDecisionResponse(
        leave=build_leave_response(leave, chain),
        used_minutes=used_minutes,
        quota_minutes=quota_minutes,
        over_quota=over_quota,
    )


async def approve_leave_request(
    session: AsyncSession,
    auth: AuthContext,
    leave_id: uuid.UUID,
    comment: str | None = None,
) -> LeaveDecisionResponse:
    return await decide_leave_request(session, auth, leave_id, approved=True, comment=comment)


async def reject_leave_request(
    session: AsyncSession,
    auth: AuthContext,
    leave_id: uuid.UUID,
    comment: str | None = None,
) -> LeaveDecisionResponse:
    return await decide_leave_request(session, auth, leave_id, approved=False, comment=comment)
