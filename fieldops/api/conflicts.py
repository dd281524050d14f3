from __future__ import annotations

from fastapi import APIRouter

from fieldops.api.deps import AuthDep
from fieldops.db import SessionDep
from fieldops.schemas.conflict import ConflictCheckPayload, ConflictReport
from fieldops.services.conflict import detect_conflicts

conflicts_router = APIRouter(prefix="/conflicts", tags=["conflicts"])


@conflicts_router.post("/check", response_model=ConflictReport)
async def check_conflicts(
    payload: ConflictCheckPayload,
    session: SessionDep,
    _auth: AuthDep,
) -> ConflictReport:
    """Report bookings that overlap a candidate window. Nothing is written."""
    return await detect_conflicts(
        session,
        payload.window(),
        payload.assignee_ids,
        vehicle_id=payload.vehicle_id,
        exclude_task_id=payload.exclude_task_id,
    )
