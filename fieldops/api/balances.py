# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query

from fieldops.api.deps import AuthDep
from fieldops.db import SessionDep
from fieldops.schemas.quota import LeaveBalanceResponse
from fieldops.services import leave as leave_service

balances_router = APIRouter(prefix="/users/{user_id}", tags=["balances"])


@balances_router.get("/leave-balance", response_model=LeaveBalanceResponse)
async def get_leave_balance(
    user_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    year: int | None = Query(default=None, ge=2000, le=2100),
) -> LeaveBalanceResponse:
    """Quota, usage and remaining leave per category for one year."""
    return await leave_service.get_leave_balance(session, auth, user_id, year)
