import logging
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text

from fieldops.config import get_settings
from fieldops.db import SessionDep
from fieldops.services.notification import get_notification_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Liveness of the scheduler and its collaborators."""

    status: Literal["ok", "degraded"]
    name: str
    version: str
    environment: str
    database: bool
    notifications: str


@router.get("/health", response_model=HealthResponse)
async def health(session: SessionDep) -> HealthResponse:
    """Report whether the store answers and which notifier is wired in."""
    settings = get_settings()

    database = True
    try:
        await session.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Health check: database connectivity failed")
        database = False

    return HealthResponse(
        status="ok" if database else "degraded",
        name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        database=database,
        notifications=type(get_notification_service()).__name__,
    )
