from fastapi import APIRouter

from fieldops.api.balances import balances_router
from fieldops.api.conflicts import conflicts_router
from fieldops.api.leaves import leaves_router
from fieldops.api.tasks import tasks_router

api_router = APIRouter()
api_router.include_router(conflicts_router)
api_router.include_router(tasks_router)
api_router.include_router(leaves_router)
api_router.include_router(balances_router)
