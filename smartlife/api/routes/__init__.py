from fastapi import APIRouter

from smartlife.api.schemas import ErrorResponse
from . import agent, ai, analytics, auth, claims, dashboard, health, notifications, policies, reports, users

# Every error leaves the exception handlers as {"success": false, "error": ...}
router = APIRouter(
    responses={status: {"model": ErrorResponse} for status in (400, 401, 403, 404, 500)},
)
for module in (health, auth, users, policies, claims, dashboard, ai, analytics, agent, reports, notifications):
    router.include_router(module.router)

__all__ = ["router"]
