"""
FastAPI dependencies: database handle, bearer authentication, role checks and service factories.
"""

from typing import Any, Dict, Optional

from bson import ObjectId
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pymongo.database import Database

from smartlife.config import get_settings
from smartlife.core.mongodb_client import get_database, Collections
from smartlife.core.security import decode_access_token, TokenError
from smartlife.services.assistant import AssistantService, build_assistant_client
from smartlife.services.notifications import NotificationDispatcher
from smartlife.services.recommendations import RecommendationEngine
from smartlife.services.reports import ReportRenderer
from smartlife.utils import to_object_id


security = HTTPBearer(auto_error=False)


def get_db() -> Database:
    return get_database()


def parse_id(value: str, label: str) -> ObjectId:
    """Parse a path/body id or answer 400."""
    object_id = to_object_id(value)
    if object_id is None:
        raise HTTPException(status_code=400, detail=f"Invalid {label} id")
    return object_id


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Database = Depends(get_db),
) -> Dict[str, Any]:
    """Resolve the bearer token to a user document."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Not authorized, no token")

    try:
        payload = decode_access_token(credentials.credentials)
    except TokenError:
        raise HTTPException(status_code=401, detail="Not authorized, token failed")

    user_id = to_object_id(payload.get("sub"))
    user = db[Collections.USERS].find_one({"_id": user_id}) if user_id else None
    if user is None:
        raise HTTPException(status_code=401, detail="Not authorized, token failed")
    return user


def require_roles(*roles: str):
    """Dependency factory: the caller must hold one of the given roles."""
    def checker(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
        if user.get("role") not in roles:
            raise HTTPException(
                status_code=403,
                detail=f"User role {user.get('role')} is not authorized to access this route",
            )
        return user
    return checker


require_admin = require_roles("admin")
require_staff = require_roles("agent", "admin")


def is_staff(user: Dict[str, Any]) -> bool:
    return user.get("role") in ("agent", "admin")


def get_assistant_service() -> AssistantService:
    return AssistantService(build_assistant_client())


def get_recommendation_engine() -> RecommendationEngine:
    return RecommendationEngine(limit=get_settings().recommendation_limit)


def get_notifier() -> NotificationDispatcher:
    return NotificationDispatcher()


def get_report_renderer() -> ReportRenderer:
    return ReportRenderer(get_settings().reports_dir)
