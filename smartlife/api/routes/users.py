"""
Profile routes.
"""

from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from pymongo.database import Database

from smartlife.core.mongodb_client import Collections
from smartlife.utils import serialize_document
from smartlife.api.deps import get_current_user, get_db, parse_id, require_admin
from smartlife.api.schemas import ProfileUpdate


router = APIRouter(prefix="/api/users", tags=["Users"])


def profile_update_fields(update: ProfileUpdate) -> Dict[str, Any]:
    """
    Flatten a profile update into $set paths.
    Preferences are merged key by key so unspecified settings keep their value.
    """
    fields: Dict[str, Any] = {}
    for key in ("name", "phone", "region"):
        value = getattr(update, key)
        if value is not None:
            fields[key] = value

    if update.preferences is not None:
        preferences = update.preferences.model_dump(exclude_none=True)
        for channel, enabled in (preferences.pop("notifications", None) or {}).items():
            fields[f"preferences.notifications.{channel}"] = enabled
        for key, value in preferences.items():
            fields[f"preferences.{key}"] = value
    return fields


@router.get("/profile")
def get_profile(user: Dict[str, Any] = Depends(get_current_user), db: Database = Depends(get_db)):
    profile = db[Collections.USERS].find_one({"_id": user["_id"]})
    if profile is None:
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True, "data": serialize_document(profile)}


@router.put("/profile")
def update_profile(
    update: ProfileUpdate,
    user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    users = db[Collections.USERS]
    fields = profile_update_fields(update)
    if fields:
        fields["updated_at"] = datetime.utcnow()
        users.update_one({"_id": user["_id"]}, {"$set": fields})
    return {"success": True, "data": serialize_document(users.find_one({"_id": user["_id"]}))}


@router.delete("/{user_id}")
def delete_user(user_id: str, admin: Dict[str, Any] = Depends(require_admin), db: Database = Depends(get_db)):
    result = db[Collections.USERS].delete_one({"_id": parse_id(user_id, "user")})
    if result.deleted_count == 0:
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True, "message": "User removed"}
