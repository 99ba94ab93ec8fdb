"""
Customer dashboard routes.
"""

from collections import Counter
from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends
from pymongo import DESCENDING
from pymongo.database import Database

from smartlife.config import get_settings
from smartlife.core.mongodb_client import Collections
from smartlife.services.claims import OPEN_STATUSES
from smartlife.services.notifications import find_notifications
from smartlife.services.recommendations import find_active_recommendations
from smartlife.utils import serialize_document
from smartlife.api.deps import get_current_user, get_db


router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])

SUMMARY_POLICY_LIMIT = 5
RECENT_CLAIM_LIMIT = 3
ALERT_LIMIT = 5


@router.get("")
def overview(user: Dict[str, Any] = Depends(get_current_user), db: Database = Depends(get_db)):
    """Policy summary, claim metrics, recent claims and unread alerts."""
    user_id = user["_id"]
    now = datetime.utcnow()

    policies = list(
        db[Collections.POLICIES]
        .find({"$or": [{"is_active": True}, {"created_by": user_id}]}, {"category": 1})
        .limit(SUMMARY_POLICY_LIMIT)
    )

    claims = db[Collections.CLAIMS]
    total = claims.count_documents({"user": user_id})
    pending = claims.count_documents({"user": user_id, "status": {"$in": OPEN_STATUSES}})
    approved = claims.count_documents({"user": user_id, "status": {"$in": ["approved", "paid"]}})
    # Halves round up
    approval_rate = int(approved * 100 / total + 0.5) if total else 0

    recent = list(claims.find({"user": user_id}).sort("created_at", DESCENDING).limit(RECENT_CLAIM_LIMIT))
    alerts = find_notifications(db, user_id, now, unread_only=True, limit=ALERT_LIMIT)

    return {
        "success": True,
        "data": {
            "policy_summary": {
                "total": len(policies),
                "categories": dict(Counter(p["category"] for p in policies)),
            },
            "claim_metrics": {
                "total": total,
                "pending": pending,
                "approved": approved,
                "approval_rate": f"{approval_rate}%",
            },
            "recent_claims": serialize_document(recent),
            "alerts": serialize_document(alerts),
        },
    }


@router.get("/recommendations")
def recommendations(user: Dict[str, Any] = Depends(get_current_user), db: Database = Depends(get_db)):
    records = find_active_recommendations(
        db,
        user["_id"],
        datetime.utcnow(),
        limit=get_settings().recommendation_limit,
        exclude_purchased=True,
    )
    return {"success": True, "data": serialize_document(records)}


@router.get("/notifications")
def notifications(user: Dict[str, Any] = Depends(get_current_user), db: Database = Depends(get_db)):
    records = find_notifications(db, user["_id"], datetime.utcnow(), limit=10)
    return {"success": True, "data": serialize_document(records)}
