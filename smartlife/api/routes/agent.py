"""
Agent tools: customer list, customer insights and upsell simulation.
"""

from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from pymongo import DESCENDING
from pymongo.database import Database

from smartlife.config import get_settings
from smartlife.core.mongodb_client import Collections
from smartlife.services.analytics import conversion_insights, simulate_scenario
from smartlife.services.recommendations import find_active_recommendations
from smartlife.utils import serialize_document
from smartlife.api.deps import get_db, parse_id, require_staff
from smartlife.api.schemas import SimulateRequest


router = APIRouter(prefix="/api/agent", tags=["Agent"])

CUSTOMER_FIELDS = {
    "name": 1,
    "email": 1,
    "phone": 1,
    "policy_number": 1,
    "region": 1,
    "created_at": 1,
}


def _load_customer(db: Database, user_id: str) -> Dict[str, Any]:
    customer = db[Collections.USERS].find_one({"_id": parse_id(user_id, "user")})
    if customer is None:
        raise HTTPException(status_code=404, detail="User not found")
    return customer


@router.get("/customers")
def customers(staff: Dict[str, Any] = Depends(require_staff), db: Database = Depends(get_db)):
    records = list(
        db[Collections.USERS].find({"role": "user"}, CUSTOMER_FIELDS).sort("created_at", DESCENDING)
    )
    return {"success": True, "count": len(records), "data": serialize_document(records)}


@router.get("/insights/{user_id}")
def insights(user_id: str, staff: Dict[str, Any] = Depends(require_staff), db: Database = Depends(get_db)):
    """Profile, current recommendations and conversion outlook for one customer."""
    customer = _load_customer(db, user_id)
    recommendations = find_active_recommendations(
        db, customer["_id"], datetime.utcnow(), limit=get_settings().recommendation_limit
    )
    profile = {key: customer.get(key) for key in ("_id", *CUSTOMER_FIELDS, "preferences")}
    return {
        "success": True,
        "data": {
            "user": serialize_document(profile),
            "recommendations": serialize_document(recommendations),
            "conversion_insights": conversion_insights(),
        },
    }


@router.post("/simulate")
def simulate(
    request: SimulateRequest,
    staff: Dict[str, Any] = Depends(require_staff),
    db: Database = Depends(get_db),
):
    customer = _load_customer(db, request.user_id)
    return {"success": True, "data": simulate_scenario(customer, request.scenario.model_dump())}
