"""
Purchase prediction, behaviour trends and user segmentation routes.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from pymongo.database import Database

from smartlife.core.mongodb_client import Collections
from smartlife.services.analytics import InvalidCriteriaError, get_behavior_trends, segment_users
from smartlife.services.recommendations import predict_purchase
from smartlife.utils import serialize_document
from smartlife.api.deps import get_current_user, get_db, parse_id, require_staff
from smartlife.api.schemas import PredictRequest, SegmentRequest


router = APIRouter(prefix="/api/analytics", tags=["Analytics"])


@router.post("/predict")
def predict(
    request: PredictRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    policy = db[Collections.POLICIES].find_one({"_id": parse_id(request.policy_id, "policy")})
    if policy is None:
        raise HTTPException(status_code=404, detail="Policy not found")

    behavior = request.user_behavior.model_dump() if request.user_behavior else {}
    prediction = predict_purchase(user, policy, behavior)
    return {
        "success": True,
        "data": {
            "policy": {"id": str(policy["_id"]), "name": policy["name"], "category": policy["category"]},
            "prediction": prediction,
        },
    }


@router.get("/trends")
def trends(staff: Dict[str, Any] = Depends(require_staff), db: Database = Depends(get_db)):
    return {"success": True, "data": get_behavior_trends(db)}


@router.post("/segment")
def segment(
    request: SegmentRequest,
    staff: Dict[str, Any] = Depends(require_staff),
    db: Database = Depends(get_db),
):
    users = list(db[Collections.USERS].find(
        {"role": "user"},
        {"region": 1, "preferences": 1},
    ))
    try:
        result = segment_users(users, request.criteria)
    except InvalidCriteriaError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "data": serialize_document(result)}
