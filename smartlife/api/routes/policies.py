"""
Policy catalogue routes.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pymongo import DESCENDING
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from smartlife.core.mongodb_client import Collections
from smartlife.models import Policy, PolicyCategory
from smartlife.utils import serialize_document
from smartlife.api.deps import get_current_user, get_db, parse_id, require_admin
from smartlife.api.schemas import CompareRequest, PolicyCreate, PolicyUpdate


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/policies", tags=["Policies"])

COMPARISON_POINTS = ["premium", "coverage", "benefits", "exclusions"]
DUPLICATE_NAME = "A policy with this name already exists"


@router.get("")
def list_policies(
    category: Optional[PolicyCategory] = None,
    active: Optional[bool] = None,
    user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """List policies, newest first, optionally filtered by category and active flag."""
    query: Dict[str, Any] = {}
    if category:
        query["category"] = category
    if active is not None:
        query["is_active"] = active

    policies = list(db[Collections.POLICIES].find(query).sort("created_at", DESCENDING))
    return {"success": True, "count": len(policies), "data": serialize_document(policies)}


@router.post("/compare")
def compare_policies(
    request: CompareRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    if len(request.policy_ids) < 2:
        raise HTTPException(status_code=400, detail="Please provide at least two policy ids for comparison")

    ids = [parse_id(policy_id, "policy") for policy_id in request.policy_ids]
    found = {p["_id"]: p for p in db[Collections.POLICIES].find({"_id": {"$in": ids}, "is_active": True})}
    if len(found) != len(set(ids)):
        raise HTTPException(status_code=404, detail="One or more policies not found or are inactive")

    policies = [found[policy_id] for policy_id in dict.fromkeys(ids)]
    return {
        "success": True,
        "data": {
            "policies": [
                {
                    "id": str(p["_id"]),
                    "name": p["name"],
                    "category": p["category"],
                    "premium": p["premium"]["base"],
                    "coverage": p.get("coverage", {}),
                    "benefits": p.get("benefits", []),
                    "exclusions": p.get("exclusions", []),
                }
                for p in policies
            ],
            "comparison_points": COMPARISON_POINTS,
        },
    }


@router.get("/{policy_id}")
def get_policy(policy_id: str, user: Dict[str, Any] = Depends(get_current_user), db: Database = Depends(get_db)):
    policy = db[Collections.POLICIES].find_one({"_id": parse_id(policy_id, "policy")})
    if policy is None:
        raise HTTPException(status_code=404, detail="Policy not found")
    return {"success": True, "data": serialize_document(policy)}


@router.post("", status_code=201)
def create_policy(
    request: PolicyCreate,
    admin: Dict[str, Any] = Depends(require_admin),
    db: Database = Depends(get_db),
):
    policies = db[Collections.POLICIES]
    if policies.find_one({"name": request.name}):
        raise HTTPException(status_code=400, detail=DUPLICATE_NAME)

    document = Policy(**request.model_dump(), created_by=admin["_id"]).to_document()
    try:
        document["_id"] = policies.insert_one(document).inserted_id
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail=DUPLICATE_NAME)

    logger.info(f"Policy '{request.name}' created by {admin['email']}")
    return {"success": True, "data": serialize_document(document)}


@router.put("/{policy_id}")
def update_policy(
    policy_id: str,
    request: PolicyUpdate,
    admin: Dict[str, Any] = Depends(require_admin),
    db: Database = Depends(get_db),
):
    policies = db[Collections.POLICIES]
    object_id = parse_id(policy_id, "policy")
    if policies.find_one({"_id": object_id}) is None:
        raise HTTPException(status_code=404, detail="Policy not found")

    fields = request.model_dump(exclude_unset=True, exclude_none=True)
    if "name" in fields and policies.find_one({"name": fields["name"], "_id": {"$ne": object_id}}):
        raise HTTPException(status_code=400, detail=DUPLICATE_NAME)

    fields["updated_at"] = datetime.utcnow()
    policies.update_one({"_id": object_id}, {"$set": fields})
    return {"success": True, "data": serialize_document(policies.find_one({"_id": object_id}))}


@router.delete("/{policy_id}")
def delete_policy(policy_id: str, admin: Dict[str, Any] = Depends(require_admin), db: Database = Depends(get_db)):
    result = db[Collections.POLICIES].delete_one({"_id": parse_id(policy_id, "policy")})
    if result.deleted_count == 0:
        raise HTTPException(status_code=404, detail="Policy not found")
    return {"success": True, "message": "Policy removed"}
