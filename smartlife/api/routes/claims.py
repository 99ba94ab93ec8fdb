"""
Claim filing and review routes.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pymongo import DESCENDING
from pymongo.database import Database

from smartlife.core.mongodb_client import Collections
from smartlife.models import ClaimStatus
from smartlife.services.claims import (
    InvalidTransitionError,
    add_claim_note,
    file_claim,
    resolve_claim,
    update_claim_status,
)
from smartlife.utils import serialize_document
from smartlife.api.deps import get_current_user, get_db, is_staff, parse_id, require_staff
from smartlife.api.schemas import (
    ClaimCreate,
    ClaimNoteCreate,
    ClaimResolutionUpdate,
    ClaimStatusUpdate,
)


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/claims", tags=["Claims"])


def _load_claim(db: Database, claim_id: str) -> Dict[str, Any]:
    claim = db[Collections.CLAIMS].find_one({"_id": parse_id(claim_id, "claim")})
    if claim is None:
        raise HTTPException(status_code=404, detail="Claim not found")
    return claim


def _check_access(claim: Dict[str, Any], user: Dict[str, Any]) -> None:
    if claim["user"] != user["_id"] and not is_staff(user):
        raise HTTPException(status_code=403, detail="Not authorized to access this claim")


@router.post("", status_code=201)
def create_claim(
    request: ClaimCreate,
    user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    policy = db[Collections.POLICIES].find_one(
        {"_id": parse_id(request.policy_id, "policy"), "is_active": True}
    )
    if policy is None:
        raise HTTPException(status_code=404, detail="Policy not found")

    claim = file_claim(
        db,
        user,
        policy,
        incident_date=request.incident_date,
        description=request.description,
        amount=request.amount,
        documents=request.documents,
    )
    logger.info(f"Claim {claim['claim_number']} filed by {user['email']}")
    return {"success": True, "data": serialize_document(claim)}


@router.get("")
def list_claims(
    status: Optional[ClaimStatus] = None,
    user_id: Optional[str] = None,
    user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    """Own claims, or a customer's claims when an agent or admin passes user_id."""
    owner = user["_id"]
    if user_id:
        owner = parse_id(user_id, "user")
        if owner != user["_id"] and not is_staff(user):
            raise HTTPException(status_code=403, detail="Not authorized to view other users' claims")

    query: Dict[str, Any] = {"user": owner}
    if status:
        query["status"] = status
    claims = list(db[Collections.CLAIMS].find(query).sort("created_at", DESCENDING))
    return {"success": True, "count": len(claims), "data": serialize_document(claims)}


@router.get("/{claim_id}")
def get_claim(claim_id: str, user: Dict[str, Any] = Depends(get_current_user), db: Database = Depends(get_db)):
    claim = _load_claim(db, claim_id)
    _check_access(claim, user)
    return {"success": True, "data": serialize_document(claim)}


@router.put("/{claim_id}/status")
def change_claim_status(
    claim_id: str,
    request: ClaimStatusUpdate,
    staff: Dict[str, Any] = Depends(require_staff),
    db: Database = Depends(get_db),
):
    claim = _load_claim(db, claim_id)
    try:
        updated = update_claim_status(
            db,
            claim,
            request.status,
            actor_id=staff["_id"],
            approved_amount=request.approved_amount,
            note=request.note,
        )
    except InvalidTransitionError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(f"Claim {claim['claim_number']} moved to {request.status} by {staff['email']}")
    return {"success": True, "data": serialize_document(updated)}


@router.post("/{claim_id}/notes", status_code=201)
def create_claim_note(
    claim_id: str,
    request: ClaimNoteCreate,
    user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    claim = _load_claim(db, claim_id)
    _check_access(claim, user)
    return {"success": True, "data": serialize_document(add_claim_note(db, claim, request.text, user["_id"]))}


@router.put("/{claim_id}/resolution")
def set_claim_resolution(
    claim_id: str,
    request: ClaimResolutionUpdate,
    staff: Dict[str, Any] = Depends(require_staff),
    db: Database = Depends(get_db),
):
    claim = _load_claim(db, claim_id)
    updated = resolve_claim(db, claim, request.status, request.details)
    return {"success": True, "data": serialize_document(updated)}
