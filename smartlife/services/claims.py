"""
Claim filing and review workflow.
"""

import secrets
from datetime import datetime
from typing import Any, Dict, Optional

from bson import ObjectId
from pymongo.database import Database

from smartlife.core.mongodb_client import Collections
from smartlife.models import Claim, ClaimNote, ClaimResolution, Notification, RelatedTo


# Allowed status moves; paid and rejected are terminal
CLAIM_TRANSITIONS = {
    "pending": {"reviewing", "approved", "rejected"},
    "reviewing": {"approved", "rejected"},
    "approved": {"paid"},
    "rejected": set(),
    "paid": set(),
}

OPEN_STATUSES = ["pending", "reviewing"]


class InvalidTransitionError(Exception):
    """Raised when a claim status change is not allowed."""


def generate_claim_number(now: Optional[datetime] = None) -> str:
    now = now or datetime.utcnow()
    return f"CLM-{now:%Y%m%d}-{secrets.token_hex(3).upper()}"


def notify_claimant(db: Database, claim: Dict[str, Any], title: str, message: str, priority: str = "medium") -> None:
    now = datetime.utcnow()
    notification = Notification(
        user=claim["user"],
        title=title,
        message=message,
        type="claim",
        priority=priority,
        related_to=RelatedTo(model="Claim", id=claim["_id"]),
    )
    notification.channels.app.sent = True
    notification.channels.app.sent_at = now
    db[Collections.NOTIFICATIONS].insert_one(notification.to_document())


def file_claim(
    db: Database,
    user: Dict[str, Any],
    policy: Dict[str, Any],
    incident_date: datetime,
    description: str,
    amount: float,
    documents=None,
) -> Dict[str, Any]:
    """Create a pending claim and tell the claimant it was received."""
    claim = Claim(
        user=user["_id"],
        policy=policy["_id"],
        claim_number=generate_claim_number(),
        incident_date=incident_date,
        description=description,
        amount=amount,
        documents=documents or [],
    )
    document = claim.to_document()
    document["_id"] = db[Collections.CLAIMS].insert_one(document).inserted_id

    notify_claimant(
        db,
        document,
        title="Claim submitted",
        message=f"Your claim {document['claim_number']} against {policy['name']} has been received.",
    )
    return document


def update_claim_status(
    db: Database,
    claim: Dict[str, Any],
    status: str,
    actor_id: ObjectId,
    approved_amount: Optional[float] = None,
    note: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Move a claim through its review workflow.

    Args:
        db: Database handle
        claim: Current claim document
        status: Target status
        actor_id: Agent or admin performing the change
        approved_amount: Payout when approving, defaults to the claimed amount
        note: Optional note appended to the claim

    Returns:
        The updated claim document
    """
    current = claim.get("status", "pending")
    if status not in CLAIM_TRANSITIONS.get(current, set()):
        raise InvalidTransitionError(f"Cannot move claim from {current} to {status}")

    update: Dict[str, Any] = {"status": status, "updated_at": datetime.utcnow()}
    if status == "approved":
        amount = claim["amount"] if approved_amount is None else approved_amount
        if amount < 0 or amount > claim["amount"]:
            raise InvalidTransitionError("Approved amount must be between 0 and the claimed amount")
        update["approved_amount"] = amount
    elif status == "rejected":
        update["approved_amount"] = 0

    operation: Dict[str, Any] = {"$set": update}
    if note:
        operation["$push"] = {"notes": ClaimNote(text=note, created_by=actor_id).model_dump()}

    collection = db[Collections.CLAIMS]
    collection.update_one({"_id": claim["_id"]}, operation)
    updated = collection.find_one({"_id": claim["_id"]})

    notify_claimant(
        db,
        updated,
        title=f"Claim {status}",
        message=f"Your claim {updated['claim_number']} is now {status}.",
        priority="high" if status in ("approved", "rejected", "paid") else "medium",
    )
    return updated


def add_claim_note(db: Database, claim: Dict[str, Any], text: str, author_id: ObjectId) -> Dict[str, Any]:
    collection = db[Collections.CLAIMS]
    collection.update_one(
        {"_id": claim["_id"]},
        {
            "$push": {"notes": ClaimNote(text=text, created_by=author_id).model_dump()},
            "$set": {"updated_at": datetime.utcnow()},
        },
    )
    return collection.find_one({"_id": claim["_id"]})


def resolve_claim(db: Database, claim: Dict[str, Any], status: str, details: Optional[str] = None) -> Dict[str, Any]:
    collection = db[Collections.CLAIMS]
    resolution = ClaimResolution(status=status, details=details)
    collection.update_one(
        {"_id": claim["_id"]},
        {"$set": {"resolution": resolution.model_dump(), "updated_at": datetime.utcnow()}},
    )
    return collection.find_one({"_id": claim["_id"]})
