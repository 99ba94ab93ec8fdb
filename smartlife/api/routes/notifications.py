"""
Notification delivery and inbox routes.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pymongo.database import Database

from smartlife.core.mongodb_client import Collections
from smartlife.services.notifications import NotificationDispatcher, find_notifications, mark_read
from smartlife.utils import serialize_document
from smartlife.api.deps import get_current_user, get_db, get_notifier, parse_id, require_staff
from smartlife.api.schemas import (
    EmailNotificationRequest,
    RelatedToRequest,
    WhatsAppNotificationRequest,
)


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/notify", tags=["Notifications"])

INBOX_LIMIT = 50


def _load_recipient(db: Database, user_id: str) -> Dict[str, Any]:
    recipient = db[Collections.USERS].find_one({"_id": parse_id(user_id, "user")})
    if recipient is None:
        raise HTTPException(status_code=404, detail="User not found")
    return recipient


def _related_to(related: Optional[RelatedToRequest]) -> Dict[str, Any]:
    if related is None:
        return {}
    return {
        "model": related.model,
        "id": parse_id(related.id, "related") if related.id else None,
    }


@router.post("/email", status_code=201)
def send_email(
    request: EmailNotificationRequest,
    staff: Dict[str, Any] = Depends(require_staff),
    db: Database = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    recipient = _load_recipient(db, request.user_id)
    notification, result = notifier.send_email(
        db,
        recipient,
        request.subject,
        request.message,
        request.type,
        priority=request.priority,
        related_to=_related_to(request.related_to),
    )
    logger.info(f"Email notification for {recipient['email']} recorded (sent={result.success})")
    return {
        "success": True,
        "data": {"notification": serialize_document(notification), "email_sent": result.success},
    }


@router.post("/whatsapp", status_code=201)
def send_whatsapp(
    request: WhatsAppNotificationRequest,
    staff: Dict[str, Any] = Depends(require_staff),
    db: Database = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    recipient = _load_recipient(db, request.user_id)
    notification, result = notifier.send_whatsapp(
        db,
        recipient,
        request.message,
        request.type,
        priority=request.priority,
        related_to=_related_to(request.related_to),
    )
    logger.info(f"WhatsApp notification for {recipient['email']} recorded (sent={result.success})")
    return {
        "success": True,
        "data": {"notification": serialize_document(notification), "whatsapp_sent": result.success},
    }


@router.get("")
def inbox(
    unread_only: bool = False,
    user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    records = find_notifications(db, user["_id"], datetime.utcnow(), unread_only=unread_only, limit=INBOX_LIMIT)
    return {"success": True, "count": len(records), "data": serialize_document(records)}


@router.put("/{notification_id}/read")
def read(notification_id: str, user: Dict[str, Any] = Depends(get_current_user), db: Database = Depends(get_db)):
    notification = mark_read(db, parse_id(notification_id, "notification"), user["_id"])
    if notification is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"success": True, "data": serialize_document(notification)}
