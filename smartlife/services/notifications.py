"""
Email and WhatsApp delivery plus notification records.
"""

import logging
import re
import smtplib
from datetime import datetime
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Any, Dict, List, Optional

import requests
from bson import ObjectId
from pydantic import BaseModel, Field
from pymongo import DESCENDING
from pymongo.database import Database

from smartlife.config import Settings, get_settings
from smartlife.core.mongodb_client import Collections
from smartlife.models import Notification, RelatedTo, PRIORITY_RANK, expires_in


logger = logging.getLogger(__name__)

TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"

EMAIL_TEMPLATE = """\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
  <div style="background-color: #0047AB; padding: 20px; text-align: center;">
    <h1 style="color: white; margin: 0;">{app_name}</h1>
  </div>
  <div style="padding: 20px; border: 1px solid #ddd; border-top: none;">
    <h2 style="color: #333;">{subject}</h2>
    <p style="color: #555; line-height: 1.6;">{message}</p>
    <p style="margin-top: 30px; color: #777;">If you have any questions, please contact our support team.</p>
  </div>
  <div style="background-color: #f5f5f5; padding: 15px; text-align: center; font-size: 12px; color: #777;">
    <p>This email was sent to {email}. You can update your notification preferences from your profile.</p>
  </div>
</div>
"""


class DeliveryResult(BaseModel):
    """Outcome of one delivery attempt."""
    success: bool
    message: Optional[str] = None
    reference: Optional[str] = Field(default=None, description="SMTP Message-ID or Twilio SID")


class EmailSender:
    """Sends HTML email over SMTP; in development the message is only logged."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def send(self, user: Dict[str, Any], subject: str, message: str, transactional: bool = False) -> DeliveryResult:
        """Transactional mail such as password resets ignores the opt-out."""
        notifications = (user.get("preferences") or {}).get("notifications") or {}
        if not transactional and notifications.get("email") is False:
            return DeliveryResult(success=False, message="User has opted out of email notifications")

        settings = self.settings
        mail = EmailMessage()
        mail["Subject"] = subject
        mail["From"] = f'"{settings.email_from_name}" <{settings.email_user}>'
        mail["To"] = user["email"]
        mail["Message-ID"] = make_msgid(domain="smartlife.ai")
        mail.set_content(message)
        mail.add_alternative(
            EMAIL_TEMPLATE.format(
                app_name=settings.app_name, subject=subject, message=message, email=user["email"]
            ),
            subtype="html",
        )

        if settings.is_development:
            logger.info(f"Email would be sent to {user['email']}: {subject}")
            return DeliveryResult(success=True, message="Email log (development mode)")

        try:
            smtp_class = smtplib.SMTP_SSL if settings.email_port == 465 else smtplib.SMTP
            with smtp_class(settings.email_host, settings.email_port, timeout=30) as smtp:
                if smtp_class is smtplib.SMTP:
                    smtp.starttls()
                if settings.email_user:
                    smtp.login(settings.email_user, settings.email_pass or "")
                smtp.send_message(mail)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Email delivery to {user['email']} failed: {e}")
            return DeliveryResult(success=False, message=str(e))

        return DeliveryResult(success=True, reference=mail["Message-ID"])


def format_whatsapp_number(phone: str) -> str:
    return "+" + re.sub(r"\D", "", phone or "")


class WhatsAppSender:
    """Sends WhatsApp messages through the Twilio REST API."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def send(self, user: Dict[str, Any], message: str) -> DeliveryResult:
        notifications = (user.get("preferences") or {}).get("notifications") or {}
        if notifications.get("whatsapp") is False:
            return DeliveryResult(success=False, message="User has opted out of WhatsApp notifications")

        settings = self.settings
        to = f"whatsapp:{format_whatsapp_number(user.get('phone', ''))}"
        sender = f"whatsapp:{settings.twilio_phone_number}"

        if settings.is_development:
            logger.info(f"WhatsApp message would be sent to {to}: {message}")
            return DeliveryResult(success=True, message="WhatsApp message log (development mode)")

        try:
            response = requests.post(
                TWILIO_MESSAGES_URL.format(sid=settings.twilio_account_sid),
                data={"To": to, "From": sender, "Body": message},
                auth=(settings.twilio_account_sid or "", settings.twilio_auth_token or ""),
                timeout=30,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"WhatsApp delivery to {to} failed: {e}")
            return DeliveryResult(success=False, message=str(e))

        return DeliveryResult(success=True, reference=response.json().get("sid"))


class NotificationDispatcher:
    """
    Delivers a message on one channel and records the Notification.
    The app channel is always marked sent; the external channel records the delivery outcome.
    """

    def __init__(
        self,
        email_sender: Optional[EmailSender] = None,
        whatsapp_sender: Optional[WhatsAppSender] = None,
        ttl_days: Optional[int] = None,
    ):
        self.email_sender = email_sender or EmailSender()
        self.whatsapp_sender = whatsapp_sender or WhatsAppSender()
        self.ttl_days = ttl_days or get_settings().record_ttl_days

    def _record(
        self,
        db: Database,
        user: Dict[str, Any],
        title: str,
        message: str,
        type: str,
        priority: str,
        related_to: Optional[Dict[str, Any]],
        channel: Optional[str] = None,
        delivered: bool = False,
    ) -> Dict[str, Any]:
        now = datetime.utcnow()
        notification = Notification(
            user=user["_id"],
            title=title,
            message=message,
            type=type,
            priority=priority,
            related_to=RelatedTo(**(related_to or {})),
            expires_at=expires_in(self.ttl_days),
        )
        notification.channels.app.sent = True
        notification.channels.app.sent_at = now
        if channel:
            status = getattr(notification.channels, channel)
            status.sent = delivered
            status.sent_at = now if delivered else None

        document = notification.to_document()
        document["_id"] = db[Collections.NOTIFICATIONS].insert_one(document).inserted_id
        return document

    def send_email(self, db: Database, user, subject, message, type, priority="medium", related_to=None):
        result = self.email_sender.send(user, subject, message)
        notification = self._record(
            db, user, subject, message, type, priority, related_to, channel="email", delivered=result.success
        )
        return notification, result

    def send_whatsapp(self, db: Database, user, message, type, priority="medium", related_to=None):
        result = self.whatsapp_sender.send(user, message)
        notification = self._record(
            db, user, "WhatsApp Notification", message, type, priority, related_to,
            channel="whatsapp", delivered=result.success,
        )
        return notification, result


def sort_by_priority(notifications: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Most urgent first, newest first within a priority."""
    by_date = sorted(notifications, key=lambda n: n.get("created_at") or datetime.min, reverse=True)
    return sorted(by_date, key=lambda n: PRIORITY_RANK.get(n.get("priority"), 0), reverse=True)


def find_notifications(
    db: Database,
    user_id: ObjectId,
    now: datetime,
    unread_only: bool = False,
    limit: int = 10,
) -> List[Dict[str, Any]]:
    query: Dict[str, Any] = {"user": user_id, "expires_at": {"$gt": now}}
    if unread_only:
        query["channels.app.read"] = False
    cursor = db[Collections.NOTIFICATIONS].find(query).sort("created_at", DESCENDING)
    return sort_by_priority(list(cursor))[:limit]


def mark_read(db: Database, notification_id: ObjectId, user_id: ObjectId) -> Optional[Dict[str, Any]]:
    collection = db[Collections.NOTIFICATIONS]
    result = collection.update_one(
        {"_id": notification_id, "user": user_id},
        {"$set": {
            "channels.app.read": True,
            "channels.app.read_at": datetime.utcnow(),
            "updated_at": datetime.utcnow(),
        }},
    )
    if result.matched_count == 0:
        return None
    return collection.find_one({"_id": notification_id})
