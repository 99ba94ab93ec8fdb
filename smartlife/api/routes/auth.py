"""
Registration, login and password reset routes.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from smartlife.config import get_settings
from smartlife.core.mongodb_client import Collections
from smartlife.core.security import (
    create_access_token,
    generate_reset_token,
    hash_password,
    hash_reset_token,
    verify_password,
)
from smartlife.models import User
from smartlife.services.notifications import NotificationDispatcher
from smartlife.utils import serialize_document
from smartlife.api.deps import get_current_user, get_db, get_notifier
from smartlife.api.schemas import (
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
)


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/auth", tags=["Auth"])

RESET_REQUESTED_MESSAGE = "If an account exists for that email, a password reset link has been sent"


def _with_token(user: Dict[str, Any]) -> Dict[str, Any]:
    data = serialize_document(user)
    data["token"] = create_access_token(str(user["_id"]), user.get("role", "user"))
    return data


@router.post("/register", status_code=201)
def register(request: RegisterRequest, db: Database = Depends(get_db)):
    """Create a customer account and return it with an access token."""
    users = db[Collections.USERS]
    if users.find_one({"email": request.email}):
        raise HTTPException(status_code=400, detail="User already exists")
    if users.find_one({"policy_number": request.policy_number}):
        raise HTTPException(status_code=400, detail="Policy number already registered")

    fields = request.model_dump(exclude={"password", "region"})
    if request.region:
        fields["region"] = request.region
    user = User(**fields, password=hash_password(request.password))

    document = user.to_document()
    try:
        document["_id"] = users.insert_one(document).inserted_id
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="User already exists")

    logger.info(f"Registered user {request.email}")
    return {"success": True, "data": _with_token(document)}


@router.post("/login")
def login(request: LoginRequest, db: Database = Depends(get_db)):
    user = db[Collections.USERS].find_one({"email": request.email})
    if user is None or not verify_password(request.password, user.get("password", "")):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return {"success": True, "data": _with_token(user)}


@router.post("/logout")
def logout(user: Dict[str, Any] = Depends(get_current_user)):
    # Tokens are stateless; the client discards its copy
    return {"success": True, "message": "User logged out successfully"}


@router.get("/me")
def me(user: Dict[str, Any] = Depends(get_current_user)):
    return {"success": True, "data": serialize_document(user)}


@router.post("/forgot-password")
def forgot_password(
    request: ForgotPasswordRequest,
    db: Database = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
):
    """
    Email a single-use reset link.
    The answer is identical whether or not the email is registered.
    """
    settings = get_settings()
    user = db[Collections.USERS].find_one({"email": request.email})
    if user is not None:
        raw_token, token_hash = generate_reset_token()
        db[Collections.USERS].update_one(
            {"_id": user["_id"]},
            {"$set": {
                "reset_password_token": token_hash,
                "reset_password_expire": datetime.utcnow()
                + timedelta(minutes=settings.password_reset_expire_minutes),
            }},
        )
        link = f"{settings.frontend_url}/reset-password/{raw_token}"
        result = notifier.email_sender.send(
            user,
            "Password reset",
            f"Use this link to reset your password: {link}. "
            f"It expires in {settings.password_reset_expire_minutes} minutes.",
            transactional=True,
        )
        if not result.success:
            logger.error(f"Password reset email to {request.email} failed: {result.message}")

    return {"success": True, "message": RESET_REQUESTED_MESSAGE}


@router.post("/reset-password")
def reset_password(request: ResetPasswordRequest, db: Database = Depends(get_db)):
    users = db[Collections.USERS]
    user = users.find_one({
        "reset_password_token": hash_reset_token(request.token),
        "reset_password_expire": {"$gt": datetime.utcnow()},
    })
    if user is None:
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")

    users.update_one(
        {"_id": user["_id"]},
        {"$set": {
            "password": hash_password(request.password),
            "reset_password_token": None,
            "reset_password_expire": None,
            "updated_at": datetime.utcnow(),
        }},
    )
    logger.info(f"Password reset for {user['email']}")
    return {"success": True, "data": _with_token(users.find_one({"_id": user["_id"]}))}
