"""
Pytest configuration and fixtures.
"""

import random
import sys
from datetime import datetime, timedelta
from pathlib import Path

import mongomock
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from smartlife.main import app
from smartlife.api import deps
from smartlife.config import Settings
from smartlife.core.mongodb_client import Collections
from smartlife.core.security import create_access_token, hash_password
from smartlife.models import Claim, Policy, User
from smartlife.services.assistant import AssistantService
from smartlife.services.notifications import EmailSender, NotificationDispatcher, WhatsAppSender
from smartlife.services.recommendations import RecommendationEngine
from smartlife.services.reports import ReportRenderer


PASSWORD = "secret123"


@pytest.fixture
def db():
    """In-memory MongoDB database."""
    return mongomock.MongoClient()["smartlife_test"]


@pytest.fixture
def dev_settings():
    """Settings that log outbound email/WhatsApp instead of sending."""
    return Settings(environment="development", _env_file=None)


@pytest.fixture
def notifier(dev_settings):
    return NotificationDispatcher(EmailSender(dev_settings), WhatsAppSender(dev_settings), ttl_days=30)


@pytest.fixture
def client(db, notifier, tmp_path):
    """Test client wired to the in-memory database and offline services."""
    app.dependency_overrides[deps.get_db] = lambda: db
    app.dependency_overrides[deps.get_notifier] = lambda: notifier
    app.dependency_overrides[deps.get_assistant_service] = lambda: AssistantService(None)
    app.dependency_overrides[deps.get_recommendation_engine] = lambda: RecommendationEngine(
        rng=random.Random(7), limit=3
    )
    app.dependency_overrides[deps.get_report_renderer] = lambda: ReportRenderer(tmp_path / "reports")
    yield TestClient(app)
    app.dependency_overrides.clear()


def bearer(user):
    """Authorization header for a stored user."""
    token = create_access_token(str(user["_id"]), user["role"])
    return {"Authorization": f"Bearer {token}"}


def insert_user(db, email, role="user", policy_number=None, **fields):
    user = User(
        name=fields.pop("name", email.split("@")[0].title()),
        email=email,
        phone=fields.pop("phone", "9876543210"),
        password=hash_password(PASSWORD),
        policy_number=policy_number or f"POL-{email.split('@')[0].upper()}",
        role=role,
        **fields,
    )
    document = user.to_document()
    document["_id"] = db[Collections.USERS].insert_one(document).inserted_id
    return document


def insert_policy(db, name, category="health", base=400, amount=500000, is_active=True, created_by=None):
    policy = Policy(
        name=name,
        description=f"{name} cover",
        category=category,
        coverage={"amount": amount},
        premium={"base": base},
        benefits=["Cashless treatment"],
        exclusions=["Cosmetic procedures"],
        is_active=is_active,
        created_by=created_by or ObjectId(),
    )
    document = policy.to_document()
    document["_id"] = db[Collections.POLICIES].insert_one(document).inserted_id
    return document


def insert_claim(db, user, policy, status="pending", amount=1000.0, claim_number=None, **fields):
    claim = Claim(
        user=user["_id"],
        policy=policy["_id"],
        claim_number=claim_number or f"CLM-20240101-{random.randrange(16 ** 6):06X}",
        incident_date=datetime.utcnow() - timedelta(days=3),
        description="Hospital stay",
        amount=amount,
        status=status,
        **fields,
    )
    document = claim.to_document()
    document["_id"] = db[Collections.CLAIMS].insert_one(document).inserted_id
    return document


@pytest.fixture
def customer(db):
    return insert_user(db, "asha@example.com", region="South")


@pytest.fixture
def other_customer(db):
    return insert_user(db, "ravi@example.com", region="North")


@pytest.fixture
def agent(db):
    return insert_user(db, "agent@smartlife.ai", role="agent")


@pytest.fixture
def admin(db):
    return insert_user(db, "admin@smartlife.ai", role="admin")


@pytest.fixture
def health_policy(db, admin):
    return insert_policy(db, "SmartHealth Essential", "health", base=420, created_by=admin["_id"])


@pytest.fixture
def life_policy(db, admin):
    return insert_policy(db, "SmartLife Term Secure", "life", base=350, amount=10000000, created_by=admin["_id"])


@pytest.fixture
def auto_policy(db, admin):
    return insert_policy(db, "SmartDrive Comprehensive", "auto", base=560, created_by=admin["_id"])
