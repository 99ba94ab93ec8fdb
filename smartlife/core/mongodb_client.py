"""
MongoDB client singleton for database operations.
Provides connection management, collection access and index setup.
"""

import logging
from pymongo import MongoClient, ASCENDING, DESCENDING
from pymongo.database import Database

from smartlife.config import get_settings


logger = logging.getLogger(__name__)

_client = None


def get_mongodb_client() -> MongoClient:
    """Get MongoDB client singleton."""
    global _client
    if _client is None:
        settings = get_settings()
        # Short server selection timeout so a missing database fails fast
        _client = MongoClient(settings.mongodb_uri, serverSelectionTimeoutMS=2000)
    return _client


def get_database() -> Database:
    """Get the configured database."""
    settings = get_settings()
    return get_mongodb_client()[settings.mongodb_database]


def close_mongodb_client() -> None:
    """Close the MongoDB client connection."""
    global _client
    if _client is not None:
        _client.close()
        _client = None


# Collection names as constants
class Collections:
    """MongoDB collection names."""
    USERS = "users"
    POLICIES = "policies"
    CLAIMS = "claims"
    RECOMMENDATIONS = "recommendations"
    NOTIFICATIONS = "notifications"
    AI_INTERACTIONS = "ai_interactions"
    REPORTS = "reports"


def ensure_indexes(db: Database) -> None:
    """Create the unique and lookup indexes every collection relies on."""
    db[Collections.USERS].create_index("email", unique=True)
    db[Collections.USERS].create_index("policy_number", unique=True)

    db[Collections.POLICIES].create_index("name", unique=True)
    db[Collections.POLICIES].create_index(
        [("name", ASCENDING), ("category", ASCENDING), ("is_active", ASCENDING)]
    )

    db[Collections.CLAIMS].create_index("claim_number", unique=True)
    db[Collections.CLAIMS].create_index([("user", ASCENDING), ("created_at", DESCENDING)])

    db[Collections.NOTIFICATIONS].create_index(
        [("user", ASCENDING), ("channels.app.read", ASCENDING), ("expires_at", ASCENDING)],
        name="unread_notifications",
    )
    db[Collections.RECOMMENDATIONS].create_index(
        [("user", ASCENDING), ("interaction_status.purchased", ASCENDING), ("expires_at", ASCENDING)],
        name="active_recommendations",
    )
    db[Collections.AI_INTERACTIONS].create_index([("user", ASCENDING), ("session", ASCENDING)])
    db[Collections.REPORTS].create_index("user")
    logger.info("MongoDB indexes ensured")
