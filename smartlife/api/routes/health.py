"""
Health and service information routes.
"""

import logging
from datetime import datetime

from fastapi import APIRouter
from pymongo.errors import PyMongoError

from smartlife import __version__
from smartlife.config import get_settings
from smartlife.core.mongodb_client import get_mongodb_client
from smartlife.api.schemas import HealthResponse


logger = logging.getLogger(__name__)
router = APIRouter(tags=["Health"])


def _ai_configured(settings) -> bool:
    provider = settings.ai_provider.lower()
    if provider == "huggingface":
        return bool(settings.huggingface_api_url)
    if provider == "vectara":
        return bool(settings.vectara_api_key and settings.vectara_corpus_key)
    # Keyword assistant needs nothing
    return provider == "mock"


@router.get("/health", response_model=HealthResponse)
def health_check():
    """
    Check the health status of the API and its dependencies.
    """
    settings = get_settings()

    mongodb_connected = False
    try:
        get_mongodb_client().admin.command("ping")
        mongodb_connected = True
    except PyMongoError as e:
        logger.warning(f"MongoDB connection check failed: {e}")

    ai_configured = _ai_configured(settings)

    return HealthResponse(
        status="healthy" if mongodb_connected and ai_configured else "degraded",
        version=__version__,
        mongodb_connected=mongodb_connected,
        ai_provider=settings.ai_provider,
        ai_configured=ai_configured,
        timestamp=datetime.utcnow(),
    )
