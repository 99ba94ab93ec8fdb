"""
AI assistant responses.
Routes a user query to the configured provider and falls back to keyword templates.
"""

import logging
import re
import time
from datetime import datetime
from typing import Any, Dict, Optional

import requests
from bson import ObjectId
from pydantic import BaseModel
from pymongo.database import Database

from smartlife.config import get_settings
from smartlife.core.huggingface_client import HuggingFaceClient, AssistantProviderError
from smartlife.core.mongodb_client import Collections
from smartlife.core.vectara_client import VectaraClient
from smartlife.models import AiInteraction, InteractionMetadata
from smartlife.prompts import (
    ASSISTANT_CONTEXT,
    ASSISTANT_PROMPT,
    KEYWORD_RESPONSES,
    GREETING_WORDS,
    GREETING_RESPONSE,
    DEFAULT_RESPONSE,
)


logger = logging.getLogger(__name__)

MOCK_CONFIDENCE = 0.92

BIASED_TERMS = [
    "always", "never", "all", "none", "everyone", "nobody",
    "definitely", "absolutely", "guaranteed", "certainly",
]
_BIAS_PATTERN = re.compile(r"\b(" + "|".join(BIASED_TERMS) + r")\b", re.IGNORECASE)


class AssistantResult(BaseModel):
    """Generated response plus the metadata stored with the interaction."""
    response: str
    processing_time: float
    token_count: int
    confidence_score: Optional[float] = None
    provider: str = "mock"
    fallback: bool = False
    warning: Optional[str] = None


def check_response_bias(text: str) -> Optional[str]:
    """Flag absolute wording in a generated response."""
    if text and _BIAS_PATTERN.search(text):
        return "Potential bias detected in AI response"
    return None


def keyword_response(query: str, user: Dict[str, Any]) -> str:
    """Pick a canned answer by keyword, first match wins."""
    text = query.lower()
    for keywords, response in KEYWORD_RESPONSES:
        if any(keyword in text for keyword in keywords):
            return response

    words = set(re.findall(r"[a-z]+", text))
    if words.intersection(GREETING_WORDS):
        return GREETING_RESPONSE.format(name=user.get("name", "there"))

    return DEFAULT_RESPONSE


def build_assistant_client(provider: Optional[str] = None):
    """
    Create the hosted model client for the configured provider.
    Returns None for the offline keyword assistant.
    """
    provider = (provider or get_settings().ai_provider).lower()
    try:
        if provider == "huggingface":
            return HuggingFaceClient()
        if provider == "vectara":
            return VectaraClient()
    except AssistantProviderError as e:
        logger.warning(f"{provider} assistant unavailable, using keyword assistant: {e}")
        return None
    if provider != "mock":
        logger.warning(f"Unknown AI provider '{provider}', using keyword assistant")
    return None


class AssistantService:
    """
    Produces assistant answers for a user.
    Hosted providers are tried first; any provider failure falls back to keyword templates.
    """

    def __init__(self, client=None):
        self.client = client

    def respond(self, query: str, user: Dict[str, Any]) -> AssistantResult:
        start = time.perf_counter()
        context = ASSISTANT_CONTEXT.format(
            name=user.get("name", "there"),
            region=user.get("region", "National"),
        )

        provider = "mock"
        fallback = False
        confidence = MOCK_CONFIDENCE
        answer = None

        if self.client is not None:
            provider = getattr(self.client, "provider", type(self.client).__name__)
            prompt = ASSISTANT_PROMPT.format(context=context, query=query)
            try:
                if isinstance(self.client, VectaraClient):
                    answer = self.client.generate(prompt, query=query)
                    confidence = self.client.last_score
                else:
                    answer = self.client.generate(prompt)
                    confidence = None
            except (requests.RequestException, AssistantProviderError) as e:
                logger.warning(f"{provider} assistant failed, using keyword response: {e}")
                fallback = True
                confidence = MOCK_CONFIDENCE

        if answer is None:
            answer = keyword_response(query, user)

        processing_time = round((time.perf_counter() - start) * 1000, 2)
        return AssistantResult(
            response=answer,
            processing_time=processing_time,
            token_count=len(answer) // 4,
            confidence_score=confidence,
            provider=provider,
            fallback=fallback,
            warning=check_response_bias(answer),
        )


def default_session_id(user_id: ObjectId) -> str:
    return f"session_{int(time.time() * 1000)}_{user_id}"


def record_interaction(
    db: Database,
    user: Dict[str, Any],
    session: str,
    query: str,
    result: AssistantResult,
) -> ObjectId:
    """Store the query/response pair and return the interaction id."""
    interaction = AiInteraction(
        user=user["_id"],
        session=session,
        query=query,
        context={
            "user_role": user.get("role", "user"),
            "user_preferences": user.get("preferences", {}),
        },
        response=result.response,
        metadata=InteractionMetadata(
            processing_time=result.processing_time,
            token_count=result.token_count,
            confidence_score=result.confidence_score,
        ),
        tags=[result.provider] + (["fallback"] if result.fallback else []),
    )
    inserted = db[Collections.AI_INTERACTIONS].insert_one(interaction.to_document())
    return inserted.inserted_id


def merge_feedback(existing: Dict[str, Any], rating=None, comments=None, helpful=None) -> Dict[str, Any]:
    """Only overwrite the feedback fields that were supplied."""
    existing = existing or {}
    return {
        "rating": rating if rating is not None else existing.get("rating"),
        "comments": comments if comments else existing.get("comments"),
        "helpful": helpful if helpful is not None else existing.get("helpful"),
    }


def save_feedback(db: Database, interaction: Dict[str, Any], **fields) -> Dict[str, Any]:
    feedback = merge_feedback(interaction.get("feedback"), **fields)
    db[Collections.AI_INTERACTIONS].update_one(
        {"_id": interaction["_id"]},
        {"$set": {"feedback": feedback, "updated_at": datetime.utcnow()}},
    )
    return feedback
