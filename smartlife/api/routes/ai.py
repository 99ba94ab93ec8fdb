"""
AI assistant, recommendation and feedback routes.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pymongo import DESCENDING
from pymongo.database import Database

from smartlife.config import get_settings
from smartlife.core.mongodb_client import Collections
from smartlife.services.assistant import (
    AssistantService,
    default_session_id,
    record_interaction,
    save_feedback,
)
from smartlife.services.recommendations import (
    NoActivePoliciesError,
    RecommendationEngine,
    create_recommendation,
    populate_policies,
)
from smartlife.utils import serialize_document
from smartlife.api.deps import (
    get_assistant_service,
    get_current_user,
    get_db,
    get_recommendation_engine,
    parse_id,
)
from smartlife.api.schemas import (
    AssistantRequest,
    FeedbackRequest,
    RecommendationStatusUpdate,
    RecommendRequest,
)


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/ai", tags=["AI"])


@router.post("/assistant")
def ask_assistant(
    request: AssistantRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
    assistant: AssistantService = Depends(get_assistant_service),
):
    """
    Answer a customer question and store the interaction.
    A bias warning is attached when the answer uses absolute wording.
    """
    session_id = request.session_id or default_session_id(user["_id"])
    try:
        result = assistant.respond(request.query, user)
        interaction_id = record_interaction(db, user, session_id, request.query, result)
    except Exception as e:
        logger.exception(f"Error answering assistant query: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    data = {
        "response": result.response,
        "session_id": session_id,
        "interaction_id": str(interaction_id),
    }
    if result.warning:
        data["warning"] = result.warning
    return {"success": True, "data": data}


@router.post("/recommend")
def recommend(
    request: Optional[RecommendRequest] = None,
    user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
    engine: RecommendationEngine = Depends(get_recommendation_engine),
):
    context = request.context.model_dump() if request and request.context else {}
    try:
        ranked = engine.recommend(db, user)
    except NoActivePoliciesError as e:
        raise HTTPException(status_code=404, detail=str(e))

    recommendation_id = create_recommendation(
        db,
        user,
        ranked,
        context=context,
        generated_by="ai",
        ttl_days=get_settings().record_ttl_days,
    )
    record = populate_policies(db, db[Collections.RECOMMENDATIONS].find_one({"_id": recommendation_id}))
    return {"success": True, "data": serialize_document(record)}


@router.post("/feedback")
def feedback(
    request: FeedbackRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    interaction = db[Collections.AI_INTERACTIONS].find_one(
        {"_id": parse_id(request.interaction_id, "interaction")}
    )
    if interaction is None:
        raise HTTPException(status_code=404, detail="Interaction not found")
    if interaction["user"] != user["_id"]:
        raise HTTPException(status_code=403, detail="Not authorized to provide feedback for this interaction")

    saved = save_feedback(
        db,
        interaction,
        rating=request.rating,
        comments=request.comments,
        helpful=request.helpful,
    )
    return {"success": True, "message": "Feedback saved successfully", "data": {"feedback": saved}}


@router.get("/history")
def history(
    session_id: Optional[str] = None,
    limit: int = Query(default=50, ge=1, le=200),
    user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    query: Dict[str, Any] = {"user": user["_id"]}
    if session_id:
        query["session"] = session_id
    interactions = list(
        db[Collections.AI_INTERACTIONS].find(query).sort("created_at", DESCENDING).limit(limit)
    )
    return {"success": True, "count": len(interactions), "data": serialize_document(interactions)}


@router.put("/recommendations/{recommendation_id}/status")
def update_recommendation_status(
    recommendation_id: str,
    request: RecommendationStatusUpdate,
    user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    recommendations = db[Collections.RECOMMENDATIONS]
    object_id = parse_id(recommendation_id, "recommendation")
    record = recommendations.find_one({"_id": object_id})
    if record is None:
        raise HTTPException(status_code=404, detail="Recommendation not found")
    if record["user"] != user["_id"]:
        raise HTTPException(status_code=403, detail="Not authorized to update this recommendation")

    fields = {
        f"interaction_status.{flag}": value
        for flag, value in request.model_dump(exclude_none=True).items()
    }
    fields["updated_at"] = datetime.utcnow()
    recommendations.update_one({"_id": object_id}, {"$set": fields})
    updated = populate_policies(db, recommendations.find_one({"_id": object_id}))
    return {"success": True, "data": serialize_document(updated)}
