"""
Behaviour trends, user segmentation and agent upsell simulation.
"""

import random
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from pymongo.database import Database

from smartlife.core.mongodb_client import Collections
from smartlife.prompts import SIMULATION_RECOMMENDATIONS, NEXT_BEST_ACTIONS


SEGMENT_CRITERIA = ("region", "risk_tolerance", "notification_preference")
TREND_WINDOW_DAYS = 30


class InvalidCriteriaError(Exception):
    """Raised for segmentation criteria outside SEGMENT_CRITERIA."""


def get_behavior_trends(db: Database, now: Optional[datetime] = None) -> Dict[str, List[Dict[str, Any]]]:
    """Daily AI interaction and registration counts over the last 30 days."""
    since = (now or datetime.utcnow()) - timedelta(days=TREND_WINDOW_DAYS)
    day = {"$dateToString": {"format": "%Y-%m-%d", "date": "$created_at"}}

    interactions = list(db[Collections.AI_INTERACTIONS].aggregate([
        {"$match": {"created_at": {"$gte": since}}},
        {"$group": {
            "_id": day,
            "count": {"$sum": 1},
            "average_rating": {"$avg": "$feedback.rating"},
            "helpful_count": {"$sum": {"$cond": [{"$eq": ["$feedback.helpful", True]}, 1, 0]}},
        }},
        {"$sort": {"_id": 1}},
    ]))

    registrations = list(db[Collections.USERS].aggregate([
        {"$match": {"created_at": {"$gte": since}}},
        {"$group": {"_id": day, "count": {"$sum": 1}}},
        {"$sort": {"_id": 1}},
    ]))

    return {
        "ai_interactions": [{"date": row.pop("_id"), **row} for row in interactions],
        "user_registrations": [{"date": row.pop("_id"), **row} for row in registrations],
    }


def segment_users(users: List[Dict[str, Any]], criteria: List[str]) -> Dict[str, Any]:
    """
    Group users by the requested criteria.

    Args:
        users: User documents
        criteria: Any of region, risk_tolerance, notification_preference

    Returns:
        segments (user ids per bucket) and segment_counts
    """
    unknown = [c for c in criteria if c not in SEGMENT_CRITERIA]
    if unknown:
        raise InvalidCriteriaError(
            f"Unsupported segmentation criteria: {', '.join(unknown)}. "
            f"Use any of: {', '.join(SEGMENT_CRITERIA)}"
        )

    segments: Dict[str, Dict[str, List[str]]] = {}
    counts: Dict[str, Any] = {"total_users": len(users)}

    if "region" in criteria:
        by_region: Dict[str, List[str]] = {}
        for user in users:
            by_region.setdefault(user.get("region") or "Unspecified", []).append(str(user["_id"]))
        segments["by_region"] = by_region

    if "risk_tolerance" in criteria:
        by_risk: Dict[str, List[str]] = {"low": [], "medium": [], "high": []}
        for user in users:
            risk = (user.get("preferences") or {}).get("risk_tolerance") or "medium"
            by_risk.setdefault(risk, []).append(str(user["_id"]))
        segments["by_risk_tolerance"] = by_risk

    if "notification_preference" in criteria:
        by_channel: Dict[str, List[str]] = {"email": [], "sms": [], "whatsapp": []}
        for user in users:
            channels = (user.get("preferences") or {}).get("notifications") or {}
            for channel in by_channel:
                if channels.get(channel):
                    by_channel[channel].append(str(user["_id"]))
        segments["by_notification_preference"] = by_channel

    for key, buckets in segments.items():
        counts[key] = [{"name": name, "count": len(ids)} for name, ids in buckets.items()]

    return {"segments": segments, "segment_counts": counts}


def simulate_scenario(
    user: Dict[str, Any],
    scenario: Dict[str, Any],
    rng: Optional[random.Random] = None,
) -> Dict[str, Any]:
    """Estimate the success of an upsell message sent to a customer."""
    rng = rng or random.Random()
    scenario_type = scenario.get("type") or "email_upsell"
    product = scenario.get("product") or "premium_health"
    channel = scenario_type.split("_")[0]

    prefs = user.get("preferences") or {}
    likes_health = "health" in (prefs.get("policy_categories") or [])
    notifications = prefs.get("notifications") or {}

    probability = 0.5
    if likes_health and "health" in product:
        probability += 0.2
    if scenario_type == "email_upsell" and notifications.get("email"):
        probability += 0.1
    elif scenario_type == "whatsapp_upsell" and notifications.get("whatsapp"):
        probability += 0.15
    probability = round(max(0.0, min(1.0, probability)), 4)

    product_label = product.replace("_", " ", 1)
    return {
        "scenario_type": scenario_type,
        "product": product,
        "user": {"id": str(user["_id"]), "name": user.get("name")},
        "results": {
            "success_probability": probability,
            "percent_success": round(probability * 100),
            "expected_conversion": rng.random() < probability,
            "reasoning": [
                f"User's preferences {'include' if likes_health else 'do not include'} the product category",
                f"User {'prefers' if notifications.get(channel) else 'does not prefer'} communication via {channel}",
            ],
        },
        "recommendations": [line.format(product=product_label) for line in SIMULATION_RECOMMENDATIONS],
    }


def conversion_insights(rng: Optional[random.Random] = None, now: Optional[datetime] = None) -> Dict[str, Any]:
    # Simulated until conversion events are tracked
    rng = rng or random.Random()
    now = now or datetime.utcnow()
    categories = ["health", "life"]
    rng.shuffle(categories)
    actions = list(NEXT_BEST_ACTIONS)
    rng.shuffle(actions)
    return {
        "conversion_rate": round(rng.random() * 0.4 + 0.1, 4),
        "last_interaction": now - timedelta(seconds=rng.random() * 7 * 24 * 60 * 60),
        "interest_categories": categories,
        "next_best_actions": actions[:2],
    }
