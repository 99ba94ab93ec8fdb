"""
Policy recommendation engine and purchase likelihood prediction.
"""

import random
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import DESCENDING
from pymongo.database import Database

from smartlife.core.mongodb_client import Collections
from smartlife.models import (
    Recommendation,
    RecommendationContext,
    RecommendedPolicy,
    expires_in,
)
from smartlife.prompts import PURCHASE_SUGGESTED_ACTIONS


DEFAULT_CATEGORIES = ["health", "life"]

CATEGORY_MATCH_SCORE = 75
CATEGORY_MISS_SCORE = 50
LOW_RISK_BONUS = 10
LOW_RISK_PREMIUM_LIMIT = 500
HIGH_RISK_BONUS = 15
HIGH_RISK_COVERAGE_FLOOR = 100000
RANDOM_JITTER = 15
MAX_SCORE = 100


class NoActivePoliciesError(Exception):
    """Raised when there is nothing to recommend."""


def _preferences(user: Dict[str, Any]) -> Dict[str, Any]:
    return user.get("preferences") or {}


class RecommendationEngine:
    """
    Scores active policies against a user's stated preferences.
    Filters to the preferred categories, applies risk tolerance bonuses and a random jitter.
    """

    def __init__(self, rng: Optional[random.Random] = None, limit: int = 3):
        self.rng = rng or random.Random()
        self.limit = limit

    def score_policy(self, policy: Dict[str, Any], user: Dict[str, Any]) -> RecommendedPolicy:
        prefs = _preferences(user)
        categories = prefs.get("policy_categories") or DEFAULT_CATEGORIES
        risk_tolerance = prefs.get("risk_tolerance") or "medium"

        score = CATEGORY_MATCH_SCORE if policy["category"] in categories else CATEGORY_MISS_SCORE

        base_premium = (policy.get("premium") or {}).get("base", 0)
        coverage_amount = (policy.get("coverage") or {}).get("amount") or 0
        if risk_tolerance == "low" and base_premium < LOW_RISK_PREMIUM_LIMIT:
            score += LOW_RISK_BONUS
        elif risk_tolerance == "high" and coverage_amount > HIGH_RISK_COVERAGE_FLOOR:
            score += HIGH_RISK_BONUS

        score += self.rng.randrange(RANDOM_JITTER)
        score = min(score, MAX_SCORE)

        return RecommendedPolicy(
            policy=policy["_id"],
            score=score,
            reasons=[
                f"Matches your preferred category: {policy['category']}",
                f"Aligns with your risk tolerance: {risk_tolerance}",
            ],
            custom_premium=base_premium,
        )

    def rank(self, policies: List[Dict[str, Any]], user: Dict[str, Any]) -> List[RecommendedPolicy]:
        """Return the top scoring policies in the user's preferred categories."""
        categories = _preferences(user).get("policy_categories") or DEFAULT_CATEGORIES
        candidates = [p for p in policies if p.get("category") in categories]
        scored = [self.score_policy(p, user) for p in candidates]
        scored.sort(key=lambda r: r.score, reverse=True)
        return scored[:self.limit]

    def recommend(self, db: Database, user: Dict[str, Any]) -> List[RecommendedPolicy]:
        policies = list(db[Collections.POLICIES].find({"is_active": True}))
        if not policies:
            raise NoActivePoliciesError("No active policies found")
        return self.rank(policies, user)


def create_recommendation(
    db: Database,
    user: Dict[str, Any],
    recommendations: List[RecommendedPolicy],
    context: Optional[Dict[str, Any]] = None,
    generated_by: str = "ai",
    ttl_days: int = 30,
) -> ObjectId:
    """Persist a scored recommendation set for the user."""
    context = context or {}
    record = Recommendation(
        user=user["_id"],
        recommendations=recommendations,
        context=RecommendationContext(
            user_profile={
                "region": user.get("region"),
                "preferences": user.get("preferences", {}),
            },
            triggers=context.get("triggers") or [],
            life_events=context.get("life_events") or [],
        ),
        generated_by=generated_by,
        expires_at=expires_in(ttl_days),
    )
    return db[Collections.RECOMMENDATIONS].insert_one(record.to_document()).inserted_id


def populate_policies(db: Database, recommendation: Dict[str, Any]) -> Dict[str, Any]:
    """Replace policy ids inside a recommendation set with the policy documents."""
    items = recommendation.get("recommendations", [])
    ids = [item["policy"] for item in items]
    policies = {p["_id"]: p for p in db[Collections.POLICIES].find({"_id": {"$in": ids}})}
    populated = dict(recommendation)
    populated["recommendations"] = [
        {**item, "policy": policies.get(item["policy"], item["policy"])} for item in items
    ]
    return populated


def find_active_recommendations(
    db: Database,
    user_id: ObjectId,
    now,
    limit: int = 3,
    exclude_purchased: bool = False,
) -> List[Dict[str, Any]]:
    query = {"user": user_id, "expires_at": {"$gt": now}}
    if exclude_purchased:
        query["interaction_status.purchased"] = False
    cursor = db[Collections.RECOMMENDATIONS].find(query).sort("created_at", DESCENDING).limit(limit)
    return [populate_policies(db, rec) for rec in cursor]


def predict_purchase(
    user: Dict[str, Any],
    policy: Dict[str, Any],
    user_behavior: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Estimate how likely the user is to buy the policy.

    Args:
        user: User document
        policy: Policy document
        user_behavior: Optional view_count / time_spent (seconds) signals

    Returns:
        likelihood in [0, 1] with its contributing factors
    """
    behavior = user_behavior or {}
    categories = _preferences(user).get("policy_categories") or []
    category_match = policy.get("category") in categories
    engaged = (behavior.get("view_count") or 0) > 3

    likelihood = 0.5
    if category_match:
        likelihood += 0.15
    if engaged:
        likelihood += 0.1
    if (behavior.get("time_spent") or 0) > 120:
        likelihood += 0.05
    likelihood = round(max(0.0, min(1.0, likelihood)), 4)

    return {
        "likelihood": likelihood,
        "percent_likelihood": round(likelihood * 100),
        "factors": [
            {"name": "Category match", "impact": "positive" if category_match else "negative"},
            {"name": "Previous engagement", "impact": "positive" if engaged else "neutral"},
        ],
        "suggested_actions": list(PURCHASE_SUGGESTED_ACTIONS),
    }
