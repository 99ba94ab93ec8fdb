"""
Tests for analytics: prediction, trends, segmentation and simulation.
"""

import random
from datetime import datetime
from unittest.mock import MagicMock

import pytest

from smartlife.services.analytics import (
    InvalidCriteriaError,
    conversion_insights,
    get_behavior_trends,
    segment_users,
    simulate_scenario,
)
from conftest import bearer, insert_user


class TestPredictEndpoint:
    """Tests for POST /api/analytics/predict."""

    def test_predict(self, client, customer, health_policy):
        response = client.post(
            "/api/analytics/predict",
            headers=bearer(customer),
            json={"policy_id": str(health_policy["_id"]), "user_behavior": {"view_count": 4}},
        )
        assert response.status_code == 200

        data = response.json()["data"]
        assert data["policy"]["name"] == "SmartHealth Essential"
        assert data["prediction"]["likelihood"] == 0.75

    def test_unknown_policy(self, client, customer):
        response = client.post(
            "/api/analytics/predict",
            headers=bearer(customer),
            json={"policy_id": "5f9b3b3b3b3b3b3b3b3b3b3b"},
        )
        assert response.status_code == 404

    def test_policy_id_required(self, client, customer):
        assert client.post("/api/analytics/predict", headers=bearer(customer), json={}).status_code == 400


class TestTrends:
    """Tests for behaviour trends."""

    def test_trend_rows_are_renamed(self):
        collection = MagicMock()
        collection.aggregate.side_effect = [
            [{"_id": "2024-05-01", "count": 3, "average_rating": 4.5, "helpful_count": 2}],
            [{"_id": "2024-05-01", "count": 1}],
        ]
        db = MagicMock()
        db.__getitem__.return_value = collection

        trends = get_behavior_trends(db, now=datetime(2024, 5, 20))

        assert trends["ai_interactions"] == [
            {"date": "2024-05-01", "count": 3, "average_rating": 4.5, "helpful_count": 2}
        ]
        assert trends["user_registrations"] == [{"date": "2024-05-01", "count": 1}]

        match = collection.aggregate.call_args_list[0].args[0][0]["$match"]
        assert match["created_at"]["$gte"] == datetime(2024, 4, 20)

    def test_trends_staff_only(self, client, customer, agent, mocker):
        mocker.patch(
            "smartlife.api.routes.analytics.get_behavior_trends",
            return_value={"ai_interactions": [], "user_registrations": []},
        )
        assert client.get("/api/analytics/trends", headers=bearer(customer)).status_code == 403

        response = client.get("/api/analytics/trends", headers=bearer(agent))
        assert response.status_code == 200
        assert response.json()["data"] == {"ai_interactions": [], "user_registrations": []}


class TestSegmentation:
    """Tests for user segmentation."""

    def test_segment_users(self, db, customer, other_customer):
        whatsapp_user = insert_user(
            db,
            "kiran@example.com",
            region="South",
            preferences={"notifications": {"email": False, "whatsapp": True}, "risk_tolerance": "high"},
        )
        result = segment_users(
            [customer, other_customer, whatsapp_user],
            ["region", "risk_tolerance", "notification_preference"],
        )

        segments = result["segments"]
        assert segments["by_region"]["South"] == [str(customer["_id"]), str(whatsapp_user["_id"])]
        assert segments["by_risk_tolerance"]["high"] == [str(whatsapp_user["_id"])]
        assert segments["by_notification_preference"]["whatsapp"] == [str(whatsapp_user["_id"])]
        assert len(segments["by_notification_preference"]["email"]) == 2

        counts = result["segment_counts"]
        assert counts["total_users"] == 3
        assert {"name": "North", "count": 1} in counts["by_region"]
        assert {"name": "medium", "count": 2} in counts["by_risk_tolerance"]

    def test_only_requested_criteria(self, customer):
        result = segment_users([customer], ["region"])
        assert list(result["segments"]) == ["by_region"]

    def test_invalid_criteria(self, customer):
        with pytest.raises(InvalidCriteriaError):
            segment_users([customer], ["region", "age"])

    def test_segment_endpoint(self, client, agent, customer, other_customer):
        response = client.post("/api/analytics/segment", headers=bearer(agent), json={"criteria": ["region"]})
        assert response.status_code == 200

        data = response.json()["data"]
        assert data["segment_counts"]["total_users"] == 2
        assert data["segments"]["by_region"]["South"] == [str(customer["_id"])]

    def test_segment_endpoint_errors(self, client, agent, customer):
        response = client.post("/api/analytics/segment", headers=bearer(agent), json={"criteria": ["age"]})
        assert response.status_code == 400
        assert "Unsupported segmentation criteria: age" in response.json()["error"]

        assert client.post("/api/analytics/segment", headers=bearer(agent), json={"criteria": []}).status_code == 400
        assert client.post(
            "/api/analytics/segment", headers=bearer(customer), json={"criteria": ["region"]}
        ).status_code == 403


class TestSimulation:
    """Tests for the upsell simulation."""

    def test_email_upsell(self, customer):
        result = simulate_scenario(customer, {"type": "email_upsell", "product": "premium_health"}, rng=random.Random(1))

        assert result["results"]["success_probability"] == 0.8
        assert result["results"]["percent_success"] == 80
        assert result["results"]["reasoning"] == [
            "User's preferences include the product category",
            "User prefers communication via email",
        ]
        assert result["recommendations"][0] == "Highlight key benefits of premium health"
        assert isinstance(result["results"]["expected_conversion"], bool)

    def test_whatsapp_upsell_without_opt_in(self, customer):
        result = simulate_scenario(customer, {"type": "whatsapp_upsell", "product": "premium_health"})
        assert result["results"]["success_probability"] == 0.7
        assert result["results"]["reasoning"][1] == "User does not prefer communication via whatsapp"

    def test_non_health_product(self, customer):
        result = simulate_scenario(customer, {"type": "sms_upsell", "product": "auto_plus"})
        assert result["results"]["success_probability"] == 0.5

    def test_conversion_insights(self):
        now = datetime(2024, 5, 20)
        insights = conversion_insights(rng=random.Random(5), now=now)
        assert 0.1 <= insights["conversion_rate"] <= 0.5
        assert sorted(insights["interest_categories"]) == ["health", "life"]
        assert len(insights["next_best_actions"]) == 2
        assert insights["last_interaction"] <= now
