"""
Tests for profile routes.
"""

from smartlife.api.routes.users import profile_update_fields
from smartlife.api.schemas import ProfileUpdate
from conftest import bearer


class TestProfile:
    """Tests for GET/PUT /api/users/profile."""

    def test_get_profile(self, client, customer):
        response = client.get("/api/users/profile", headers=bearer(customer))
        assert response.status_code == 200

        data = response.json()["data"]
        assert data["id"] == str(customer["_id"])
        assert data["region"] == "South"
        assert "created_at" in data
        assert "password" not in data
        assert "reset_password_token" not in data

    def test_update_merges_preferences(self, client, db, customer):
        response = client.put(
            "/api/users/profile",
            headers=bearer(customer),
            json={
                "name": "Asha R",
                "preferences": {"notifications": {"whatsapp": True}, "risk_tolerance": "high"},
            },
        )
        assert response.status_code == 200

        prefs = response.json()["data"]["preferences"]
        assert prefs["notifications"] == {"email": True, "sms": False, "whatsapp": True}
        assert prefs["risk_tolerance"] == "high"
        assert prefs["policy_categories"] == ["health", "life"]
        assert db.users.find_one({"_id": customer["_id"]})["name"] == "Asha R"

    def test_update_rejects_unknown_category(self, client, customer):
        response = client.put(
            "/api/users/profile",
            headers=bearer(customer),
            json={"preferences": {"policy_categories": ["pets"]}},
        )
        assert response.status_code == 400

    def test_update_fields_are_flattened(self):
        update = ProfileUpdate(region="West", preferences={"notifications": {"sms": True}})
        assert profile_update_fields(update) == {
            "region": "West",
            "preferences.notifications.sms": True,
        }


class TestDeleteUser:
    """Tests for DELETE /api/users/{id}."""

    def test_admin_removes_user(self, client, db, admin, customer):
        response = client.delete(f"/api/users/{customer['_id']}", headers=bearer(admin))
        assert response.status_code == 200
        assert response.json()["message"] == "User removed"
        assert db.users.find_one({"_id": customer["_id"]}) is None

    def test_non_admin_forbidden(self, client, agent, customer):
        response = client.delete(f"/api/users/{customer['_id']}", headers=bearer(agent))
        assert response.status_code == 403

    def test_missing_user(self, client, admin):
        response = client.delete("/api/users/5f9b3b3b3b3b3b3b3b3b3b3b", headers=bearer(admin))
        assert response.status_code == 404
