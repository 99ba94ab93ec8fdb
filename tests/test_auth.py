"""
Tests for registration, login and password reset.
"""

from datetime import datetime, timedelta

import pytest

from smartlife.core.security import hash_reset_token, verify_password
from conftest import PASSWORD, bearer


@pytest.fixture
def registration():
    return {
        "name": "Meera Iyer",
        "email": "Meera@Example.com",
        "phone": "9123456780",
        "password": "secret123",
        "policy_number": "POL-555001",
    }


class TestRegister:
    """Tests for POST /api/auth/register."""

    def test_register_returns_user_and_token(self, client, db, registration):
        response = client.post("/api/auth/register", json=registration)
        assert response.status_code == 201

        data = response.json()["data"]
        assert data["email"] == "meera@example.com"
        assert data["role"] == "user"
        assert data["region"] == "National"
        assert data["preferences"]["policy_categories"] == ["health", "life"]
        assert data["token"]
        assert "password" not in data

        stored = db.users.find_one({"email": "meera@example.com"})
        assert verify_password("secret123", stored["password"])

    def test_register_ignores_role(self, client, db, registration):
        client.post("/api/auth/register", json={**registration, "role": "admin"})
        assert db.users.find_one({"email": "meera@example.com"})["role"] == "user"

    def test_duplicate_email(self, client, registration):
        client.post("/api/auth/register", json=registration)
        response = client.post("/api/auth/register", json={**registration, "policy_number": "POL-OTHER"})
        assert response.status_code == 400
        assert response.json()["error"] == "User already exists"

    def test_duplicate_policy_number(self, client, registration):
        client.post("/api/auth/register", json=registration)
        response = client.post("/api/auth/register", json={**registration, "email": "other@example.com"})
        assert response.status_code == 400
        assert response.json()["error"] == "Policy number already registered"

    @pytest.mark.parametrize("field,value", [("password", "123"), ("phone", "12345"), ("email", "meera")])
    def test_invalid_fields(self, client, registration, field, value):
        response = client.post("/api/auth/register", json={**registration, field: value})
        assert response.status_code == 400


class TestLogin:
    """Tests for POST /api/auth/login."""

    def test_login_success(self, client, customer):
        response = client.post("/api/auth/login", json={"email": "ASHA@example.com", "password": PASSWORD})
        assert response.status_code == 200
        assert response.json()["data"]["token"]

    def test_wrong_password(self, client, customer):
        response = client.post("/api/auth/login", json={"email": customer["email"], "password": "wrong-one"})
        assert response.status_code == 401
        assert response.json()["error"] == "Invalid email or password"

    def test_unknown_email(self, client):
        response = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": PASSWORD})
        assert response.status_code == 401

    def test_token_grants_access(self, client, customer):
        token = client.post(
            "/api/auth/login", json={"email": customer["email"], "password": PASSWORD}
        ).json()["data"]["token"]

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json()["data"]["email"] == customer["email"]

    def test_logout(self, client, customer):
        response = client.post("/api/auth/logout", headers=bearer(customer))
        assert response.status_code == 200
        assert response.json()["success"] is True


class TestPasswordReset:
    """Tests for forgot/reset password."""

    def test_forgot_password_stores_hashed_token(self, client, db, customer, mocker):
        mocker.patch(
            "smartlife.api.routes.auth.generate_reset_token",
            return_value=("raw-token", hash_reset_token("raw-token")),
        )
        response = client.post("/api/auth/forgot-password", json={"email": customer["email"]})
        assert response.status_code == 200

        stored = db.users.find_one({"_id": customer["_id"]})
        assert stored["reset_password_token"] == hash_reset_token("raw-token")
        assert stored["reset_password_expire"] > datetime.utcnow()

    def test_forgot_password_unknown_email_same_answer(self, client, customer):
        known = client.post("/api/auth/forgot-password", json={"email": customer["email"]}).json()
        unknown = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"}).json()
        assert known == unknown

    def test_reset_password(self, client, db, customer, mocker):
        mocker.patch(
            "smartlife.api.routes.auth.generate_reset_token",
            return_value=("raw-token", hash_reset_token("raw-token")),
        )
        client.post("/api/auth/forgot-password", json={"email": customer["email"]})

        response = client.post("/api/auth/reset-password", json={"token": "raw-token", "password": "brand-new"})
        assert response.status_code == 200
        assert response.json()["data"]["token"]

        stored = db.users.find_one({"_id": customer["_id"]})
        assert stored["reset_password_token"] is None
        login = client.post("/api/auth/login", json={"email": customer["email"], "password": "brand-new"})
        assert login.status_code == 200

    def test_expired_reset_token(self, client, db, customer):
        db.users.update_one(
            {"_id": customer["_id"]},
            {"$set": {
                "reset_password_token": hash_reset_token("old-token"),
                "reset_password_expire": datetime.utcnow() - timedelta(minutes=1),
            }},
        )
        response = client.post("/api/auth/reset-password", json={"token": "old-token", "password": "brand-new"})
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid or expired reset token"
