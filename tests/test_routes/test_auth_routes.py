"""
Tests for login, registration, token handling and password changes.
"""

from datetime import datetime, timedelta, timezone

from jose import jwt

from assettrack.extensions import db
from assettrack.models.audit import AuditLog


class TestLogin:
    """POST /api/auth/login"""

    def test_login_returns_token(self, client, agent):
        response = client.post(
            "/api/auth/login", json={"username": "agent", "password": "secret123"}
        )

        assert response.status_code == 200
        body = response.get_json()
        assert body["message"] == "Login successful"
        assert body["user"]["username"] == "agent"
        assert body["token"]
        assert agent.last_login is not None

    def test_login_is_audited(self, client, agent):
        client.post("/api/auth/login", json={"username": "agent", "password": "secret123"})

        row = AuditLog.query.filter_by(action="LOGIN").one()
        assert row.user_id == agent.id
        assert row.entity_type == "User"

    def test_wrong_password_is_401(self, client, agent):  # pylint: disable=unused-argument
        response = client.post(
            "/api/auth/login", json={"username": "agent", "password": "wrong"}
        )
        assert response.status_code == 401
        assert response.get_json()["message"] == "Invalid credentials"

    def test_missing_fields_is_400(self, client):
        response = client.post("/api/auth/login", json={"username": "agent"})
        assert response.status_code == 400

    def test_inactive_account_is_403(self, client, agent):
        agent.is_active = False
        db.session.commit()

        response = client.post(
            "/api/auth/login", json={"username": "agent", "password": "secret123"}
        )
        assert response.status_code == 403


class TestRegister:
    """POST /api/auth/register"""

    def test_register_uses_default_role(self, client, admin):
        response = client.post(
            "/api/auth/register",
            json={
                "username": "newbie",
                "email": "newbie@example.com",
                "password": "password1",
                "firstName": "New",
                "lastName": "User",
                "roleId": admin.role_id,
            },
        )

        assert response.status_code == 201
        body = response.get_json()
        assert body["user"]["role"]["name"] == "Field Agent"
        assert body["token"]

    def test_duplicate_username_is_400(self, client, agent):  # pylint: disable=unused-argument
        response = client.post(
            "/api/auth/register",
            json={
                "username": "agent",
                "email": "other@example.com",
                "password": "password1",
                "firstName": "A",
                "lastName": "B",
            },
        )
        assert response.status_code == 400
        assert response.get_json()["message"] == "Username already exists"


class TestTokens:
    """Bearer token resolution on protected routes."""

    def test_missing_token_is_401(self, client):
        response = client.get("/api/auth/profile")
        assert response.status_code == 401
        assert response.get_json()["message"] == "No token provided"

    def test_garbage_token_is_401(self, client):
        response = client.get(
            "/api/auth/profile", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert response.status_code == 401
        assert response.get_json()["message"] == "Invalid token"

    def test_expired_token_is_401(self, app, client, agent):
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = jwt.encode(
            {"sub": str(agent.id), "iat": past, "exp": past + timedelta(minutes=5)},
            app.config["JWT_SECRET"],
            algorithm="HS256",
        )

        response = client.get(
            "/api/auth/profile", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401
        assert response.get_json()["message"] == "Token expired"

    def test_wrong_secret_is_401(self, client, agent):
        token = jwt.encode({"sub": str(agent.id)}, "some-other-secret", algorithm="HS256")
        response = client.get(
            "/api/auth/profile", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401

    def test_deactivated_after_issue_is_403(self, client, agent, auth_header):
        headers = auth_header(agent)
        agent.is_active = False
        db.session.commit()

        response = client.get("/api/auth/profile", headers=headers)
        assert response.status_code == 403
        assert response.get_json()["message"] == "User account is inactive"

    def test_profile_includes_permissions(self, client, auditor, auth_header):
        response = client.get("/api/auth/profile", headers=auth_header(auditor))

        assert response.status_code == 200
        body = response.get_json()
        assert body["username"] == "auditor"
        assert body["role"]["permissions"]["movements.approve"] is True


class TestChangePassword:
    """PUT /api/auth/change-password"""

    def test_change_password(self, client, agent, auth_header):
        response = client.put(
            "/api/auth/change-password",
            json={"currentPassword": "secret123", "newPassword": "better456"},
            headers=auth_header(agent),
        )

        assert response.status_code == 200
        assert agent.check_password("better456")
        assert AuditLog.query.filter_by(action="PASSWORD_CHANGE").count() == 1

    def test_wrong_current_password_is_401(self, client, agent, auth_header):
        response = client.put(
            "/api/auth/change-password",
            json={"currentPassword": "nope", "newPassword": "better456"},
            headers=auth_header(agent),
        )
        assert response.status_code == 401
        assert agent.check_password("secret123")
