"""
Tests for the users and roles endpoints.
"""

from assettrack.models.audit import AuditLog
from assettrack.models.user import AUDITOR_ROLE, Role


class TestUserRoutes:
    """/api/users"""

    def test_list_is_admin_only(self, client, admin, agent, auth_header):
        response = client.get("/api/users", headers=auth_header(agent))
        assert response.status_code == 403

        response = client.get("/api/users", headers=auth_header(admin))
        body = response.get_json()
        assert body["totalItems"] == 2
        assert {u["username"] for u in body["users"]} == {"admin", "agent"}

    def test_user_reads_self_only(self, client, agent, other_agent, auth_header):
        response = client.get(f"/api/users/{agent.id}", headers=auth_header(agent))
        assert response.status_code == 200
        assert response.get_json()["username"] == "agent"
        assert "passwordHash" not in response.get_json()

        response = client.get(f"/api/users/{other_agent.id}", headers=auth_header(agent))
        assert response.status_code == 403

    def test_self_update_ignores_role(self, client, agent, auth_header):
        admin_role = Role.query.filter_by(name="Admin").one()

        response = client.put(
            f"/api/users/{agent.id}",
            json={"firstName": "Agnes", "roleId": admin_role.id},
            headers=auth_header(agent),
        )

        assert response.status_code == 200
        body = response.get_json()["user"]
        assert body["firstName"] == "Agnes"
        assert body["role"]["name"] == "Field Agent"

    def test_admin_changes_role(self, client, admin, agent, auth_header):
        auditor_role = Role.query.filter_by(name=AUDITOR_ROLE).one()

        response = client.put(
            f"/api/users/{agent.id}",
            json={"roleId": auditor_role.id},
            headers=auth_header(admin),
        )

        assert response.get_json()["user"]["role"]["name"] == AUDITOR_ROLE
        row = AuditLog.query.filter_by(entity_type="User", action="UPDATE").one()
        assert row.entity_id == agent.id

    def test_admin_creates_user(self, client, admin, auth_header):
        response = client.post(
            "/api/users",
            json={
                "username": "newbie",
                "email": "newbie@example.com",
                "password": "password1",
                "firstName": "New",
                "lastName": "Person",
            },
            headers=auth_header(admin),
        )

        assert response.status_code == 201
        assert response.get_json()["user"]["username"] == "newbie"

    def test_duplicate_email_is_400(self, client, admin, agent, auth_header):
        response = client.post(
            "/api/users",
            json={
                "username": "copycat",
                "email": agent.email,
                "password": "password1",
                "firstName": "Copy",
                "lastName": "Cat",
            },
            headers=auth_header(admin),
        )
        assert response.status_code == 400

    def test_cannot_delete_self(self, client, admin, auth_header):
        response = client.delete(f"/api/users/{admin.id}", headers=auth_header(admin))

        assert response.status_code == 400
        assert response.get_json()["message"] == "You cannot delete your own account."

    def test_deleted_user_token_stops_working(self, client, admin, agent, auth_header):
        agent_headers = auth_header(agent)

        response = client.delete(f"/api/users/{agent.id}", headers=auth_header(admin))
        assert response.status_code == 200

        response = client.get("/api/assets", headers=agent_headers)
        assert response.status_code == 401


class TestRoleRoutes:
    """/api/roles"""

    def test_auditor_can_read(self, client, auditor, auth_header):
        response = client.get("/api/roles", headers=auth_header(auditor))

        assert response.status_code == 200
        names = [role["name"] for role in response.get_json()["roles"]]
        assert names == ["Admin", "Auditor", "Field Agent"]

    def test_agent_cannot_read(self, client, agent, auth_header):
        response = client.get("/api/roles", headers=auth_header(agent))
        assert response.status_code == 403

    def test_create_flattens_permissions(self, client, admin, auth_header):
        response = client.post(
            "/api/roles",
            json={"name": "Viewer", "permissions": {"assets": {"read": True}}},
            headers=auth_header(admin),
        )

        assert response.status_code == 201
        assert response.get_json()["role"]["permissions"] == {"assets.read": True}

    def test_duplicate_name_is_400(self, client, admin, auth_header):
        response = client.post("/api/roles", json={"name": "Admin"}, headers=auth_header(admin))
        assert response.status_code == 400

    def test_delete_assigned_role_blocked(self, client, admin, auth_header):
        response = client.delete(f"/api/roles/{admin.role_id}", headers=auth_header(admin))

        assert response.status_code == 400
        assert response.get_json()["message"] == "Cannot delete role that is assigned to users"

    def test_delete_unused_role(self, client, admin, auth_header):
        role_id = client.post(
            "/api/roles", json={"name": "Temp"}, headers=auth_header(admin)
        ).get_json()["role"]["id"]

        response = client.delete(f"/api/roles/{role_id}", headers=auth_header(admin))
        assert response.status_code == 200

        response = client.get(f"/api/roles/{role_id}", headers=auth_header(admin))
        assert response.status_code == 404


class TestMainRoutes:
    """Health check and fallback errors."""

    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.get_json() == {"status": "healthy", "database": "connected"}

    def test_unknown_route(self, client):
        response = client.get("/api/nothing-here")

        assert response.status_code == 404
        assert response.get_json()["message"] == "Route not found"

    def test_missing_token_is_401(self, client):
        response = client.get("/api/assets")
        assert response.status_code == 401


class TestCommands:
    """Flask CLI commands."""

    def test_seed_defaults_is_idempotent(self, app):
        runner = app.test_cli_runner()

        first = runner.invoke(args=["seed-defaults"])
        second = runner.invoke(args=["seed-defaults"])

        assert first.exit_code == 0
        assert "Created user 'admin'" in first.output
        assert "already exists" in second.output
        assert Role.query.count() == 3

    def test_reconcile_command(self, app, asset):  # pylint: disable=unused-argument
        runner = app.test_cli_runner()

        result = runner.invoke(args=["reconcile-discrepancies"])

        assert result.exit_code == 0
        assert "All flags consistent." in result.output
