"""
Tests for the audit log query endpoints and the report downloads.
"""

import csv
import io

from openpyxl import load_workbook

from assettrack.services import audit_service
from assettrack.services.audit_service import AuditEntry


def _seed_logs(admin, agent):
    for action, entity_type, entity_id, user in (
        ("CREATE", "Asset", 1, admin),
        ("UPDATE", "Asset", 1, admin),
        ("SCAN", "Asset", 1, agent),
        ("CREATE", "Site", 7, admin),
    ):
        audit_service.record(
            AuditEntry(
                action=action, entity_type=entity_type, entity_id=entity_id, user_id=user.id
            )
        )


class TestAuditLogRoutes:
    """/api/audit-logs"""

    def test_agent_is_forbidden(self, client, agent, auth_header):
        response = client.get("/api/audit-logs", headers=auth_header(agent))
        assert response.status_code == 403

    def test_auditor_lists_with_filters(self, client, admin, agent, auditor, auth_header):
        _seed_logs(admin, agent)
        headers = auth_header(auditor)

        body = client.get("/api/audit-logs", headers=headers).get_json()
        assert body["totalItems"] == 4
        assert len(body["auditLogs"]) == 4

        body = client.get("/api/audit-logs?entityType=Asset", headers=headers).get_json()
        assert body["totalItems"] == 3

        body = client.get(f"/api/audit-logs?userId={agent.id}", headers=headers).get_json()
        assert [row["action"] for row in body["auditLogs"]] == ["SCAN"]

    def test_entity_history(self, client, admin, agent, auditor, auth_header):
        _seed_logs(admin, agent)

        response = client.get("/api/audit-logs/entity/Site/7", headers=auth_header(auditor))
        body = response.get_json()
        assert body["totalItems"] == 1
        assert body["auditLogs"][0]["action"] == "CREATE"

    def test_user_activity(self, client, admin, agent, auditor, auth_header):
        _seed_logs(admin, agent)

        response = client.get(f"/api/audit-logs/user/{admin.id}", headers=auth_header(auditor))
        assert response.get_json()["totalItems"] == 3

    def test_distinct_values(self, client, admin, agent, auditor, auth_header):
        _seed_logs(admin, agent)
        headers = auth_header(auditor)

        actions = client.get("/api/audit-logs/actions", headers=headers).get_json()
        assert actions["actions"] == ["CREATE", "SCAN", "UPDATE"]

        types = client.get("/api/audit-logs/entity-types", headers=headers).get_json()
        assert types["entityTypes"] == ["Asset", "Site"]

    def test_get_single_and_missing(self, client, admin, auth_header):
        row = audit_service.record(AuditEntry(action="CREATE", entity_type="Asset"))

        response = client.get(f"/api/audit-logs/{row.id}", headers=auth_header(admin))
        assert response.status_code == 200

        response = client.get("/api/audit-logs/9999", headers=auth_header(admin))
        assert response.status_code == 404


class TestReports:
    """/api/reports"""

    def test_asset_csv(self, client, asset, auditor, auth_header):  # pylint: disable=unused-argument
        response = client.get("/api/reports/assets?format=csv", headers=auth_header(auditor))

        assert response.status_code == 200
        assert response.mimetype == "text/csv"
        assert "attachment" in response.headers["Content-Disposition"]
        rows = list(csv.reader(io.StringIO(response.data.decode("utf-8-sig"))))
        assert rows[0][0] == "Asset Tag"
        assert rows[1][0] == "TAG-001"

    def test_discrepancy_xlsx(self, client, asset, admin, auditor, auth_header):
        client.put(
            f"/api/assets/{asset.id}", json={"location": "Attic"}, headers=auth_header(admin)
        )

        response = client.get(
            "/api/reports/discrepancies?format=xlsx", headers=auth_header(auditor)
        )

        assert response.status_code == 200
        sheet = load_workbook(io.BytesIO(response.data)).active
        assert sheet.cell(row=1, column=3).value == "Type"
        assert sheet.cell(row=2, column=3).value == "Location"

    def test_unknown_format_is_400(self, client, auditor, auth_header):
        response = client.get("/api/reports/assets?format=pdf", headers=auth_header(auditor))
        assert response.status_code == 400

    def test_agent_cannot_export(self, client, agent, auth_header):
        response = client.get("/api/reports/assets", headers=auth_header(agent))
        assert response.status_code == 403
