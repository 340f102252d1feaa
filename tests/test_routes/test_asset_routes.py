"""
Tests for the assets endpoints, including drift detection through the
HTTP layer and audit entries written by the ``audited`` decorator.
"""

from assettrack.models.audit import AuditLog
from assettrack.models.discrepancy import Discrepancy
from assettrack.services import audit_service


class TestAssetCrud:
    """/api/assets"""

    def test_list_paginates(self, client, asset, agent, auth_header):  # pylint: disable=unused-argument
        response = client.get("/api/assets?limit=5", headers=auth_header(agent))

        assert response.status_code == 200
        body = response.get_json()
        assert body["totalItems"] == 1
        assert body["totalPages"] == 1
        assert body["assets"][0]["assetTag"] == "TAG-001"

    def test_list_filters(self, client, asset, agent, auth_header):  # pylint: disable=unused-argument
        response = client.get("/api/assets?category=Furniture", headers=auth_header(agent))
        assert response.get_json()["totalItems"] == 0

        response = client.get("/api/assets?search=lap", headers=auth_header(agent))
        assert response.get_json()["totalItems"] == 1

    def test_get_includes_related(self, client, asset, agent, auth_header):
        response = client.get(f"/api/assets/{asset.id}", headers=auth_header(agent))

        body = response.get_json()
        assert body["movements"] == []
        assert body["photos"] == []
        assert body["discrepancies"] == []

    def test_agent_cannot_create(self, client, agent, auth_header):
        response = client.post("/api/assets", json={"name": "X"}, headers=auth_header(agent))
        assert response.status_code == 403

    def test_create_and_audit(self, client, admin, auth_header):
        response = client.post(
            "/api/assets",
            json={"name": "Projector", "assetTag": "TAG-002", "purchasePrice": "199.99"},
            headers=auth_header(admin),
        )

        assert response.status_code == 201
        body = response.get_json()
        assert body["asset"]["purchasePrice"] == 199.99
        assert body["asset"]["status"] == "Available"

        row = AuditLog.query.filter_by(action="CREATE", entity_type="Asset").one()
        assert row.entity_id == body["asset"]["id"]
        assert row.user_id == admin.id
        assert row.new_values["assetTag"] == "TAG-002"
        assert row.previous_values is None

    def test_duplicate_tag_is_400(self, client, asset, admin, auth_header):  # pylint: disable=unused-argument
        response = client.post(
            "/api/assets",
            json={"name": "Copy", "assetTag": "TAG-001"},
            headers=auth_header(admin),
        )
        assert response.status_code == 400
        assert response.get_json()["message"] == "Asset with this tag already exists"

    def test_update_reports_discrepancies(self, client, asset, auditor, auth_header):
        response = client.put(
            f"/api/assets/{asset.id}",
            json={"custodian": "Bob"},
            headers=auth_header(auditor),
        )

        assert response.status_code == 200
        body = response.get_json()
        assert body["discrepanciesDetected"] is True
        assert body["asset"]["hasDiscrepancy"] is True

        row = AuditLog.query.filter_by(action="UPDATE", entity_type="Asset").one()
        assert row.previous_values["custodian"] == "Alice"
        assert row.new_values["custodian"] == "Bob"

    def test_failed_update_is_not_audited(self, client, asset, admin, auth_header):
        response = client.put(
            f"/api/assets/{asset.id}",
            json={"status": "Stolen"},
            headers=auth_header(admin),
        )

        assert response.status_code == 400
        assert AuditLog.query.count() == 0

    def test_empty_tracked_values_are_ignored(self, client, asset, admin, auth_header):
        response = client.put(
            f"/api/assets/{asset.id}",
            json={"condition": "", "status": "", "location": ""},
            headers=auth_header(admin),
        )

        assert response.status_code == 200
        body = response.get_json()
        assert body["discrepanciesDetected"] is False
        assert body["asset"]["condition"] == "Good"
        assert body["asset"]["status"] == "Available"
        assert body["asset"]["location"] == "Room 101"

    def test_delete_is_admin_only_and_soft(self, client, asset, auditor, admin, auth_header):
        response = client.delete(f"/api/assets/{asset.id}", headers=auth_header(auditor))
        assert response.status_code == 403

        response = client.delete(f"/api/assets/{asset.id}", headers=auth_header(admin))
        assert response.status_code == 200
        assert asset.deleted_at is not None

        response = client.get(f"/api/assets/{asset.id}", headers=auth_header(admin))
        assert response.status_code == 404

        row = AuditLog.query.filter_by(action="DELETE").one()
        assert row.entity_id == asset.id
        assert row.previous_values["assetTag"] == "TAG-001"
        assert row.new_values is None

    def test_categories_and_locations(self, client, asset, agent, auth_header):  # pylint: disable=unused-argument
        response = client.get("/api/assets/categories", headers=auth_header(agent))
        assert response.get_json()["categories"] == ["IT"]

        response = client.get("/api/assets/locations", headers=auth_header(agent))
        assert response.get_json()["locations"] == ["Room 101"]


class TestScan:
    """POST /api/assets/scan/<tag>"""

    def test_scan_with_new_location(self, client, asset, agent, auth_header):
        response = client.post(
            "/api/assets/scan/TAG-001",
            json={"location": "Loading Dock", "gpsLatitude": 10.5, "gpsLongitude": -3.25},
            headers=auth_header(agent),
        )

        assert response.status_code == 200
        body = response.get_json()
        assert body["discrepancyDetected"] is True
        assert body["asset"]["location"] == "Loading Dock"
        assert body["asset"]["gpsLatitude"] == 10.5
        assert Discrepancy.query.filter_by(asset_id=asset.id).count() == 1
        assert AuditLog.query.filter_by(action="SCAN").one().entity_id == asset.id

    def test_scan_same_location(self, client, asset, agent, auth_header):  # pylint: disable=unused-argument
        response = client.post(
            "/api/assets/scan/TAG-001",
            json={"location": "Room 101"},
            headers=auth_header(agent),
        )

        assert response.get_json()["discrepancyDetected"] is False

    def test_scan_unknown_tag(self, client, agent, auth_header):
        response = client.post("/api/assets/scan/NOPE", json={}, headers=auth_header(agent))
        assert response.status_code == 404


class TestAuditFailure:
    """A failing audit write never changes the response."""

    def test_update_succeeds_when_audit_insert_fails(
        self, client, asset, admin, auth_header, monkeypatch
    ):
        def broken_row(**_kwargs):
            raise RuntimeError("audit table is gone")

        monkeypatch.setattr(audit_service, "AuditLog", broken_row)

        response = client.put(
            f"/api/assets/{asset.id}", json={"name": "Renamed"}, headers=auth_header(admin)
        )

        assert response.status_code == 200
        assert response.get_json()["asset"]["name"] == "Renamed"
        assert AuditLog.query.count() == 0
