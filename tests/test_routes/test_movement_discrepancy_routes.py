"""
Tests for the movements and discrepancies endpoints.
"""

import pytest

from assettrack.models.audit import AuditLog
from assettrack.models.discrepancy import Discrepancy


@pytest.fixture
def movement_id(client, asset, agent, auth_header):
    """Id of a Pending movement requested by ``agent`` over HTTP."""
    response = client.post(
        "/api/movements",
        json={"assetId": asset.id, "toLocation": "Room 303", "toCustodian": "Bob"},
        headers=auth_header(agent),
    )
    assert response.status_code == 201
    return response.get_json()["movement"]["id"]


class TestMovementRoutes:
    """/api/movements"""

    def test_create_response(self, client, movement_id, agent, auth_header):
        response = client.get(f"/api/movements/{movement_id}", headers=auth_header(agent))

        body = response.get_json()
        assert body["status"] == "Pending"
        assert body["fromLocation"] == "Room 101"

    def test_full_lifecycle(self, client, movement_id, asset, auditor, auth_header):
        headers = auth_header(auditor)

        response = client.put(
            f"/api/movements/{movement_id}", json={"status": "Approved"}, headers=headers
        )
        assert response.status_code == 200
        assert response.get_json()["assetUpdated"] is False

        response = client.put(
            f"/api/movements/{movement_id}", json={"status": "Completed"}, headers=headers
        )
        assert response.status_code == 200
        assert response.get_json()["assetUpdated"] is True
        assert asset.location == "Room 303"

        updates = AuditLog.query.filter_by(entity_type="Movement", action="UPDATE").all()
        assert len(updates) == 2

    def test_requester_cannot_approve(self, client, movement_id, agent, auth_header):
        response = client.put(
            f"/api/movements/{movement_id}",
            json={"status": "Approved"},
            headers=auth_header(agent),
        )

        assert response.status_code == 403
        assert response.get_json()["message"] == "Not authorized to approve movements"

    def test_requester_withdraws_request(self, client, movement_id, agent, auth_header):
        response = client.put(
            f"/api/movements/{movement_id}",
            json={"status": "Rejected"},
            headers=auth_header(agent),
        )

        assert response.status_code == 200
        body = response.get_json()["movement"]
        assert body["status"] == "Rejected"
        assert body["approverId"] is None
        assert body["approvalDate"] is None

    def test_stranger_cannot_update(self, client, movement_id, other_agent, auth_header):
        response = client.put(
            f"/api/movements/{movement_id}",
            json={"notes": "hi"},
            headers=auth_header(other_agent),
        )
        assert response.status_code == 403

    def test_filter_by_status(self, client, movement_id, agent, auth_header):  # pylint: disable=unused-argument
        response = client.get("/api/movements?status=Approved", headers=auth_header(agent))
        assert response.get_json()["totalItems"] == 0

        response = client.get("/api/movements?status=Pending", headers=auth_header(agent))
        assert response.get_json()["totalItems"] == 1

    def test_by_asset(self, client, movement_id, asset, agent, auth_header):
        response = client.get(f"/api/movements/asset/{asset.id}", headers=auth_header(agent))
        assert [m["id"] for m in response.get_json()["movements"]] == [movement_id]

    def test_delete_pending(self, client, movement_id, agent, auth_header):
        response = client.delete(f"/api/movements/{movement_id}", headers=auth_header(agent))
        assert response.status_code == 200

        response = client.get(f"/api/movements/{movement_id}", headers=auth_header(agent))
        assert response.status_code == 404

    def test_types_fall_back_to_known_list(self, client, agent, auth_header):
        response = client.get("/api/movements/types", headers=auth_header(agent))
        assert "Transfer" in response.get_json()["types"]


class TestDiscrepancyRoutes:
    """/api/discrepancies"""

    def test_create_and_resolve(self, client, asset, auditor, auth_header):
        headers = auth_header(auditor)
        response = client.post(
            "/api/discrepancies",
            json={"assetId": asset.id, "type": "Missing", "priority": "High"},
            headers=headers,
        )
        assert response.status_code == 201
        discrepancy_id = response.get_json()["discrepancy"]["id"]
        assert asset.has_discrepancy is True

        response = client.put(
            f"/api/discrepancies/{discrepancy_id}",
            json={"status": "Resolved", "resolution": "Found in storage"},
            headers=headers,
        )
        assert response.status_code == 200
        body = response.get_json()["discrepancy"]
        assert body["resolvedBy"] == auditor.id
        assert body["resolution"] == "Found in storage"
        assert asset.has_discrepancy is False

    def test_both_owners_is_400(self, client, asset, auditor, auth_header):
        response = client.post(
            "/api/discrepancies",
            json={"assetId": asset.id, "movementId": 1, "type": "Other"},
            headers=auth_header(auditor),
        )
        assert response.status_code == 400

    def test_agent_cannot_update(self, client, asset, agent, auth_header):
        row = client.post(
            "/api/discrepancies",
            json={"assetId": asset.id, "type": "Other"},
            headers=auth_header(agent),
        ).get_json()["discrepancy"]

        response = client.put(
            f"/api/discrepancies/{row['id']}",
            json={"status": "Closed"},
            headers=auth_header(agent),
        )
        assert response.status_code == 403

    def test_delete_is_admin_only(self, client, asset, auditor, admin, auth_header):
        row = client.post(
            "/api/discrepancies",
            json={"assetId": asset.id, "type": "Other"},
            headers=auth_header(auditor),
        ).get_json()["discrepancy"]

        response = client.delete(
            f"/api/discrepancies/{row['id']}", headers=auth_header(auditor)
        )
        assert response.status_code == 403

        response = client.delete(f"/api/discrepancies/{row['id']}", headers=auth_header(admin))
        assert response.status_code == 200
        assert Discrepancy.query.count() == 0
        assert asset.has_discrepancy is False

    def test_list_by_asset(self, client, asset, admin, auth_header):
        client.put(
            f"/api/assets/{asset.id}", json={"location": "Attic"}, headers=auth_header(admin)
        )

        response = client.get(f"/api/discrepancies/asset/{asset.id}", headers=auth_header(admin))
        body = response.get_json()
        assert body["totalItems"] == 1
        assert body["discrepancies"][0]["type"] == "Location"

    def test_reconcile_endpoint(self, client, asset, admin, agent, auth_header):
        asset.has_discrepancy = True

        response = client.post("/api/discrepancies/reconcile", headers=auth_header(agent))
        assert response.status_code == 403

        response = client.post("/api/discrepancies/reconcile", headers=auth_header(admin))
        assert response.status_code == 200
        assert response.get_json()["corrected"] == 1
        assert asset.has_discrepancy is False
