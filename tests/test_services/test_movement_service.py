"""
Tests for the movement lifecycle: transitions, authorization and the
single copy of the destination onto the asset.
"""

import pytest

from assettrack.errors import NotFoundError, PermissionDenied, ValidationError
from assettrack.extensions import db
from assettrack.models.discrepancy import Discrepancy
from assettrack.models.movement import APPROVED, COMPLETED, PENDING, REJECTED, Movement
from assettrack.services import movement_service


@pytest.fixture
def movement(asset, agent, ctx_for):
    """A Pending transfer of the asset to Room 303 / Bob, requested by ``agent``."""
    return movement_service.create_movement(
        {"asset_id": asset.id, "to_location": "Room 303", "to_custodian": "Bob"},
        ctx_for(agent),
    )


class TestCreateMovement:
    """Opening movement requests."""

    def test_defaults_come_from_asset(self, movement, agent):
        assert movement.status == PENDING
        assert movement.type == "Transfer"
        assert movement.from_location == "Room 101"
        assert movement.from_custodian == "Alice"
        assert movement.requester_id == agent.id
        assert movement.request_date is not None

    def test_unknown_asset_is_404(self, app, agent, ctx_for):  # pylint: disable=unused-argument
        with pytest.raises(NotFoundError, match="Asset not found"):
            movement_service.create_movement({"asset_id": 42}, ctx_for(agent))

    def test_asset_required(self, app, agent, ctx_for):  # pylint: disable=unused-argument
        with pytest.raises(ValidationError):
            movement_service.create_movement({}, ctx_for(agent))


class TestTransitions:
    """Only Pending -> Approved/Rejected and Approved -> Completed."""

    def test_approve_then_complete_moves_asset(self, movement, asset, auditor, ctx_for):
        approved, updated = movement_service.update_movement(
            movement.id, {"status": APPROVED}, ctx_for(auditor)
        )
        assert approved.status == APPROVED
        assert approved.approver_id == auditor.id
        assert approved.approval_date is not None
        assert updated is False
        assert asset.location == "Room 101"

        completed, updated = movement_service.update_movement(
            movement.id, {"status": COMPLETED}, ctx_for(auditor)
        )
        assert completed.status == COMPLETED
        assert completed.completion_date is not None
        assert updated is True
        assert asset.location == "Room 303"
        assert asset.custodian == "Bob"

    def test_completion_does_not_open_discrepancies(self, movement, auditor, ctx_for):
        ctx = ctx_for(auditor)
        movement_service.update_movement(movement.id, {"status": APPROVED}, ctx)
        movement_service.update_movement(movement.id, {"status": COMPLETED}, ctx)

        assert Discrepancy.query.count() == 0

    def test_rejection_leaves_approver_unset(self, movement, admin, ctx_for):
        rejected, _ = movement_service.update_movement(
            movement.id, {"status": REJECTED}, ctx_for(admin)
        )

        assert rejected.status == REJECTED
        assert rejected.approver_id is None
        assert rejected.approval_date is None

    def test_pending_cannot_jump_to_completed(self, movement, admin, ctx_for):
        with pytest.raises(ValidationError, match="from Pending to Completed"):
            movement_service.update_movement(
                movement.id, {"status": COMPLETED}, ctx_for(admin)
            )
        assert movement.status == PENDING

    def test_terminal_movement_cannot_change(self, movement, admin, ctx_for):
        movement_service.update_movement(movement.id, {"status": REJECTED}, ctx_for(admin))

        with pytest.raises(ValidationError, match="already Rejected"):
            movement_service.update_movement(
                movement.id, {"notes": "late edit"}, ctx_for(admin)
            )

    def test_unknown_status_rejected(self, movement, admin, ctx_for):
        with pytest.raises(ValidationError):
            movement_service.update_movement(movement.id, {"status": "Lost"}, ctx_for(admin))

    def test_edit_and_complete_in_one_call(self, movement, asset, admin, ctx_for):
        """Field edits are applied before the transition."""
        ctx = ctx_for(admin)
        movement_service.update_movement(movement.id, {"status": APPROVED}, ctx)

        movement_service.update_movement(
            movement.id, {"status": COMPLETED, "to_location": "Vault"}, ctx
        )

        assert asset.location == "Vault"


class TestAuthorization:
    """Who may edit, approve, reject and delete."""

    def test_stranger_cannot_update(self, movement, other_agent, ctx_for):
        with pytest.raises(PermissionDenied, match="Not authorized to update"):
            movement_service.update_movement(
                movement.id, {"notes": "mine now"}, ctx_for(other_agent)
            )
        assert movement.notes is None

    def test_requester_can_edit_but_not_approve(self, movement, agent, ctx_for):
        movement_service.update_movement(movement.id, {"reason": "Office move"}, ctx_for(agent))
        assert movement.reason == "Office move"

        with pytest.raises(PermissionDenied, match="Not authorized to approve"):
            movement_service.update_movement(
                movement.id, {"status": APPROVED}, ctx_for(agent)
            )
        assert movement.status == PENDING
        assert movement.approver_id is None

    def test_requester_can_withdraw_own_request(self, movement, agent, ctx_for):
        rejected, updated = movement_service.update_movement(
            movement.id, {"status": REJECTED}, ctx_for(agent)
        )

        assert rejected.status == REJECTED
        assert updated is False

    def test_requester_can_complete_approved(self, movement, agent, admin, ctx_for):
        movement_service.update_movement(movement.id, {"status": APPROVED}, ctx_for(admin))

        _, updated = movement_service.update_movement(
            movement.id, {"status": COMPLETED}, ctx_for(agent)
        )

        assert updated is True


class TestDeleteMovement:
    """Deletion tombstones Pending movements and hides them from lookups."""

    def test_requester_deletes_pending(self, movement, agent, ctx_for):
        movement_service.delete_movement(movement.id, ctx_for(agent))

        assert db.session.get(Movement, movement.id).deleted_at is not None
        with pytest.raises(NotFoundError):
            movement_service.get_movement(movement.id)
        assert movement_service.get_movements().total == 0

    def test_non_pending_is_400(self, movement, admin, ctx_for):
        movement_service.update_movement(movement.id, {"status": APPROVED}, ctx_for(admin))

        with pytest.raises(ValidationError, match="Only pending"):
            movement_service.delete_movement(movement.id, ctx_for(admin))

    def test_stranger_is_403(self, movement, other_agent, ctx_for):
        with pytest.raises(PermissionDenied):
            movement_service.delete_movement(movement.id, ctx_for(other_agent))

    def test_attached_discrepancy_does_not_block(self, movement, agent, ctx_for):
        db.session.add(Discrepancy(movement_id=movement.id, type="Other"))
        db.session.commit()

        movement_service.delete_movement(movement.id, ctx_for(agent))

        discrepancy = Discrepancy.query.one()
        assert discrepancy.movement_id == movement.id
        assert movement.deleted_at is not None

    def test_deleted_movement_leaves_asset_detail(self, movement, asset, agent, ctx_for):
        movement_service.delete_movement(movement.id, ctx_for(agent))
        assert asset.to_dict(detail=True)["movements"] == []
