"""
Movement service — the request / approve / complete lifecycle for moving
an asset between locations and custodians.

Who may do what:

  ====================  ==========================================
  Operation             Allowed for
  ====================  ==========================================
  create                ``movements.create`` (checked by the route)
  update any field      requester, Admin, ``movements.approve``
  -> Approved           Admin, ``movements.approve``
  delete (Pending only) requester, Admin
  ====================  ==========================================

Rejecting is open to anyone who may update the movement, so a requester
can withdraw their own request. Only approval stamps ``approver_id`` and
``approval_date``.

There is no optimistic locking: two concurrent approvals both succeed
and the later one's approver stamp wins.
"""

import logging
from datetime import datetime, timezone

from assettrack.context import RequestContext
from assettrack.errors import NotFoundError, PermissionDenied, ValidationError
from assettrack.extensions import db
from assettrack.models.asset import Asset
from assettrack.models.movement import (
    APPROVED,
    COMPLETED,
    MOVEMENT_STATUSES,
    MOVEMENT_TYPES,
    PENDING,
    TRANSITIONS,
    Movement,
)
from assettrack.policies import ADMIN_ONLY, CAN_APPROVE_MOVEMENTS, enforce
from assettrack.services import atomic, require_choice

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = (
    "type",
    "from_location",
    "to_location",
    "from_custodian",
    "to_custodian",
    "reason",
    "notes",
)


# -- Lookup ----------------------------------------------------------------


def get_movements(
    page: int = 1,
    per_page: int = 10,
    movement_type: str | None = None,
    status: str | None = None,
    asset_id: int | None = None,
    requester_id: int | None = None,
    approver_id: int | None = None,
    has_discrepancy: bool | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
):
    """Return a paginated list of movements, most recent request first."""
    query = Movement.query.filter(Movement.deleted_at.is_(None)).order_by(
        Movement.request_date.desc(), Movement.id.desc()
    )
    if movement_type:
        query = query.filter(Movement.type == movement_type)
    if status:
        query = query.filter(Movement.status == status)
    if asset_id is not None:
        query = query.filter(Movement.asset_id == asset_id)
    if requester_id is not None:
        query = query.filter(Movement.requester_id == requester_id)
    if approver_id is not None:
        query = query.filter(Movement.approver_id == approver_id)
    if has_discrepancy is not None:
        query = query.filter(Movement.has_discrepancy == has_discrepancy)
    if start_date:
        query = query.filter(Movement.request_date >= start_date)
    if end_date:
        query = query.filter(Movement.request_date <= end_date)
    return query.paginate(page=page, per_page=per_page, error_out=False)


def get_movement(movement_id: int) -> Movement:
    movement = db.session.get(Movement, movement_id)
    if movement is None or movement.deleted_at is not None:
        raise NotFoundError("Movement not found")
    return movement


def get_movement_types() -> list[str]:
    """Distinct types in use, falling back to the known list when empty."""
    rows = (
        db.session.query(Movement.type)
        .filter(Movement.deleted_at.is_(None))
        .distinct()
        .order_by(Movement.type)
        .all()
    )
    return [row[0] for row in rows] or list(MOVEMENT_TYPES)


# -- Lifecycle -------------------------------------------------------------


def create_movement(data: dict, ctx: RequestContext) -> Movement:
    """
    Open a Pending movement request for an asset.

    ``from_location`` / ``from_custodian`` default to the asset's current
    placement.
    """
    if data.get("asset_id") is None:
        raise ValidationError("assetId is required.")
    require_choice(data.get("type"), MOVEMENT_TYPES, "movement type")

    asset = db.session.get(Asset, data["asset_id"])
    if asset is None or asset.deleted_at is not None:
        raise NotFoundError("Asset not found")

    with atomic():
        movement = Movement(
            asset_id=asset.id,
            type=data.get("type") or "Transfer",
            from_location=data.get("from_location") or asset.location,
            to_location=data.get("to_location"),
            from_custodian=data.get("from_custodian") or asset.custodian,
            to_custodian=data.get("to_custodian"),
            reason=data.get("reason"),
            notes=data.get("notes"),
            status=PENDING,
            request_date=datetime.now(timezone.utc),
            requester_id=ctx.user_id,
        )
        db.session.add(movement)

    logger.info(
        "Movement %s requested for asset %s by user %s",
        movement.id,
        asset.id,
        ctx.user_id,
    )
    return movement


def update_movement(movement_id: int, data: dict, ctx: RequestContext) -> tuple[Movement, bool]:
    """
    Edit a movement and/or advance its status.

    Field edits are applied before the status change, so a request that
    sets ``to_location`` and completes in one call moves the asset to the
    new destination.

    Returns:
        The movement and whether the asset's placement was updated
        (True only on the transition into Completed).

    Raises:
        NotFoundError:    No such movement.
        PermissionDenied: Caller is neither requester, Admin nor approver,
                          or approves without approval rights.
        ValidationError:  Terminal movement, unknown status, or a
                          transition the lifecycle does not allow.
    """
    movement = get_movement(movement_id)

    is_requester = movement.requester_id == ctx.user_id
    can_decide = (ADMIN_ONLY | CAN_APPROVE_MOVEMENTS).allows(ctx)
    if not (is_requester or can_decide):
        logger.warning(
            "User %s may not update movement %s (requester %s)",
            ctx.user_id,
            movement.id,
            movement.requester_id,
        )
        raise PermissionDenied("Not authorized to update this movement")

    if movement.is_terminal:
        raise ValidationError(f"Movement is already {movement.status} and cannot be changed")

    new_status = data.get("status")
    require_choice(new_status, MOVEMENT_STATUSES, "movement status")
    require_choice(data.get("type"), MOVEMENT_TYPES, "movement type")
    transition = new_status if new_status and new_status != movement.status else None

    if transition is not None:
        if transition not in TRANSITIONS.get(movement.status, ()):
            raise ValidationError(
                f"Cannot change movement status from {movement.status} to {transition}"
            )
        if transition == APPROVED:
            enforce(
                ADMIN_ONLY | CAN_APPROVE_MOVEMENTS,
                ctx,
                message="Not authorized to approve movements",
            )

    asset_updated = False
    now = datetime.now(timezone.utc)
    with atomic():
        for name in _EDITABLE_FIELDS:
            if data.get(name):
                setattr(movement, name, data[name])

        if transition == APPROVED:
            movement.approver_id = ctx.user_id
            movement.approval_date = now
        elif transition == COMPLETED:
            movement.completion_date = now
            asset_updated = _apply_to_asset(movement)

        if transition is not None:
            movement.status = transition

    logger.info(
        "Updated movement %s (status %s) by user %s",
        movement.id,
        movement.status,
        ctx.user_id,
    )
    return movement, asset_updated


def _apply_to_asset(movement: Movement) -> bool:
    """Copy the destination onto the asset. Empty targets keep current values."""
    asset = movement.asset
    if asset is None:
        return False
    asset.location = movement.to_location or asset.location
    asset.custodian = movement.to_custodian or asset.custodian
    return True


def delete_movement(movement_id: int, ctx: RequestContext) -> None:
    """
    Tombstone a Pending movement; only its requester or an Admin may.

    Attached photos and discrepancies are kept and still reference it.
    """
    movement = get_movement(movement_id)

    if movement.status != PENDING:
        raise ValidationError("Only pending movements can be deleted")
    if movement.requester_id != ctx.user_id and not ADMIN_ONLY.allows(ctx):
        raise PermissionDenied("Not authorized to delete this movement")

    with atomic():
        movement.deleted_at = datetime.now(timezone.utc)

    logger.info("Deleted movement %s by user %s", movement_id, ctx.user_id)


def snapshot(movement_id: int, **_kwargs) -> dict | None:
    movement = db.session.get(Movement, movement_id)
    return movement.to_dict() if movement and movement.deleted_at is None else None
