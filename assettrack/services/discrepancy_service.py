"""
Discrepancy service — drift detection, manual findings, resolution
accounting, and reconciliation of the ``has_discrepancy`` flags.

Flag maintenance
----------------
Assets and movements carry a denormalised ``has_discrepancy`` flag. It
is maintained incrementally:

  - detection and manual creation set it,
  - resolving/closing a discrepancy clears it when no other unsettled
    discrepancy remains for the owner,
  - deleting a discrepancy clears it when no other discrepancy at all
    remains for the owner.

Each step assumes the flag was correct beforehand. Writes that bypass
this module (bulk SQL, manual fixes) can leave it stale, so
``reconcile_flags`` recomputes every flag from the discrepancy table.
It runs from ``flask reconcile-discrepancies`` or the admin endpoint.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import func

from assettrack.context import RequestContext
from assettrack.errors import NotFoundError, ValidationError
from assettrack.extensions import db
from assettrack.models.asset import Asset
from assettrack.models.discrepancy import (
    DISCREPANCY_STATUSES,
    DISCREPANCY_TYPES,
    OPEN,
    PRIORITIES,
    SETTLED_STATUSES,
    Discrepancy,
)
from assettrack.models.movement import Movement
from assettrack.services import atomic, require_choice

logger = logging.getLogger(__name__)

# Field name -> (discrepancy type, description).
_DRIFT_RULES = {
    "location": ("Location", "Asset location has changed"),
    "custodian": ("Custodian", "Asset custodian has changed"),
    "condition": ("Condition", "Asset condition has changed"),
}

_UPDATABLE_FIELDS = (
    "type",
    "description",
    "expected_value",
    "actual_value",
    "priority",
    "resolution",
)


# =========================================================================
# Detection
# =========================================================================


def detect_asset_drift(
    asset: Asset,
    changes: dict,
    ctx: RequestContext,
    fields: tuple[str, ...] = ("location", "custodian", "condition"),
    description: str | None = None,
) -> list[Discrepancy]:
    """
    Open one discrepancy per tracked field whose incoming value differs.

    Must be called *before* the new values are applied to ``asset``.
    Adds rows to the session without committing; the caller owns the
    transaction. Sets ``asset.has_discrepancy`` when anything was found
    and never clears it.

    Args:
        asset:       The stored asset.
        changes:     Incoming values keyed by attribute name.
        ctx:         Acting user, recorded as ``detected_by``.
        fields:      Subset of tracked fields to compare (scan uses
                     location only).
        description: Overrides the per-field description.

    Returns:
        The new, unflushed ``Discrepancy`` rows.
    """
    now = datetime.now(timezone.utc)
    found: list[Discrepancy] = []

    for field in fields:
        incoming = changes.get(field)
        if not incoming or incoming == getattr(asset, field):
            continue
        disc_type, default_description = _DRIFT_RULES[field]
        discrepancy = Discrepancy(
            asset_id=asset.id,
            type=disc_type,
            description=description or default_description,
            expected_value=getattr(asset, field),
            actual_value=incoming,
            status=OPEN,
            detected_by=ctx.user_id,
            detected_at=now,
        )
        db.session.add(discrepancy)
        found.append(discrepancy)

    asset.has_discrepancy = bool(asset.has_discrepancy) or bool(found)

    if found:
        logger.info(
            "Detected %d discrepancies on asset %s: %s",
            len(found),
            asset.id,
            ", ".join(d.type for d in found),
        )
    return found


# =========================================================================
# Queries
# =========================================================================


def get_discrepancies(
    page: int = 1,
    per_page: int = 10,
    disc_type: str | None = None,
    status: str | None = None,
    priority: str | None = None,
    asset_id: int | None = None,
    movement_id: int | None = None,
    detected_by: int | None = None,
    resolved_by: int | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
):
    """Return a paginated list of discrepancies, newest first."""
    return _filtered_query(
        disc_type=disc_type,
        status=status,
        priority=priority,
        asset_id=asset_id,
        movement_id=movement_id,
        detected_by=detected_by,
        resolved_by=resolved_by,
        start_date=start_date,
        end_date=end_date,
    ).paginate(page=page, per_page=per_page, error_out=False)


def _filtered_query(
    disc_type=None,
    status=None,
    priority=None,
    asset_id=None,
    movement_id=None,
    detected_by=None,
    resolved_by=None,
    start_date=None,
    end_date=None,
):
    query = Discrepancy.query.order_by(
        Discrepancy.detected_at.desc(), Discrepancy.id.desc()
    )
    if disc_type:
        query = query.filter(Discrepancy.type == disc_type)
    if status:
        query = query.filter(Discrepancy.status == status)
    if priority:
        query = query.filter(Discrepancy.priority == priority)
    if asset_id is not None:
        query = query.filter(Discrepancy.asset_id == asset_id)
    if movement_id is not None:
        query = query.filter(Discrepancy.movement_id == movement_id)
    if detected_by is not None:
        query = query.filter(Discrepancy.detected_by == detected_by)
    if resolved_by is not None:
        query = query.filter(Discrepancy.resolved_by == resolved_by)
    if start_date:
        query = query.filter(Discrepancy.detected_at >= start_date)
    if end_date:
        query = query.filter(Discrepancy.detected_at <= end_date)
    return query


def get_all_for_export(**filters) -> list[Discrepancy]:
    """Unpaginated variant of ``get_discrepancies`` for report exports."""
    return _filtered_query(**filters).all()


def get_discrepancy(discrepancy_id: int) -> Discrepancy:
    discrepancy = db.session.get(Discrepancy, discrepancy_id)
    if discrepancy is None:
        raise NotFoundError("Discrepancy not found")
    return discrepancy


def get_discrepancy_types() -> list[str]:
    """Distinct types in use, falling back to the known list when empty."""
    rows = (
        db.session.query(Discrepancy.type).distinct().order_by(Discrepancy.type).all()
    )
    return [row[0] for row in rows] or list(DISCREPANCY_TYPES)


# =========================================================================
# Manual creation
# =========================================================================


def create_discrepancy(data: dict, ctx: RequestContext) -> Discrepancy:
    """
    Record a finding against exactly one asset or movement.

    The insert and the owner's flag update commit together.

    Raises:
        ValidationError: Neither or both owners given, missing type, or an
                         unknown type/status/priority.
        NotFoundError:   The referenced asset or movement does not exist.
    """
    asset_id = data.get("asset_id")
    movement_id = data.get("movement_id")
    if asset_id is None and movement_id is None:
        raise ValidationError("Either assetId or movementId must be provided")
    if asset_id is not None and movement_id is not None:
        raise ValidationError("Provide either assetId or movementId, not both")
    if not data.get("type"):
        raise ValidationError("Discrepancy type is required.")
    require_choice(data["type"], DISCREPANCY_TYPES, "discrepancy type")
    require_choice(data.get("priority"), PRIORITIES, "priority")
    require_choice(data.get("status"), DISCREPANCY_STATUSES, "status")

    with atomic():
        owner = _load_owner(asset_id, movement_id)
        discrepancy = Discrepancy(
            asset_id=asset_id,
            movement_id=movement_id,
            type=data["type"],
            description=data.get("description"),
            expected_value=data.get("expected_value"),
            actual_value=data.get("actual_value"),
            status=data.get("status") or OPEN,
            priority=data.get("priority") or "Medium",
            detected_by=ctx.user_id,
            detected_at=datetime.now(timezone.utc),
        )
        db.session.add(discrepancy)
        owner.has_discrepancy = True

    logger.info(
        "Created %s discrepancy %s on %s %s",
        discrepancy.type,
        discrepancy.id,
        "asset" if asset_id is not None else "movement",
        asset_id if asset_id is not None else movement_id,
    )
    return discrepancy


def _load_owner(asset_id: int | None, movement_id: int | None):
    if asset_id is not None:
        asset = db.session.get(Asset, asset_id)
        if asset is None or asset.deleted_at is not None:
            raise NotFoundError("Asset not found")
        return asset
    movement = db.session.get(Movement, movement_id)
    if movement is None or movement.deleted_at is not None:
        raise NotFoundError("Movement not found")
    return movement


# =========================================================================
# Resolution
# =========================================================================


def update_discrepancy(discrepancy_id: int, data: dict, ctx: RequestContext) -> Discrepancy:
    """
    Update a discrepancy and settle its owner's flag if appropriate.

    A status change into Resolved or Closed stamps ``resolved_at`` and
    ``resolved_by``. The owner's flag is then cleared if no *other*
    unsettled discrepancy remains for it.
    """
    discrepancy = get_discrepancy(discrepancy_id)
    require_choice(data.get("type"), DISCREPANCY_TYPES, "discrepancy type")
    require_choice(data.get("priority"), PRIORITIES, "priority")
    require_choice(data.get("status"), DISCREPANCY_STATUSES, "status")

    with atomic():
        for name in _UPDATABLE_FIELDS:
            if data.get(name) is not None:
                setattr(discrepancy, name, data[name])

        new_status = data.get("status")
        if new_status and new_status != discrepancy.status:
            was_settled = discrepancy.is_settled
            discrepancy.status = new_status

            if new_status in SETTLED_STATUSES:
                discrepancy.resolved_at = datetime.now(timezone.utc)
                discrepancy.resolved_by = ctx.user_id
                if _count_siblings(discrepancy, unsettled_only=True) == 0:
                    discrepancy.owner.has_discrepancy = False
            elif was_settled:
                # Reopened: the owner has an unsettled finding again.
                discrepancy.owner.has_discrepancy = True

    logger.info(
        "Updated discrepancy %s (status %s) by user %s",
        discrepancy.id,
        discrepancy.status,
        ctx.user_id,
    )
    return discrepancy


def delete_discrepancy(discrepancy_id: int, ctx: RequestContext) -> None:
    """
    Delete a discrepancy; clear the owner's flag if it was the last one.

    Unlike resolution, *any* remaining discrepancy (settled or not) keeps
    the flag set.
    """
    discrepancy = get_discrepancy(discrepancy_id)

    with atomic():
        owner = discrepancy.owner
        if _count_siblings(discrepancy, unsettled_only=False) == 0 and owner is not None:
            owner.has_discrepancy = False
        db.session.delete(discrepancy)

    logger.info("Deleted discrepancy %s by user %s", discrepancy_id, ctx.user_id)


def _count_siblings(discrepancy: Discrepancy, unsettled_only: bool) -> int:
    """Count other discrepancies with the same owner."""
    query = Discrepancy.query.filter(Discrepancy.id != discrepancy.id)
    if discrepancy.asset_id is not None:
        query = query.filter(Discrepancy.asset_id == discrepancy.asset_id)
    else:
        query = query.filter(Discrepancy.movement_id == discrepancy.movement_id)
    if unsettled_only:
        query = query.filter(Discrepancy.status.notin_(SETTLED_STATUSES))
    return query.count()


# =========================================================================
# Reconciliation
# =========================================================================


def reconcile_flags() -> int:
    """
    Recompute every asset and movement flag from the discrepancy table.

    An owner is flagged iff it has at least one discrepancy whose status
    is neither Resolved nor Closed.

    Returns:
        Number of rows whose flag was corrected.
    """
    corrected = 0
    with atomic():
        for model, column in (
            (Asset, Discrepancy.asset_id),
            (Movement, Discrepancy.movement_id),
        ):
            flagged_ids = {
                row[0]
                for row in db.session.query(column)
                .filter(column.isnot(None), Discrepancy.status.notin_(SETTLED_STATUSES))
                .group_by(column)
                .having(func.count(Discrepancy.id) > 0)
                .all()
            }
            for owner in model.query.all():
                expected = owner.id in flagged_ids
                if bool(owner.has_discrepancy) != expected:
                    owner.has_discrepancy = expected
                    corrected += 1

    if corrected:
        logger.warning("Reconciliation corrected %d discrepancy flags", corrected)
    else:
        logger.info("Reconciliation found all discrepancy flags consistent")
    return corrected


def snapshot(discrepancy_id: int, **_kwargs) -> dict | None:
    discrepancy = db.session.get(Discrepancy, discrepancy_id)
    return discrepancy.to_dict() if discrepancy else None
