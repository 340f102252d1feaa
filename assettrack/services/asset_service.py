"""
Asset service — asset CRUD, field scans, and distinct-value lookups.

Updates and scans route the tracked fields (location, custodian,
condition) through ``discrepancy_service.detect_asset_drift`` before the
new values are written, in the same transaction.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import or_

from assettrack.context import RequestContext
from assettrack.errors import NotFoundError, ValidationError
from assettrack.extensions import db
from assettrack.models.asset import ASSET_CONDITIONS, ASSET_STATUSES, Asset
from assettrack.models.site import Location, Site
from assettrack.services import (
    apply_fields,
    atomic,
    discrepancy_service,
    parse_date,
    parse_decimal,
    require_choice,
)

logger = logging.getLogger(__name__)

_FIELDS = (
    "asset_tag",
    "serial_number",
    "name",
    "description",
    "category",
    "model",
    "manufacturer",
    "purchase_date",
    "purchase_price",
    "current_value",
    "location",
    "site_id",
    "location_id",
    "custodian",
    "department",
    "status",
    "condition",
    "notes",
    "gps_latitude",
    "gps_longitude",
)


# -- Lookup ----------------------------------------------------------------


def _active():
    return Asset.query.filter(Asset.deleted_at.is_(None))


def get_asset(asset_id: int) -> Asset:
    """Return a non-deleted asset or raise ``NotFoundError``."""
    asset = db.session.get(Asset, asset_id)
    if asset is None or asset.deleted_at is not None:
        raise NotFoundError("Asset not found")
    return asset


def get_asset_by_tag(asset_tag: str) -> Asset:
    asset = _active().filter(Asset.asset_tag == asset_tag).first()
    if asset is None:
        raise NotFoundError("Asset not found")
    return asset


def _filtered_query(
    category: str | None = None,
    status: str | None = None,
    condition: str | None = None,
    location: str | None = None,
    department: str | None = None,
    custodian: str | None = None,
    site_id: int | None = None,
    has_discrepancy: bool | None = None,
    search: str | None = None,
):
    query = _active().order_by(Asset.created_at.desc(), Asset.id.desc())
    if category:
        query = query.filter(Asset.category == category)
    if status:
        query = query.filter(Asset.status == status)
    if condition:
        query = query.filter(Asset.condition == condition)
    if location:
        query = query.filter(Asset.location == location)
    if department:
        query = query.filter(Asset.department == department)
    if custodian:
        query = query.filter(Asset.custodian == custodian)
    if site_id is not None:
        query = query.filter(Asset.site_id == site_id)
    if has_discrepancy is not None:
        query = query.filter(Asset.has_discrepancy == has_discrepancy)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                Asset.name.ilike(pattern),
                Asset.asset_tag.ilike(pattern),
                Asset.serial_number.ilike(pattern),
            )
        )
    return query


def get_assets(page: int = 1, per_page: int = 10, **filters):
    """
    Return a paginated list of non-deleted assets, newest first.

    Filters: category, status, condition, location, department,
    custodian, site_id, has_discrepancy, search (name, tag, serial).
    """
    return _filtered_query(**filters).paginate(
        page=page, per_page=per_page, error_out=False
    )


def get_all_for_export(**filters) -> list[Asset]:
    """Unpaginated variant of ``get_assets`` for report exports."""
    return _filtered_query(**filters).all()


def get_categories() -> list[str]:
    """Distinct non-empty categories of non-deleted assets."""
    rows = (
        db.session.query(Asset.category)
        .filter(Asset.deleted_at.is_(None), Asset.category.isnot(None))
        .distinct()
        .order_by(Asset.category)
        .all()
    )
    return [row[0] for row in rows]


def get_locations() -> list[str]:
    """Distinct non-empty free-text locations of non-deleted assets."""
    rows = (
        db.session.query(Asset.location)
        .filter(Asset.deleted_at.is_(None), Asset.location.isnot(None))
        .distinct()
        .order_by(Asset.location)
        .all()
    )
    return [row[0] for row in rows]


# -- Validation ------------------------------------------------------------


def _clean(data: dict) -> dict:
    """Validate enums, parse typed fields, and check placement references."""
    for name in ("status", "condition"):
        if data.get(name) == "":
            data.pop(name)
    require_choice(data.get("status"), ASSET_STATUSES, "status")
    require_choice(data.get("condition"), ASSET_CONDITIONS, "condition")

    if "purchase_date" in data:
        data["purchase_date"] = parse_date(data["purchase_date"], "purchaseDate")
    for name in ("purchase_price", "current_value", "gps_latitude", "gps_longitude"):
        if name in data:
            data[name] = parse_decimal(data[name], name)

    if data.get("site_id") is not None and db.session.get(Site, data["site_id"]) is None:
        raise NotFoundError("Site not found")
    if data.get("location_id") is not None:
        location = db.session.get(Location, data["location_id"])
        if location is None:
            raise NotFoundError("Location not found")
        if data.get("site_id") is None:
            data["site_id"] = location.site_id
        elif location.site_id != data["site_id"]:
            raise ValidationError("Location does not belong to the given site")
    return data


def _check_unique(data: dict, exclude_id: int | None = None) -> None:
    """Tag and serial number are unique among non-deleted assets."""
    for column, key, label in (
        (Asset.asset_tag, "asset_tag", "tag"),
        (Asset.serial_number, "serial_number", "serial number"),
    ):
        value = data.get(key)
        if not value:
            continue
        query = _active().filter(column == value)
        if exclude_id is not None:
            query = query.filter(Asset.id != exclude_id)
        if query.first() is not None:
            raise ValidationError(f"Asset with this {label} already exists")


# -- Mutations -------------------------------------------------------------


def create_asset(data: dict, ctx: RequestContext) -> Asset:
    if not data.get("name"):
        raise ValidationError("Asset name is required.")
    data = _clean(data)
    _check_unique(data)

    asset = Asset(created_by=ctx.user_id)
    apply_fields(asset, data, _FIELDS)
    db.session.add(asset)
    db.session.commit()

    logger.info("Created asset %s (%s) by user %s", asset.id, asset.asset_tag, ctx.user_id)
    return asset


def update_asset(asset_id: int, data: dict, ctx: RequestContext) -> tuple[Asset, bool]:
    """
    Update an asset, opening discrepancies for changed tracked fields.

    Returns:
        The asset and whether any discrepancy was detected in this call.
    """
    asset = get_asset(asset_id)
    data = _clean(data)
    _check_unique(data, exclude_id=asset.id)

    with atomic():
        found = discrepancy_service.detect_asset_drift(asset, data, ctx)
        # Empty tracked values are ignored rather than clearing the field.
        for field in ("location", "custodian", "condition"):
            if field in data and not data[field]:
                data.pop(field)
        apply_fields(asset, data, _FIELDS)

    logger.info(
        "Updated asset %s by user %s (%d discrepancies)",
        asset.id,
        ctx.user_id,
        len(found),
    )
    return asset, bool(found)


def delete_asset(asset_id: int, ctx: RequestContext) -> None:
    """Tombstone an asset; it disappears from every listing."""
    asset = get_asset(asset_id)
    asset.deleted_at = datetime.now(timezone.utc)
    db.session.commit()
    logger.info("Deleted asset %s by user %s", asset.id, ctx.user_id)


def scan_asset(asset_tag: str, data: dict, ctx: RequestContext) -> tuple[Asset, bool]:
    """
    Record a field scan of an asset identified by tag.

    Only ``location`` is compared against the stored value. GPS
    coordinates are kept when the scan does not provide new ones.

    Returns:
        The asset and whether a location discrepancy was detected.
    """
    asset = get_asset_by_tag(asset_tag)
    latitude = parse_decimal(data.get("gps_latitude"), "gpsLatitude")
    longitude = parse_decimal(data.get("gps_longitude"), "gpsLongitude")

    with atomic():
        found = discrepancy_service.detect_asset_drift(
            asset,
            data,
            ctx,
            fields=("location",),
            description="Asset location discrepancy detected during scan",
        )
        if data.get("location"):
            asset.location = data["location"]
        if latitude is not None:
            asset.gps_latitude = latitude
        if longitude is not None:
            asset.gps_longitude = longitude
        asset.last_scanned_at = datetime.now(timezone.utc)

    logger.info("Scanned asset %s by user %s", asset.asset_tag, ctx.user_id)
    return asset, bool(found)


def snapshot(asset_id: int, **_kwargs) -> dict | None:
    asset = db.session.get(Asset, asset_id)
    return asset.to_dict() if asset and asset.deleted_at is None else None


def snapshot_by_tag(asset_tag: str, **_kwargs) -> dict | None:
    asset = _active().filter(Asset.asset_tag == asset_tag).first()
    return asset.to_dict() if asset else None
