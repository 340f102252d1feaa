"""
Location service — CRUD for the location tree inside each site.

Rules:
  - ``code`` is unique within a site.
  - A parent location must belong to the same site.
  - Re-parenting may not create a cycle.
  - A location with child locations or assets cannot be deleted.
"""

import logging

from sqlalchemy import or_

from assettrack.errors import NotFoundError, ValidationError
from assettrack.extensions import db
from assettrack.models.asset import Asset
from assettrack.models.site import LOCATION_TYPES, Location, Site
from assettrack.services import apply_fields, require_choice

logger = logging.getLogger(__name__)

_FIELDS = (
    "name",
    "code",
    "type",
    "site_id",
    "parent_id",
    "floor",
    "capacity",
    "description",
    "is_active",
)


def get_locations(
    page: int = 1,
    per_page: int = 10,
    site_id: int | None = None,
    parent_id: int | None = None,
    location_type: str | None = None,
    is_active: bool | None = None,
    search: str | None = None,
):
    """Return a paginated list of locations ordered by name."""
    query = Location.query.order_by(Location.name)
    if site_id is not None:
        query = query.filter(Location.site_id == site_id)
    if parent_id is not None:
        query = query.filter(Location.parent_id == parent_id)
    if location_type:
        query = query.filter(Location.type == location_type)
    if is_active is not None:
        query = query.filter(Location.is_active == is_active)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                Location.name.ilike(pattern),
                Location.code.ilike(pattern),
                Location.floor.ilike(pattern),
            )
        )
    return query.paginate(page=page, per_page=per_page, error_out=False)


def get_location(location_id: int) -> Location:
    location = db.session.get(Location, location_id)
    if location is None:
        raise NotFoundError("Location not found")
    return location


def get_locations_by_site(site_id: int) -> list[Location]:
    """Return every active location of a site."""
    if db.session.get(Site, site_id) is None:
        raise NotFoundError("Site not found")
    return (
        Location.query.filter_by(site_id=site_id, is_active=True)
        .order_by(Location.name)
        .all()
    )


def get_location_types() -> list[str]:
    return list(LOCATION_TYPES)


def _check_code(site_id: int, code: str, exclude_id: int | None = None) -> None:
    query = Location.query.filter(Location.site_id == site_id, Location.code == code)
    if exclude_id is not None:
        query = query.filter(Location.id != exclude_id)
    if query.first() is not None:
        raise ValidationError("Location code already exists in this site")


def _check_parent(site_id: int, parent_id: int | None, location_id: int | None = None) -> None:
    if parent_id is None:
        return
    parent = db.session.get(Location, parent_id)
    if parent is None or parent.site_id != site_id:
        raise ValidationError("Parent location not found or not in the same site")
    if location_id is not None and (
        parent.id == location_id or location_id in parent.ancestor_ids()
    ):
        raise ValidationError("A location cannot be nested under itself or its descendants")


def create_location(data: dict) -> Location:
    if not data.get("name") or not data.get("code") or data.get("site_id") is None:
        raise ValidationError("Location name, code and siteId are required.")
    require_choice(data.get("type"), LOCATION_TYPES, "location type")
    if db.session.get(Site, data["site_id"]) is None:
        raise NotFoundError("Site not found")

    _check_code(data["site_id"], data["code"])
    _check_parent(data["site_id"], data.get("parent_id"))

    location = Location()
    apply_fields(location, data, _FIELDS)
    db.session.add(location)
    db.session.commit()
    logger.info("Created location %s in site %s", location.code, location.site_id)
    return location


def update_location(location_id: int, data: dict) -> Location:
    location = get_location(location_id)
    require_choice(data.get("type"), LOCATION_TYPES, "location type")

    site_id = data.get("site_id", location.site_id)
    if site_id != location.site_id:
        if db.session.get(Site, site_id) is None:
            raise NotFoundError("Site not found")
        if location.children.count():
            raise ValidationError("Cannot move a location with child locations to another site")

    code = data.get("code", location.code)
    if code != location.code or site_id != location.site_id:
        _check_code(site_id, code, exclude_id=location.id)

    parent_id = data.get("parent_id", location.parent_id)
    _check_parent(site_id, parent_id, location_id=location.id)

    apply_fields(location, data, _FIELDS)
    db.session.commit()
    logger.info("Updated location %s", location.id)
    return location


def delete_location(location_id: int) -> None:
    location = get_location(location_id)

    asset_count = Asset.query.filter(Asset.location_id == location.id).count()
    if asset_count:
        raise ValidationError(
            f"Cannot delete location. It has {asset_count} assets assigned to it."
        )
    child_count = location.children.count()
    if child_count:
        raise ValidationError(
            f"Cannot delete location. It has {child_count} child locations."
        )

    db.session.delete(location)
    db.session.commit()
    logger.info("Deleted location %s", location.id)


def snapshot(location_id: int, **_kwargs) -> dict | None:
    location = db.session.get(Location, location_id)
    return location.to_dict() if location else None
