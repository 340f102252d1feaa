"""
Site service — CRUD for physical sites.

A site cannot be deleted while any asset or location still references it.
"""

import logging

from sqlalchemy import or_

from assettrack.errors import NotFoundError, ValidationError
from assettrack.extensions import db
from assettrack.models.asset import Asset
from assettrack.models.site import SITE_TYPES, Location, Site
from assettrack.services import apply_fields, parse_decimal, require_choice

logger = logging.getLogger(__name__)

_FIELDS = (
    "name",
    "code",
    "type",
    "address",
    "city",
    "state",
    "country",
    "postal_code",
    "latitude",
    "longitude",
    "contact_person",
    "contact_email",
    "contact_phone",
    "description",
    "is_active",
)


def get_sites(
    page: int = 1,
    per_page: int = 10,
    search: str | None = None,
    site_type: str | None = None,
    is_active: bool | None = None,
):
    """Return a paginated list of sites ordered by name."""
    query = Site.query.order_by(Site.name)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                Site.name.ilike(pattern),
                Site.code.ilike(pattern),
                Site.city.ilike(pattern),
                Site.address.ilike(pattern),
            )
        )
    if site_type:
        query = query.filter(Site.type == site_type)
    if is_active is not None:
        query = query.filter(Site.is_active == is_active)
    return query.paginate(page=page, per_page=per_page, error_out=False)


def get_site(site_id: int) -> Site:
    site = db.session.get(Site, site_id)
    if site is None:
        raise NotFoundError("Site not found")
    return site


def get_site_types() -> list[str]:
    return list(SITE_TYPES)


def _clean(data: dict) -> dict:
    require_choice(data.get("type"), SITE_TYPES, "site type")
    for name in ("latitude", "longitude"):
        if name in data:
            data[name] = parse_decimal(data[name], name)
    return data


def _check_code(code: str, exclude_id: int | None = None) -> None:
    query = Site.query.filter(Site.code == code)
    if exclude_id is not None:
        query = query.filter(Site.id != exclude_id)
    if query.first() is not None:
        raise ValidationError("Site code already exists")


def create_site(data: dict) -> Site:
    if not data.get("name") or not data.get("code"):
        raise ValidationError("Site name and code are required.")
    data = _clean(data)
    _check_code(data["code"])

    site = Site()
    apply_fields(site, data, _FIELDS)
    db.session.add(site)
    db.session.commit()
    logger.info("Created site %s", site.code)
    return site


def update_site(site_id: int, data: dict) -> Site:
    site = get_site(site_id)
    data = _clean(data)
    if data.get("code") and data["code"] != site.code:
        _check_code(data["code"], exclude_id=site.id)
    apply_fields(site, data, _FIELDS)
    db.session.commit()
    logger.info("Updated site %s", site.code)
    return site


def delete_site(site_id: int) -> None:
    """Delete a site with no assets and no locations."""
    site = get_site(site_id)

    asset_count = Asset.query.filter(Asset.site_id == site.id).count()
    if asset_count:
        raise ValidationError(
            f"Cannot delete site. It has {asset_count} assets assigned to it."
        )
    location_count = Location.query.filter_by(site_id=site.id).count()
    if location_count:
        raise ValidationError(f"Cannot delete site. It has {location_count} locations.")

    db.session.delete(site)
    db.session.commit()
    logger.info("Deleted site %s", site.code)


def snapshot(site_id: int, **_kwargs) -> dict | None:
    site = db.session.get(Site, site_id)
    return site.to_dict() if site else None
