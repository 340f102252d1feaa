"""
Routes for the locations blueprint.

Clients may send the parent as ``parentId`` or ``parentLocationId``.
"""

from flask import request

from assettrack.blueprints.helpers import arg_bool, arg_int, page_args, paginated, payload
from assettrack.blueprints.locations import bp
from assettrack.decorators import audited, authenticated, permission_required
from assettrack.services import location_service

_ALIASES = {"parent_location_id": "parent_id"}


@bp.route("")
@authenticated
@permission_required("locations.read")
def list_locations(ctx):  # pylint: disable=unused-argument
    page, limit = page_args()
    locations = location_service.get_locations(
        page=page,
        per_page=limit,
        site_id=arg_int("siteId"),
        parent_id=arg_int("parentId"),
        location_type=request.args.get("type"),
        is_active=arg_bool("isActive"),
        search=request.args.get("search"),
    )
    return paginated(locations, "locations")


@bp.route("/types")
@authenticated
@permission_required("locations.read")
def location_types(ctx):  # pylint: disable=unused-argument
    return {"types": location_service.get_location_types()}


@bp.route("/site/<int:site_id>")
@authenticated
@permission_required("locations.read")
def locations_by_site(ctx, site_id):  # pylint: disable=unused-argument
    locations = location_service.get_locations_by_site(site_id)
    return {"locations": [location.to_dict() for location in locations]}


@bp.route("/<int:location_id>")
@authenticated
@permission_required("locations.read")
def get_location(ctx, location_id):  # pylint: disable=unused-argument
    return location_service.get_location(location_id).to_dict()


@bp.route("", methods=["POST"])
@authenticated
@permission_required("locations.write")
@audited("Location", "CREATE", key="location")
def create_location(ctx):  # pylint: disable=unused-argument
    location = location_service.create_location(payload(aliases=_ALIASES))
    return {
        "message": "Location created successfully",
        "location": location.to_dict(),
    }, 201


@bp.route("/<int:location_id>", methods=["PUT"])
@authenticated
@permission_required("locations.write")
@audited("Location", "UPDATE", key="location", snapshot=location_service.snapshot)
def update_location(ctx, location_id):  # pylint: disable=unused-argument
    location = location_service.update_location(location_id, payload(aliases=_ALIASES))
    return {"message": "Location updated successfully", "location": location.to_dict()}


@bp.route("/<int:location_id>", methods=["DELETE"])
@authenticated
@permission_required("locations.delete")
@audited("Location", "DELETE", snapshot=location_service.snapshot)
def delete_location(ctx, location_id):  # pylint: disable=unused-argument
    location_service.delete_location(location_id)
    return {"message": "Location deleted successfully"}
