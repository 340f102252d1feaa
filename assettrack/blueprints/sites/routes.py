"""
Routes for the sites blueprint.
"""

from flask import request

from assettrack.blueprints.helpers import arg_bool, page_args, paginated, payload
from assettrack.blueprints.sites import bp
from assettrack.decorators import audited, authenticated, permission_required
from assettrack.services import site_service


@bp.route("")
@authenticated
@permission_required("sites.read")
def list_sites(ctx):  # pylint: disable=unused-argument
    page, limit = page_args()
    sites = site_service.get_sites(
        page=page,
        per_page=limit,
        search=request.args.get("search"),
        site_type=request.args.get("type"),
        is_active=arg_bool("isActive"),
    )
    return paginated(sites, "sites")


@bp.route("/types")
@authenticated
@permission_required("sites.read")
def site_types(ctx):  # pylint: disable=unused-argument
    return {"types": site_service.get_site_types()}


@bp.route("/<int:site_id>")
@authenticated
@permission_required("sites.read")
def get_site(ctx, site_id):  # pylint: disable=unused-argument
    return site_service.get_site(site_id).to_dict()


@bp.route("", methods=["POST"])
@authenticated
@permission_required("sites.write")
@audited("Site", "CREATE", key="site")
def create_site(ctx):  # pylint: disable=unused-argument
    site = site_service.create_site(payload())
    return {"message": "Site created successfully", "site": site.to_dict()}, 201


@bp.route("/<int:site_id>", methods=["PUT"])
@authenticated
@permission_required("sites.write")
@audited("Site", "UPDATE", key="site", snapshot=site_service.snapshot)
def update_site(ctx, site_id):  # pylint: disable=unused-argument
    site = site_service.update_site(site_id, payload())
    return {"message": "Site updated successfully", "site": site.to_dict()}


@bp.route("/<int:site_id>", methods=["DELETE"])
@authenticated
@permission_required("sites.delete")
@audited("Site", "DELETE", snapshot=site_service.snapshot)
def delete_site(ctx, site_id):  # pylint: disable=unused-argument
    site_service.delete_site(site_id)
    return {"message": "Site deleted successfully"}
