"""
Routes for the assets blueprint.

Updates and scans compare incoming values with the stored asset and open
discrepancies for drift; the response reports whether any were found.
"""

from flask import request

from assettrack.blueprints.helpers import arg_bool, arg_int, page_args, paginated, payload
from assettrack.blueprints.assets import bp
from assettrack.decorators import audited, authenticated, permission_required, role_required
from assettrack.models.user import ADMIN_ROLE
from assettrack.services import asset_service


def asset_filters() -> dict:
    """Asset list filters from the query string; shared with reports."""
    return {
        "category": request.args.get("category"),
        "status": request.args.get("status"),
        "condition": request.args.get("condition"),
        "location": request.args.get("location"),
        "department": request.args.get("department"),
        "custodian": request.args.get("custodian"),
        "site_id": arg_int("siteId"),
        "has_discrepancy": arg_bool("hasDiscrepancy"),
        "search": request.args.get("search"),
    }


@bp.route("")
@authenticated
def list_assets(ctx):  # pylint: disable=unused-argument
    page, limit = page_args()
    assets = asset_service.get_assets(page=page, per_page=limit, **asset_filters())
    return paginated(assets, "assets")


@bp.route("/categories")
@authenticated
def asset_categories(ctx):  # pylint: disable=unused-argument
    return {"categories": asset_service.get_categories()}


@bp.route("/locations")
@authenticated
def asset_locations(ctx):  # pylint: disable=unused-argument
    return {"locations": asset_service.get_locations()}


@bp.route("/<int:asset_id>")
@authenticated
def get_asset(ctx, asset_id):  # pylint: disable=unused-argument
    """Asset with its movements, photos and discrepancies."""
    return asset_service.get_asset(asset_id).to_dict(detail=True)


@bp.route("", methods=["POST"])
@authenticated
@permission_required("assets.create")
@audited("Asset", "CREATE", key="asset")
def create_asset(ctx):
    asset = asset_service.create_asset(payload(), ctx)
    return {"message": "Asset created successfully", "asset": asset.to_dict()}, 201


@bp.route("/<int:asset_id>", methods=["PUT"])
@authenticated
@permission_required("assets.update")
@audited("Asset", "UPDATE", key="asset", snapshot=asset_service.snapshot)
def update_asset(ctx, asset_id):
    asset, detected = asset_service.update_asset(asset_id, payload(), ctx)
    return {
        "message": "Asset updated successfully",
        "asset": asset.to_dict(),
        "discrepanciesDetected": detected,
    }


@bp.route("/<int:asset_id>", methods=["DELETE"])
@authenticated
@role_required(ADMIN_ROLE)
@audited("Asset", "DELETE", snapshot=asset_service.snapshot)
def delete_asset(ctx, asset_id):
    asset_service.delete_asset(asset_id, ctx)
    return {"message": "Asset deleted successfully"}


@bp.route("/scan/<asset_tag>", methods=["POST"])
@authenticated
@audited("Asset", "SCAN", key="asset", snapshot=asset_service.snapshot_by_tag)
def scan_asset(ctx, asset_tag):
    asset, detected = asset_service.scan_asset(asset_tag, payload(), ctx)
    return {
        "message": "Asset scanned successfully",
        "asset": asset.to_dict(),
        "discrepancyDetected": detected,
    }
