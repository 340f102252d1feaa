"""
Routes for the discrepancies blueprint.
"""

from flask import request

from assettrack.blueprints.helpers import arg_datetime, arg_int, page_args, paginated, payload
from assettrack.blueprints.discrepancies import bp
from assettrack.decorators import audited, authenticated, permission_required, role_required
from assettrack.models.user import ADMIN_ROLE
from assettrack.services import asset_service, discrepancy_service, movement_service


def discrepancy_filters() -> dict:
    """Discrepancy list filters from the query string; shared with reports."""
    return {
        "disc_type": request.args.get("type"),
        "status": request.args.get("status"),
        "priority": request.args.get("priority"),
        "asset_id": arg_int("assetId"),
        "movement_id": arg_int("movementId"),
        "detected_by": arg_int("detectedBy"),
        "resolved_by": arg_int("resolvedBy"),
        "start_date": arg_datetime("startDate"),
        "end_date": arg_datetime("endDate"),
    }


@bp.route("")
@authenticated
def list_discrepancies(ctx):  # pylint: disable=unused-argument
    page, limit = page_args()
    items = discrepancy_service.get_discrepancies(
        page=page, per_page=limit, **discrepancy_filters()
    )
    return paginated(items, "discrepancies")


@bp.route("/types")
@authenticated
def discrepancy_types(ctx):  # pylint: disable=unused-argument
    return {"types": discrepancy_service.get_discrepancy_types()}


@bp.route("/asset/<int:asset_id>")
@authenticated
def discrepancies_for_asset(ctx, asset_id):  # pylint: disable=unused-argument
    asset_service.get_asset(asset_id)
    page, limit = page_args()
    items = discrepancy_service.get_discrepancies(page=page, per_page=limit, asset_id=asset_id)
    return paginated(items, "discrepancies")


@bp.route("/movement/<int:movement_id>")
@authenticated
def discrepancies_for_movement(ctx, movement_id):  # pylint: disable=unused-argument
    movement_service.get_movement(movement_id)
    page, limit = page_args()
    items = discrepancy_service.get_discrepancies(
        page=page, per_page=limit, movement_id=movement_id
    )
    return paginated(items, "discrepancies")


@bp.route("/<int:discrepancy_id>")
@authenticated
def get_discrepancy(ctx, discrepancy_id):  # pylint: disable=unused-argument
    return discrepancy_service.get_discrepancy(discrepancy_id).to_dict()


@bp.route("", methods=["POST"])
@authenticated
@permission_required("discrepancies.create")
@audited("Discrepancy", "CREATE", key="discrepancy")
def create_discrepancy(ctx):
    discrepancy = discrepancy_service.create_discrepancy(payload(), ctx)
    return {
        "message": "Discrepancy created successfully",
        "discrepancy": discrepancy.to_dict(),
    }, 201


@bp.route("/<int:discrepancy_id>", methods=["PUT"])
@authenticated
@permission_required("discrepancies.update")
@audited(
    "Discrepancy", "UPDATE", key="discrepancy", snapshot=discrepancy_service.snapshot
)
def update_discrepancy(ctx, discrepancy_id):
    discrepancy = discrepancy_service.update_discrepancy(discrepancy_id, payload(), ctx)
    return {
        "message": "Discrepancy updated successfully",
        "discrepancy": discrepancy.to_dict(),
    }


@bp.route("/<int:discrepancy_id>", methods=["DELETE"])
@authenticated
@role_required(ADMIN_ROLE)
@audited("Discrepancy", "DELETE", snapshot=discrepancy_service.snapshot)
def delete_discrepancy(ctx, discrepancy_id):
    discrepancy_service.delete_discrepancy(discrepancy_id, ctx)
    return {"message": "Discrepancy deleted successfully"}


@bp.route("/reconcile", methods=["POST"])
@authenticated
@role_required(ADMIN_ROLE)
def reconcile(ctx):  # pylint: disable=unused-argument
    """Recompute every owner's discrepancy flag."""
    corrected = discrepancy_service.reconcile_flags()
    return {"message": "Discrepancy flags reconciled", "corrected": corrected}
