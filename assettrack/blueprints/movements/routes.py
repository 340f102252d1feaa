"""
Routes for the movements blueprint.

Who may update or delete a movement depends on the movement itself
(requester, status), so those checks live in ``movement_service``.
"""

from flask import request

from assettrack.blueprints.helpers import (
    arg_bool,
    arg_datetime,
    arg_int,
    page_args,
    paginated,
    payload,
)
from assettrack.blueprints.movements import bp
from assettrack.decorators import audited, authenticated, permission_required
from assettrack.services import asset_service, movement_service


@bp.route("")
@authenticated
def list_movements(ctx):  # pylint: disable=unused-argument
    page, limit = page_args()
    movements = movement_service.get_movements(
        page=page,
        per_page=limit,
        movement_type=request.args.get("type"),
        status=request.args.get("status"),
        asset_id=arg_int("assetId"),
        requester_id=arg_int("requesterId"),
        approver_id=arg_int("approverId"),
        has_discrepancy=arg_bool("hasDiscrepancy"),
        start_date=arg_datetime("startDate"),
        end_date=arg_datetime("endDate"),
    )
    return paginated(movements, "movements")


@bp.route("/types")
@authenticated
def movement_types(ctx):  # pylint: disable=unused-argument
    return {"types": movement_service.get_movement_types()}


@bp.route("/asset/<int:asset_id>")
@authenticated
def movements_for_asset(ctx, asset_id):  # pylint: disable=unused-argument
    asset_service.get_asset(asset_id)
    page, limit = page_args()
    movements = movement_service.get_movements(page=page, per_page=limit, asset_id=asset_id)
    return paginated(movements, "movements")


@bp.route("/<int:movement_id>")
@authenticated
def get_movement(ctx, movement_id):  # pylint: disable=unused-argument
    return movement_service.get_movement(movement_id).to_dict(detail=True)


@bp.route("", methods=["POST"])
@authenticated
@permission_required("movements.create")
@audited("Movement", "CREATE", key="movement")
def create_movement(ctx):
    movement = movement_service.create_movement(payload(), ctx)
    return {
        "message": "Movement request created successfully",
        "movement": movement.to_dict(),
    }, 201


@bp.route("/<int:movement_id>", methods=["PUT"])
@authenticated
@audited("Movement", "UPDATE", key="movement", snapshot=movement_service.snapshot)
def update_movement(ctx, movement_id):
    movement, asset_updated = movement_service.update_movement(movement_id, payload(), ctx)
    return {
        "message": "Movement updated successfully",
        "movement": movement.to_dict(),
        "assetUpdated": asset_updated,
    }


@bp.route("/<int:movement_id>", methods=["DELETE"])
@authenticated
@audited("Movement", "DELETE", snapshot=movement_service.snapshot)
def delete_movement(ctx, movement_id):
    movement_service.delete_movement(movement_id, ctx)
    return {"message": "Movement deleted successfully"}
