"""
Routes for the users blueprint.

Listing, creating and deleting users is Admin-only. Reading and updating
a single user is allowed for the user themselves or an Admin.
"""

from flask import request

from assettrack.blueprints.helpers import arg_bool, arg_int, page_args, paginated, payload
from assettrack.blueprints.users import bp
from assettrack.decorators import audited, authenticated, role_required
from assettrack.models.user import ADMIN_ROLE
from assettrack.policies import ADMIN_ONLY, enforce
from assettrack.services import user_service


def _self_or_admin(ctx, user_id: int) -> None:
    if ctx.user_id != user_id:
        enforce(ADMIN_ONLY, ctx)


@bp.route("")
@authenticated
@role_required(ADMIN_ROLE)
def list_users(ctx):  # pylint: disable=unused-argument
    page, limit = page_args()
    users = user_service.get_all_users(
        page=page,
        per_page=limit,
        role_id=arg_int("roleId"),
        is_active=arg_bool("isActive"),
        search=request.args.get("search"),
    )
    return paginated(users, "users")


@bp.route("/<int:user_id>")
@authenticated
def get_user(ctx, user_id):
    _self_or_admin(ctx, user_id)
    return user_service.get_user(user_id).to_dict()


@bp.route("", methods=["POST"])
@authenticated
@role_required(ADMIN_ROLE)
@audited("User", "CREATE", key="user")
def create_user(ctx):  # pylint: disable=unused-argument
    user = user_service.create_user(payload())
    return {"message": "User created successfully", "user": user.to_dict()}, 201


@bp.route("/<int:user_id>", methods=["PUT"])
@authenticated
@audited("User", "UPDATE", key="user", snapshot=user_service.snapshot)
def update_user(ctx, user_id):
    _self_or_admin(ctx, user_id)
    user = user_service.update_user(user_id, payload(), ctx)
    return {"message": "User updated successfully", "user": user.to_dict()}


@bp.route("/<int:user_id>", methods=["DELETE"])
@authenticated
@role_required(ADMIN_ROLE)
@audited("User", "DELETE", snapshot=user_service.snapshot)
def delete_user(ctx, user_id):
    user_service.delete_user(user_id, ctx)
    return {"message": "User deleted successfully"}
