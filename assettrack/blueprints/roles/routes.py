"""
Routes for the roles blueprint. Admins and Auditors may read roles; only
Admins may change them.
"""

from assettrack.blueprints.helpers import payload
from assettrack.blueprints.roles import bp
from assettrack.decorators import audited, authenticated, role_required
from assettrack.models.user import ADMIN_ROLE, AUDITOR_ROLE
from assettrack.services import role_service


@bp.route("")
@authenticated
@role_required(ADMIN_ROLE, AUDITOR_ROLE)
def list_roles(ctx):  # pylint: disable=unused-argument
    return {"roles": [role.to_dict() for role in role_service.get_all_roles()]}


@bp.route("/<int:role_id>")
@authenticated
@role_required(ADMIN_ROLE, AUDITOR_ROLE)
def get_role(ctx, role_id):  # pylint: disable=unused-argument
    return role_service.get_role(role_id).to_dict()


@bp.route("", methods=["POST"])
@authenticated
@role_required(ADMIN_ROLE)
@audited("Role", "CREATE", key="role")
def create_role(ctx):  # pylint: disable=unused-argument
    role = role_service.create_role(payload())
    return {"message": "Role created successfully", "role": role.to_dict()}, 201


@bp.route("/<int:role_id>", methods=["PUT"])
@authenticated
@role_required(ADMIN_ROLE)
@audited("Role", "UPDATE", key="role", snapshot=role_service.snapshot)
def update_role(ctx, role_id):  # pylint: disable=unused-argument
    role = role_service.update_role(role_id, payload())
    return {"message": "Role updated successfully", "role": role.to_dict()}


@bp.route("/<int:role_id>", methods=["DELETE"])
@authenticated
@role_required(ADMIN_ROLE)
@audited("Role", "DELETE", snapshot=role_service.snapshot)
def delete_role(ctx, role_id):  # pylint: disable=unused-argument
    role_service.delete_role(role_id)
    return {"message": "Role deleted successfully"}
