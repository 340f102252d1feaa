"""
Role service — role CRUD and the default role set.
"""

import logging

from assettrack.errors import NotFoundError, ValidationError
from assettrack.extensions import db
from assettrack.models.user import (
    ADMIN_ROLE,
    AUDITOR_ROLE,
    FIELD_AGENT_ROLE,
    Role,
    User,
    flatten_permissions,
)

logger = logging.getLogger(__name__)

# Seeded by ``flask seed-defaults``.
DEFAULT_ROLES = (
    {
        "name": ADMIN_ROLE,
        "description": "System administrator with full access",
        "permissions": {"*.*": True},
    },
    {
        "name": AUDITOR_ROLE,
        "description": "Auditor with read access and discrepancy management",
        "permissions": {
            "users": {"read": True},
            "roles": {"read": True},
            "assets": {"read": True, "update": True},
            "movements": {"read": True, "approve": True},
            "photos": {"create": True, "read": True},
            "discrepancies": {"create": True, "read": True, "update": True, "resolve": True},
            "sites": {"read": True},
            "locations": {"read": True},
            "reports": {"read": True, "export": True},
            "audit_logs": {"view": True},
        },
    },
    {
        "name": FIELD_AGENT_ROLE,
        "description": "Field agent for asset scanning and data collection",
        "permissions": {
            "assets": {"read": True},
            "movements": {"create": True, "read": True},
            "photos": {"create": True, "read": True},
            "discrepancies": {"create": True, "read": True},
            "sites": {"read": True},
            "locations": {"read": True},
        },
    },
)


def get_all_roles() -> list[Role]:
    """Return all roles ordered by name."""
    return Role.query.order_by(Role.name).all()


def get_role(role_id: int) -> Role:
    role = db.session.get(Role, role_id)
    if role is None:
        raise NotFoundError("Role not found")
    return role


def create_role(data: dict) -> Role:
    """Create a role; ``permissions`` may be flat or nested."""
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("Role name is required.")
    if Role.query.filter_by(name=name).first() is not None:
        raise ValidationError("Role name already exists")

    role = Role(
        name=name,
        description=data.get("description"),
        permissions=flatten_permissions(data.get("permissions")),
    )
    db.session.add(role)
    db.session.commit()
    logger.info("Created role %s", role.name)
    return role


def update_role(role_id: int, data: dict) -> Role:
    role = get_role(role_id)

    if "name" in data and data["name"] != role.name:
        name = (data["name"] or "").strip()
        if not name:
            raise ValidationError("Role name is required.")
        if Role.query.filter(Role.name == name, Role.id != role.id).first() is not None:
            raise ValidationError("Role name already exists")
        role.name = name
    if "description" in data:
        role.description = data["description"]
    if "permissions" in data:
        # Reassign rather than mutate so SQLAlchemy sees the JSON change.
        role.permissions = flatten_permissions(data["permissions"])

    db.session.commit()
    logger.info("Updated role %s", role.name)
    return role


def delete_role(role_id: int) -> None:
    """Delete a role that no user (deleted or not) references."""
    role = get_role(role_id)
    if User.query.filter_by(role_id=role.id).count() > 0:
        raise ValidationError("Cannot delete role that is assigned to users")
    db.session.delete(role)
    db.session.commit()
    logger.info("Deleted role %s", role.name)


def ensure_default_roles() -> list[Role]:
    """
    Create any missing default role. Existing roles are left untouched.

    Returns:
        The roles that were created.
    """
    created: list[Role] = []
    for defaults in DEFAULT_ROLES:
        if Role.query.filter_by(name=defaults["name"]).first() is None:
            role = Role(
                name=defaults["name"],
                description=defaults["description"],
                permissions=flatten_permissions(defaults["permissions"]),
            )
            db.session.add(role)
            created.append(role)
    db.session.commit()
    return created


def snapshot(role_id: int, **_kwargs) -> dict | None:
    role = db.session.get(Role, role_id)
    return role.to_dict() if role else None
