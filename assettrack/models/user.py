"""
Authentication and authorization models.

Users log in with a username and password; the password is stored as a
salted hash and never leaves the model. Each user belongs to exactly one
role, and the role carries a flat permission map checked by
``PermissionPolicy``.

Role = what you can do.  Permission keys look like ``assets.update``,
with ``assets.*`` and ``*.*`` acting as wildcards.
"""

from flask_login import UserMixin
from werkzeug.security import check_password_hash, generate_password_hash

from assettrack.extensions import db
from assettrack.models.base import TimestampMixin, iso

ADMIN_ROLE = "Admin"
AUDITOR_ROLE = "Auditor"
FIELD_AGENT_ROLE = "Field Agent"


def flatten_permissions(permissions: dict | None) -> dict[str, bool]:
    """
    Normalise a permission map to dotted keys.

    Accepts either the flat form (``{"assets.read": True}``) or the
    nested form (``{"assets": {"read": True}}``) and returns the flat
    form. Values are coerced to booleans.
    """
    flat: dict[str, bool] = {}
    for key, value in (permissions or {}).items():
        if isinstance(value, dict):
            for action, allowed in value.items():
                flat[f"{key}.{action}"] = bool(allowed)
        else:
            flat[str(key)] = bool(value)
    return flat


class Role(TimestampMixin, db.Model):
    """Named bundle of permissions assigned to users."""

    __tablename__ = "role"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(50), unique=True, nullable=False)
    description = db.Column(db.String(255), nullable=True)
    permissions = db.Column(db.JSON, nullable=False, default=dict)

    # -- Relationships -----------------------------------------------------
    users = db.relationship("User", back_populates="role", lazy="dynamic")

    def has_permission(self, permission_name: str) -> bool:
        """
        Check the permission map for ``resource.action``.

        A grant on the exact key, on ``resource.*``, or on ``*.*`` is
        sufficient. The Admin bypass lives in ``PermissionPolicy``.
        """
        granted = self.permissions or {}
        resource, _, _action = permission_name.partition(".")
        return any(
            granted.get(key)
            for key in (permission_name, f"{resource}.*", "*.*")
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "permissions": self.permissions or {},
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<Role {self.name}>"


class User(UserMixin, TimestampMixin, db.Model):
    """
    Application user.

    Inherits from ``UserMixin`` to satisfy Flask-Login; the bearer-token
    request loader returns instances of this class. Rows are soft-deleted
    by stamping ``deleted_at``.
    """

    __tablename__ = "user_account"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    email = db.Column(db.String(200), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    phone = db.Column(db.String(50), nullable=True)
    role_id = db.Column(db.Integer, db.ForeignKey("role.id"), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    last_login = db.Column(db.DateTime(timezone=True), nullable=True)
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    # -- Relationships -----------------------------------------------------
    role = db.relationship("Role", back_populates="users", lazy="joined")

    # ---- Passwords -------------------------------------------------------

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    # ---- Convenience properties ------------------------------------------

    @property
    def full_name(self) -> str:
        """Return the user's full display name."""
        return f"{self.first_name} {self.last_name}"

    @property
    def role_name(self) -> str:
        """Shortcut to the user's role name string."""
        return self.role.name if self.role else "unknown"

    # ---- Role checks -----------------------------------------------------

    def has_role(self, *role_names: str) -> bool:
        """Check if the user has any of the given role names."""
        return self.role_name in role_names

    def has_permission(self, permission_name: str) -> bool:
        """Check if the user's role grants a specific permission."""
        if not self.role:
            return False
        return self.role.has_permission(permission_name)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "phone": self.phone,
            "isActive": self.is_active,
            "lastLogin": iso(self.last_login),
            "roleId": self.role_id,
            "role": {"id": self.role.id, "name": self.role.name} if self.role else None,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<User {self.username} role={self.role_name}>"
