"""
User service — user lookup, creation, profile updates and soft deletion.

Routes decide *who* may call these functions; the service enforces the
data rules (unique username and email, valid role, password length) and
the one field-level restriction: only Admins change a user's role or
active flag.
"""

import logging
import re
from datetime import datetime, timezone

from sqlalchemy import or_

from assettrack.context import RequestContext
from assettrack.errors import NotFoundError, ValidationError
from assettrack.extensions import db
from assettrack.models.user import ADMIN_ROLE, Role, User
from assettrack.services import apply_fields

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

_PROFILE_FIELDS = ("username", "email", "first_name", "last_name", "phone")
_ADMIN_FIELDS = ("role_id", "is_active")


# -- User lookup -----------------------------------------------------------


def get_user_by_id(user_id: int) -> User | None:
    """Return a non-deleted user by primary key, or None."""
    user = db.session.get(User, user_id)
    if user is None or user.deleted_at is not None:
        return None
    return user


def get_user(user_id: int) -> User:
    """Return a user by primary key or raise ``NotFoundError``."""
    user = get_user_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def get_user_by_username(username: str) -> User | None:
    """Return a non-deleted user by username, or None."""
    return User.query.filter(
        User.username == username, User.deleted_at.is_(None)
    ).first()


def get_all_users(
    page: int = 1,
    per_page: int = 10,
    role_id: int | None = None,
    is_active: bool | None = None,
    search: str | None = None,
):
    """
    Return a paginated list of users, newest first.

    Args:
        role_id:   Only users with this role.
        is_active: Only active (True) or inactive (False) users.
        search:    Case-insensitive match on username, email or names.
    """
    query = User.query.filter(User.deleted_at.is_(None)).order_by(
        User.created_at.desc(), User.id.desc()
    )
    if role_id is not None:
        query = query.filter(User.role_id == role_id)
    if is_active is not None:
        query = query.filter(User.is_active == is_active)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                User.username.ilike(pattern),
                User.email.ilike(pattern),
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
            )
        )
    return query.paginate(page=page, per_page=per_page, error_out=False)


# -- Validation ------------------------------------------------------------


def validate_password(password: str | None) -> None:
    if not password or not 6 <= len(password) <= 100:
        raise ValidationError("Password must be between 6 and 100 characters.")


def _validate_identity(data: dict, exclude_id: int | None = None) -> None:
    """Check username/email format and uniqueness."""
    username = data.get("username")
    email = data.get("email")

    if username is not None and not 3 <= len(username) <= 50:
        raise ValidationError("Username must be between 3 and 50 characters.")
    if email is not None and not _EMAIL_RE.match(email):
        raise ValidationError("Invalid email address.")

    for column, value, label in (
        (User.username, username, "Username"),
        (User.email, email, "Email"),
    ):
        if value is None:
            continue
        query = User.query.filter(column == value)
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        if query.first() is not None:
            raise ValidationError(f"{label} already exists")


def _resolve_role(role_id=None, role_name: str | None = None) -> Role:
    if role_name is not None:
        role = Role.query.filter_by(name=role_name).first()
    else:
        role = db.session.get(Role, role_id) if role_id is not None else None
    if role is None:
        raise ValidationError("Invalid role ID" if role_name is None else f"Role '{role_name}' not found.")
    return role


# -- Mutations -------------------------------------------------------------


def create_user(data: dict, role_name: str | None = None) -> User:
    """
    Create a user.

    Args:
        data:      ``username``, ``email``, ``password``, ``first_name``,
                   ``last_name``, optional ``phone`` and ``role_id``.
        role_name: When given, overrides ``role_id`` (used by registration).

    Raises:
        ValidationError: Missing/invalid field, duplicate username or
                         email, unknown role.
    """
    for name in ("username", "email", "password", "first_name", "last_name"):
        if not data.get(name):
            raise ValidationError(f"{name.replace('_', ' ').capitalize()} is required.")

    _validate_identity(data)
    validate_password(data["password"])
    role = _resolve_role(data.get("role_id"), role_name)

    user = User(
        username=data["username"],
        email=data["email"],
        first_name=data["first_name"],
        last_name=data["last_name"],
        phone=data.get("phone"),
        role_id=role.id,
        is_active=data.get("is_active", True),
    )
    user.set_password(data["password"])
    db.session.add(user)
    db.session.commit()

    logger.info("Created user %s with role %s", user.username, role.name)
    return user


def update_user(user_id: int, data: dict, ctx: RequestContext) -> User:
    """
    Update a user's profile.

    Non-admins editing themselves have ``role_id`` and ``is_active``
    silently dropped from ``data``.
    """
    user = get_user(user_id)

    allowed = _PROFILE_FIELDS
    if ctx.user.has_role(ADMIN_ROLE):
        allowed = _PROFILE_FIELDS + _ADMIN_FIELDS
        if data.get("role_id") is not None:
            _resolve_role(data["role_id"])

    _validate_identity(
        {k: data[k] for k in ("username", "email") if k in data}, exclude_id=user.id
    )
    changed = apply_fields(user, data, allowed)
    db.session.commit()

    logger.info("Updated user %s (%s) by user %s", user.id, ", ".join(changed), ctx.user_id)
    return user


def delete_user(user_id: int, ctx: RequestContext) -> None:
    """Soft-delete a user; their token stops working on the next request."""
    user = get_user(user_id)
    if user.id == ctx.user_id:
        raise ValidationError("You cannot delete your own account.")
    user.deleted_at = datetime.now(timezone.utc)
    user.is_active = False
    db.session.commit()
    logger.info("Deleted user %s by user %s", user.id, ctx.user_id)


def snapshot(user_id: int, **_kwargs) -> dict | None:
    """Current state of a user for the audit trail, or None."""
    user = get_user_by_id(user_id)
    return user.to_dict() if user else None
