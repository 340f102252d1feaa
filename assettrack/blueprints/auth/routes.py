"""
Routes for the auth blueprint.

``register`` and ``login`` are public; the rest need a bearer token.
"""

from assettrack.blueprints.auth import bp
from assettrack.blueprints.helpers import payload
from assettrack.context import RequestContext
from assettrack.decorators import audited, authenticated
from assettrack.services import audit_service, auth_service
from assettrack.services.audit_service import AuditEntry


@bp.route("/register", methods=["POST"])
def register():
    """Create an account with the default role and return a token."""
    user, token = auth_service.register(payload())
    return {
        "message": "User registered successfully",
        "user": user.to_dict(),
        "token": token,
    }, 201


@bp.route("/login", methods=["POST"])
def login():
    """Exchange username and password for a bearer token."""
    data = payload()
    user, token = auth_service.login(data.get("username"), data.get("password"))

    audit_service.dispatch(
        AuditEntry.from_context(
            RequestContext.from_request(user),
            "LOGIN",
            "User",
            entity_id=user.id,
            description=f"User {user.username} logged in",
        )
    )
    return {"message": "Login successful", "user": user.to_dict(), "token": token}


@bp.route("/profile")
@authenticated
def profile(ctx):
    """Return the authenticated user with role permissions."""
    user = ctx.user.to_dict()
    user["role"]["permissions"] = ctx.user.role.permissions or {}
    return user


@bp.route("/change-password", methods=["PUT"])
@authenticated
@audited("User", "PASSWORD_CHANGE", key="user")
def change_password(ctx):
    data = payload()
    auth_service.change_password(
        ctx, data.get("current_password"), data.get("new_password")
    )
    return {"message": "Password changed successfully", "user": ctx.user.to_dict()}

