"""
Access policies.

Every authorization decision in the application goes through one
contract: ``AccessPolicy.allows(ctx)``. Two strategies implement it:

    RolePolicy("Admin", "Auditor")      # role-name membership
    PermissionPolicy("assets.update")   # permission map, Admin bypasses

Routes choose a strategy per endpoint through the ``role_required`` and
``permission_required`` decorators; services that need finer-grained
checks (movement approval, self-or-admin user edits) call ``enforce`` or
``allows`` with the same policy objects.
"""

import logging

from assettrack.context import RequestContext
from assettrack.errors import PermissionDenied
from assettrack.models.user import ADMIN_ROLE

logger = logging.getLogger(__name__)


class AccessPolicy:
    """Base class for authorization strategies."""

    def allows(self, ctx: RequestContext) -> bool:
        raise NotImplementedError

    def describe(self) -> str:
        raise NotImplementedError

    def __or__(self, other: "AccessPolicy") -> "AnyOf":
        return AnyOf(self, other)


class RolePolicy(AccessPolicy):
    """Grant access when the user's role is one of ``role_names``."""

    def __init__(self, *role_names: str):
        self.role_names = role_names

    def allows(self, ctx: RequestContext) -> bool:
        return ctx.user is not None and ctx.user.has_role(*self.role_names)

    def describe(self) -> str:
        return f"one of roles: {', '.join(self.role_names)}"


class PermissionPolicy(AccessPolicy):
    """
    Grant access when the user's role grants ``permission``.

    ``permission`` is a dotted ``resource.action`` key. Wildcards on the
    role side (``resource.*``, ``*.*``) are honoured by ``Role``; Admin
    is allowed unconditionally.
    """

    def __init__(self, permission: str):
        self.permission = permission

    def allows(self, ctx: RequestContext) -> bool:
        if ctx.user is None:
            return False
        if ctx.user.has_role(ADMIN_ROLE):
            return True
        return ctx.user.has_permission(self.permission)

    def describe(self) -> str:
        return f"permission '{self.permission}'"


class AnyOf(AccessPolicy):
    """Grant access when any of the wrapped policies does."""

    def __init__(self, *policies: AccessPolicy):
        self.policies = policies

    def allows(self, ctx: RequestContext) -> bool:
        return any(policy.allows(ctx) for policy in self.policies)

    def describe(self) -> str:
        return " or ".join(policy.describe() for policy in self.policies)


# Shared instances used by more than one service.
ADMIN_ONLY = RolePolicy(ADMIN_ROLE)
CAN_APPROVE_MOVEMENTS = PermissionPolicy("movements.approve")


def enforce(policy: AccessPolicy, ctx: RequestContext, message: str | None = None) -> None:
    """
    Raise ``PermissionDenied`` unless ``policy`` allows ``ctx``.

    Denials are logged with the acting user and the policy description.
    """
    if policy.allows(ctx):
        return
    logger.warning(
        "Access denied: user %s with role '%s' (requires %s)",
        ctx.user_id,
        ctx.role_name,
        policy.describe(),
    )
    raise PermissionDenied(message or "Insufficient permissions.")
