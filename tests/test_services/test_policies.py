"""
Tests for access policies and permission map handling.
"""

import pytest

from assettrack.errors import PermissionDenied
from assettrack.extensions import db
from assettrack.models.user import Role, flatten_permissions
from assettrack.policies import (
    ADMIN_ONLY,
    CAN_APPROVE_MOVEMENTS,
    PermissionPolicy,
    RolePolicy,
    enforce,
)


class TestFlattenPermissions:
    """Nested and flat permission maps normalise to dotted keys."""

    def test_nested_map(self):
        assert flatten_permissions({"assets": {"read": True, "update": False}}) == {
            "assets.read": True,
            "assets.update": False,
        }

    def test_flat_map_passes_through(self):
        assert flatten_permissions({"assets.read": 1}) == {"assets.read": True}

    def test_none_is_empty(self):
        assert flatten_permissions(None) == {}


class TestRoleWildcards:
    """``resource.*`` and ``*.*`` grants."""

    def test_resource_wildcard(self, app):  # pylint: disable=unused-argument
        role = Role(name="Clerk", permissions={"assets.*": True})
        assert role.has_permission("assets.delete") is True
        assert role.has_permission("sites.read") is False

    def test_global_wildcard(self, app):  # pylint: disable=unused-argument
        role = Role(name="Root", permissions={"*.*": True})
        assert role.has_permission("anything.at_all") is True

    def test_false_grant_is_denied(self, app):  # pylint: disable=unused-argument
        role = Role(name="Muted", permissions={"assets.read": False})
        assert role.has_permission("assets.read") is False


class TestPolicies:
    """RolePolicy, PermissionPolicy and their composition."""

    def test_role_policy(self, admin, agent, ctx_for):
        policy = RolePolicy("Admin", "Auditor")
        assert policy.allows(ctx_for(admin)) is True
        assert policy.allows(ctx_for(agent)) is False

    def test_permission_policy_uses_role_map(self, auditor, agent, ctx_for):
        assert CAN_APPROVE_MOVEMENTS.allows(ctx_for(auditor)) is True
        assert CAN_APPROVE_MOVEMENTS.allows(ctx_for(agent)) is False

    def test_admin_bypasses_permission_map(self, admin, ctx_for):
        admin.role.permissions = {}
        db.session.commit()

        assert PermissionPolicy("sites.delete").allows(ctx_for(admin)) is True

    def test_anonymous_context_is_denied(self, ctx_for):
        assert ADMIN_ONLY.allows(ctx_for(None)) is False
        assert PermissionPolicy("assets.read").allows(ctx_for(None)) is False

    def test_any_of(self, auditor, agent, ctx_for):
        policy = ADMIN_ONLY | CAN_APPROVE_MOVEMENTS
        assert policy.allows(ctx_for(auditor)) is True
        assert policy.allows(ctx_for(agent)) is False
        assert "movements.approve" in policy.describe()

    def test_enforce_raises_with_message(self, agent, ctx_for):
        with pytest.raises(PermissionDenied, match="Nope"):
            enforce(ADMIN_ONLY, ctx_for(agent), message="Nope")

    def test_enforce_passes(self, admin, ctx_for):
        enforce(ADMIN_ONLY, ctx_for(admin))
