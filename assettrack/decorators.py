"""
Route decorators for authentication, authorization and auditing.

``authenticated`` resolves the bearer token through Flask-Login, builds a
``RequestContext`` and passes it to the view as the first positional
argument. The other decorators receive that context explicitly::

    @bp.route("/<int:asset_id>", methods=["PUT"])
    @authenticated
    @permission_required("assets.update")
    @audited("Asset", "UPDATE", key="asset", snapshot=asset_service.snapshot)
    def update_asset(ctx, asset_id):
        ...
"""

import logging
from functools import wraps

from flask import Response, request
from flask_login import current_user

from assettrack.context import RequestContext
from assettrack.errors import AuthenticationError
from assettrack.policies import AccessPolicy, PermissionPolicy, RolePolicy, enforce
from assettrack.services import audit_service
from assettrack.services.audit_service import AuditEntry

logger = logging.getLogger(__name__)


def authenticated(func):
    """
    Require a valid bearer token and inject a ``RequestContext``.

    Token errors (expired, invalid, inactive account) are raised by the
    request loader as ``ServiceError`` subclasses; a missing header
    leaves ``current_user`` anonymous.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        if not current_user.is_authenticated:
            raise AuthenticationError("No token provided")
        ctx = RequestContext.from_request(current_user._get_current_object())  # pylint: disable=protected-access
        return func(ctx, *args, **kwargs)

    return wrapper


def policy_required(policy: AccessPolicy):
    """Enforce an ``AccessPolicy`` against the injected context."""

    def decorator(func):
        @wraps(func)
        def wrapper(ctx: RequestContext, *args, **kwargs):
            if not policy.allows(ctx):
                logger.warning("Rejected %s %s", request.method, request.path)
                enforce(policy, ctx)
            return func(ctx, *args, **kwargs)

        return wrapper

    return decorator


def role_required(*role_names: str):
    """
    Restrict access to users with one of the specified roles.

    Usage::

        @authenticated
        @role_required("Admin")
        def delete_asset(ctx, asset_id):
            ...
    """
    return policy_required(RolePolicy(*role_names))


def permission_required(permission_name: str):
    """
    Restrict access to users whose role grants ``permission_name``.

    Usage::

        @authenticated
        @permission_required("assets.create")
        def create_asset(ctx):
            ...
    """
    return policy_required(PermissionPolicy(permission_name))


def audited(entity_type: str, action: str, key: str | None = None, snapshot=None):
    """
    Record the wrapped handler's effect in the audit log.

    Args:
        entity_type: Name stored in ``AuditLog.entity_type`` (e.g. 'Asset').
        action:      CREATE, UPDATE, DELETE, SCAN, ...
        key:         Key of the entity inside the JSON response body
                     (e.g. 'asset'); its value becomes ``new_values``.
        snapshot:    Optional ``callable(**view_kwargs) -> dict | None``
                     capturing the entity before the handler runs.

    The entry is only dispatched for 2xx responses, after the handler
    has returned.
    """

    def decorator(func):
        @wraps(func)
        def wrapper(ctx: RequestContext, *args, **kwargs):
            previous = snapshot(**kwargs) if snapshot is not None else None

            rv = func(ctx, *args, **kwargs)

            body, status = _unpack(rv)
            if 200 <= status < 300:
                new_values = body.get(key) if key else None
                entity_id = _entity_id(new_values, previous, kwargs)
                audit_service.dispatch(
                    AuditEntry.from_context(
                        ctx,
                        action,
                        entity_type,
                        entity_id=entity_id,
                        description=body.get("message"),
                        previous_values=previous,
                        new_values=new_values if action != "DELETE" else None,
                    )
                )
            return rv

        return wrapper

    return decorator


def _unpack(rv) -> tuple[object, int]:
    """Extract the JSON body and status from a view return value."""
    body, status = rv, None
    if isinstance(rv, tuple):
        body, status = rv[0], rv[1]
    if isinstance(body, Response):
        status = status or body.status_code
        body = body.get_json(silent=True)
    return (body if isinstance(body, dict) else {}), int(status or 200)


def _entity_id(new_values, previous, view_kwargs) -> int | None:
    for source in (new_values, previous):
        if isinstance(source, dict) and source.get("id") is not None:
            return source["id"]
    for name, value in view_kwargs.items():
        if name.endswith("_id") and isinstance(value, int):
            return value
    return None
