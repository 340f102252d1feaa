"""
Routes for the audit_logs blueprint. Every route needs ``audit_logs.view``.
"""

from flask import current_app, request

from assettrack.blueprints.audit_logs import bp
from assettrack.blueprints.helpers import arg_datetime, arg_int, page_args, paginated
from assettrack.decorators import authenticated, permission_required
from assettrack.services import audit_service, user_service

VIEW = "audit_logs.view"


def _page():
    return page_args(current_app.config["AUDIT_PAGE_SIZE"])


@bp.route("")
@authenticated
@permission_required(VIEW)
def list_audit_logs(ctx):  # pylint: disable=unused-argument
    page, limit = _page()
    logs = audit_service.get_audit_logs(
        page=page,
        per_page=limit,
        action=request.args.get("action"),
        entity_type=request.args.get("entityType"),
        entity_id=arg_int("entityId"),
        user_id=arg_int("userId"),
        start_date=arg_datetime("startDate"),
        end_date=arg_datetime("endDate"),
    )
    return paginated(logs, "auditLogs")


@bp.route("/actions")
@authenticated
@permission_required(VIEW)
def audit_actions(ctx):  # pylint: disable=unused-argument
    return {"actions": audit_service.get_distinct_actions()}


@bp.route("/entity-types")
@authenticated
@permission_required(VIEW)
def audit_entity_types(ctx):  # pylint: disable=unused-argument
    return {"entityTypes": audit_service.get_distinct_entity_types()}


@bp.route("/entity/<entity_type>/<int:entity_id>")
@authenticated
@permission_required(VIEW)
def entity_history(ctx, entity_type, entity_id):  # pylint: disable=unused-argument
    page, limit = _page()
    logs = audit_service.get_entity_history(entity_type, entity_id, page=page, per_page=limit)
    return paginated(logs, "auditLogs")


@bp.route("/user/<int:user_id>")
@authenticated
@permission_required(VIEW)
def user_activity(ctx, user_id):  # pylint: disable=unused-argument
    user_service.get_user(user_id)
    page, limit = _page()
    logs = audit_service.get_user_activity(user_id, page=page, per_page=limit)
    return paginated(logs, "auditLogs")


@bp.route("/<int:log_id>")
@authenticated
@permission_required(VIEW)
def get_audit_log(ctx, log_id):  # pylint: disable=unused-argument
    return audit_service.get_audit_log(log_id).to_dict()
