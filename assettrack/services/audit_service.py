"""
Audit service — records state changes and queries the audit trail.

Writes are fire-and-forget: ``dispatch`` hands an ``AuditEntry`` to a
small thread pool and returns immediately, so the HTTP response is never
delayed by the audit insert. Delivery is at-most-once and best effort.
An entry that fails to insert is logged and dropped; it never fails or
rolls back the operation that produced it.

With ``AUDIT_ASYNC = False`` (the testing config) the same write runs
inline, with the same error swallowing.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from flask import Flask, current_app
from sqlalchemy import desc

from assettrack.context import RequestContext
from assettrack.errors import NotFoundError
from assettrack.extensions import db
from assettrack.models.audit import AuditLog

logger = logging.getLogger(__name__)

_executor: ThreadPoolExecutor | None = None


@dataclass
class AuditEntry:
    """Everything needed to insert one ``AuditLog`` row."""

    action: str
    entity_type: str
    entity_id: int | None = None
    user_id: int | None = None
    description: str | None = None
    previous_values: dict[str, Any] | None = None
    new_values: dict[str, Any] | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    timestamp: datetime | None = field(default=None)

    @classmethod
    def from_context(cls, ctx: RequestContext, action: str, entity_type: str, **kwargs):
        """Fill actor and request metadata from a ``RequestContext``."""
        return cls(
            action=action,
            entity_type=entity_type,
            user_id=ctx.user_id,
            ip_address=ctx.ip_address,
            user_agent=ctx.user_agent,
            timestamp=ctx.received_at,
            **kwargs,
        )


# -- Write audit entries ---------------------------------------------------


def dispatch(entry: AuditEntry) -> None:
    """
    Queue an audit entry for writing without waiting for the result.

    Must be called inside an application context. Never raises.
    """
    try:
        app = current_app._get_current_object()  # pylint: disable=protected-access
        if not app.config.get("AUDIT_ASYNC", True):
            record(entry)
            return
        _get_executor(app).submit(_write_in_context, app, entry)
    except Exception:  # pylint: disable=broad-exception-caught
        logger.exception(
            "Could not dispatch audit entry %s %s:%s",
            entry.action,
            entry.entity_type,
            entry.entity_id,
        )


def record(entry: AuditEntry) -> AuditLog | None:
    """
    Insert an audit row in its own commit.

    Returns the row, or None when the insert failed (the failure is
    logged, never raised).
    """
    try:
        row = AuditLog(
            action=entry.action,
            entity_type=entry.entity_type,
            entity_id=entry.entity_id,
            user_id=entry.user_id,
            description=entry.description,
            previous_values=entry.previous_values,
            new_values=entry.new_values,
            ip_address=entry.ip_address,
            user_agent=entry.user_agent,
        )
        if entry.timestamp is not None:
            row.timestamp = entry.timestamp
        db.session.add(row)
        db.session.commit()
    except Exception:  # pylint: disable=broad-exception-caught
        db.session.rollback()
        logger.exception(
            "Audit write failed for %s %s:%s",
            entry.action,
            entry.entity_type,
            entry.entity_id,
        )
        return None

    logger.info(
        "Audit: %s %s:%s by user %s",
        entry.action,
        entry.entity_type,
        entry.entity_id,
        entry.user_id,
    )
    return row


def shutdown(wait: bool = True) -> None:
    """Stop the background writer, optionally draining queued entries."""
    global _executor  # pylint: disable=global-statement
    if _executor is not None:
        _executor.shutdown(wait=wait)
        _executor = None


def _get_executor(app: Flask) -> ThreadPoolExecutor:
    global _executor  # pylint: disable=global-statement
    if _executor is None:
        _executor = ThreadPoolExecutor(
            max_workers=app.config.get("AUDIT_MAX_WORKERS", 2),
            thread_name_prefix="audit-writer",
        )
    return _executor


def _write_in_context(app: Flask, entry: AuditEntry) -> None:
    # Each worker gets its own app context and therefore its own session.
    with app.app_context():
        record(entry)


# -- Query audit logs ------------------------------------------------------


def get_audit_logs(
    page: int = 1,
    per_page: int = 20,
    action: str | None = None,
    entity_type: str | None = None,
    entity_id: int | None = None,
    user_id: int | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
):
    """
    Query audit logs with optional filters and pagination.

    Returns:
        A Flask-SQLAlchemy pagination object, newest entries first.
    """
    query = AuditLog.query.order_by(desc(AuditLog.timestamp), desc(AuditLog.id))

    if action:
        query = query.filter(AuditLog.action == action)
    if entity_type:
        query = query.filter(AuditLog.entity_type == entity_type)
    if entity_id is not None:
        query = query.filter(AuditLog.entity_id == entity_id)
    if user_id is not None:
        query = query.filter(AuditLog.user_id == user_id)
    if start_date:
        query = query.filter(AuditLog.timestamp >= start_date)
    if end_date:
        query = query.filter(AuditLog.timestamp <= end_date)

    return query.paginate(page=page, per_page=per_page, error_out=False)


def get_audit_log(log_id: int) -> AuditLog:
    row = db.session.get(AuditLog, log_id)
    if row is None:
        raise NotFoundError("Audit log not found.")
    return row


def get_entity_history(entity_type: str, entity_id: int, page: int = 1, per_page: int = 20):
    """Return the change history of one entity."""
    return get_audit_logs(
        page=page, per_page=per_page, entity_type=entity_type, entity_id=entity_id
    )


def get_user_activity(user_id: int, page: int = 1, per_page: int = 20):
    """Return every change made by one user."""
    return get_audit_logs(page=page, per_page=per_page, user_id=user_id)


def get_distinct_actions() -> list[str]:
    """Return a sorted list of distinct action values in the audit log."""
    rows = db.session.query(AuditLog.action).distinct().order_by(AuditLog.action).all()
    return [row[0] for row in rows]


def get_distinct_entity_types() -> list[str]:
    """Return a sorted list of distinct entity_type values in the audit log."""
    rows = (
        db.session.query(AuditLog.entity_type)
        .distinct()
        .order_by(AuditLog.entity_type)
        .all()
    )
    return [row[0] for row in rows]
