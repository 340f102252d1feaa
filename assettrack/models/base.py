"""
Shared column helpers and JSON conversion utilities for the models.
"""

from datetime import date, datetime, timezone
from decimal import Decimal

from assettrack.extensions import db


def utcnow() -> datetime:
    """Timezone-aware 'now' used for every timestamp column."""
    return datetime.now(timezone.utc)


def iso(value: date | datetime | None) -> str | None:
    """Render a date or datetime as ISO-8601, passing None through."""
    return value.isoformat() if value is not None else None


def number(value: Decimal | float | None) -> float | None:
    """Render a Numeric column value as a JSON number."""
    return float(value) if value is not None else None


class TimestampMixin:
    """Adds ``created_at`` / ``updated_at`` maintained by SQLAlchemy."""

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
