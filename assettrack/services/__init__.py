"""
Service layer package.

Each service module encapsulates one domain of business logic.
Services are the only layer that interacts with models; routes never
access the database directly.

Multi-step writes run inside ``atomic()`` so either every statement
commits or none does.
"""

from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from assettrack.errors import ValidationError
from assettrack.extensions import db


@contextmanager
def atomic():
    """
    Commit the session on success, roll it back on any exception.

    Usage::

        with atomic():
            db.session.add(row)
            owner.has_discrepancy = True
    """
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def apply_fields(instance, data: dict, allowed: tuple[str, ...]) -> list[str]:
    """
    Copy whitelisted keys from ``data`` onto ``instance``.

    Returns the names of attributes that actually changed.
    """
    changed: list[str] = []
    for name in allowed:
        if name in data and getattr(instance, name) != data[name]:
            setattr(instance, name, data[name])
            changed.append(name)
    return changed


def require_choice(value: str | None, choices: tuple[str, ...], label: str) -> None:
    """Raise ValidationError unless ``value`` is None or one of ``choices``."""
    if value is not None and value not in choices:
        raise ValidationError(
            f"Invalid {label} '{value}'. Expected one of: {', '.join(choices)}."
        )


def parse_date(value, label: str) -> date | None:
    """Parse an ISO date (``YYYY-MM-DD``) or pass through None/date."""
    if value in (None, ""):
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as exc:
        raise ValidationError(f"Invalid {label}: expected YYYY-MM-DD.") from exc


def parse_datetime(value, label: str) -> datetime | None:
    """Parse an ISO-8601 timestamp or pass through None/datetime."""
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError as exc:
        raise ValidationError(f"Invalid {label}: expected an ISO-8601 date.") from exc


def parse_decimal(value, label: str) -> Decimal | None:
    """Parse a numeric input into a Decimal, passing None through."""
    if value in (None, ""):
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Invalid {label}: expected a number.") from exc
