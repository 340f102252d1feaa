"""
Request parsing and response shaping shared by the API blueprints.

Request bodies arrive with camelCase keys (``assetTag``); services work
with model attribute names (``asset_tag``). ``payload()`` converts
between the two so route functions stay short.
"""

import re

from flask import current_app, request

from assettrack.errors import ValidationError
from assettrack.services import parse_datetime

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def to_snake(key: str) -> str:
    """``assetTag`` -> ``asset_tag``; snake_case keys pass through."""
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def payload(source: dict | None = None, aliases: dict[str, str] | None = None) -> dict:
    """
    Return the request body (JSON or form) with snake_case keys.

    ``*_id`` values are coerced to int; empty strings become None.
    ``aliases`` maps alternative incoming names to attribute names.
    """
    if source is None:
        source = request.get_json(silent=True)
        if source is None:
            source = request.form.to_dict()
    if not isinstance(source, dict):
        raise ValidationError("Request body must be a JSON object.")

    data: dict = {}
    for key, value in source.items():
        name = to_snake(key)
        if aliases and name in aliases:
            name = aliases[name]
        if isinstance(value, str) and value == "" and name.endswith("_id"):
            value = None
        if name.endswith("_id") and value is not None:
            try:
                value = int(value)
            except (TypeError, ValueError) as exc:
                raise ValidationError(f"Invalid {key}: expected an integer id.") from exc
        data[name] = value
    return data


def page_args(default_limit: int | None = None) -> tuple[int, int]:
    """Read ``page`` and ``limit`` query parameters (1-indexed page)."""
    if default_limit is None:
        default_limit = current_app.config["DEFAULT_PAGE_SIZE"]
    page = request.args.get("page", 1, type=int) or 1
    limit = request.args.get("limit", default_limit, type=int) or default_limit
    limit = min(max(limit, 1), current_app.config["MAX_PAGE_SIZE"])
    return max(page, 1), limit


def paginated(pagination, key: str, serialize=None) -> dict:
    """Shape a Flask-SQLAlchemy pagination object as the list response."""
    serialize = serialize or (lambda item: item.to_dict())
    return {
        key: [serialize(item) for item in pagination.items],
        "totalItems": pagination.total,
        "totalPages": pagination.pages,
        "currentPage": pagination.page,
    }


def arg_int(name: str) -> int | None:
    value = request.args.get(name)
    if value in (None, ""):
        return None
    try:
        return int(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid {name}: expected an integer.") from exc


def arg_bool(name: str) -> bool | None:
    value = request.args.get(name)
    if value in (None, ""):
        return None
    return value.lower() in ("true", "1", "yes")


def arg_datetime(name: str):
    return parse_datetime(request.args.get(name), name)
