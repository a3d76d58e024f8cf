"""
Small helpers shared by models, services and blueprints.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

import sqlalchemy as sa
from flask import current_app, has_app_context

from inventory.exceptions import ValidationFailedError


def iso(value: date | datetime | None) -> str | None:
    """Return an ISO-8601 string for a date/datetime, or None."""
    return value.isoformat() if value is not None else None


def money(value: Decimal | float | None) -> str | None:
    """Return a Decimal as a plain string so JSON keeps its precision."""
    return str(value) if value is not None else None


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


# =========================================================================
# Pagination
# =========================================================================

def paginate(query, page: int | None = 1, per_page: int | None = None):
    """
    Paginate a query, clamping ``per_page`` to the configured maximum.

    Returns a Flask-SQLAlchemy pagination object.
    """
    default_size, max_size = 20, 200
    if has_app_context():
        default_size = current_app.config.get("DEFAULT_PAGE_SIZE", default_size)
        max_size = current_app.config.get("MAX_PAGE_SIZE", max_size)
    page = max(1, page or 1)
    per_page = min(max(1, per_page or default_size), max_size)
    return query.paginate(page=page, per_page=per_page, error_out=False)


def page_to_dict(pagination, serializer=None) -> dict:
    """
    Convert a Flask-SQLAlchemy pagination object into a JSON-ready dict.

    Args:
        pagination: Result of ``query.paginate()``.
        serializer: Callable applied to each item; defaults to
                    ``item.to_dict()``.
    """
    serializer = serializer or (lambda item: item.to_dict())
    return {
        "items": [serializer(item) for item in pagination.items],
        "page": pagination.page,
        "per_page": pagination.per_page,
        "total": pagination.total,
        "pages": pagination.pages,
    }


# =========================================================================
# Payload coercion
# =========================================================================

def _coerce(column: sa.Column, value: Any) -> Any:
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return None if column.nullable else value
    col_type = column.type
    try:
        if isinstance(col_type, sa.DateTime):
            return value if isinstance(value, datetime) else datetime.fromisoformat(value)
        if isinstance(col_type, sa.Date):
            if isinstance(value, datetime):
                return value.date()
            return value if isinstance(value, date) else date.fromisoformat(value)
        if isinstance(col_type, sa.Numeric):
            return value if isinstance(value, Decimal) else Decimal(str(value))
        if isinstance(col_type, sa.Boolean):
            if isinstance(value, str):
                return value.strip().lower() in ("1", "true", "yes", "y")
            return bool(value)
        if isinstance(col_type, sa.Integer):
            return int(value)
        if isinstance(col_type, sa.String):
            # JSON numbers are accepted as text; objects and arrays are not.
            if isinstance(value, (dict, list)):
                raise TypeError(value)
            return str(value).strip()
    except (TypeError, ValueError, InvalidOperation):
        raise ValidationFailedError(
            f"Invalid value for {column.name}: '{value}'"
        ) from None
    return value


def coerce_fields(model_cls, data: dict, allowed: Iterable[str]) -> dict:
    """
    Keep only ``allowed`` keys of ``data`` and convert each value to the
    Python type of the matching column (ISO dates, decimals, ints).

    Raises:
        ValidationFailedError: If a value cannot be converted.
    """
    columns = model_cls.__table__.columns
    return {
        key: _coerce(columns[key], value)
        for key, value in data.items()
        if key in allowed and key in columns
    }


def apply_changes(record, changes: dict) -> tuple[dict, dict]:
    """
    Set ``changes`` on ``record`` and return ``(previous, new)`` dicts
    holding only the fields whose value actually changed.
    """
    previous: dict[str, Any] = {}
    new: dict[str, Any] = {}
    for key, value in changes.items():
        old = getattr(record, key)
        if old != value:
            previous[key] = old
            new[key] = value
            setattr(record, key, value)
    return previous, new
