"""
Audit service — records all data changes and queries audit logs.

Every CREATE, UPDATE, and DELETE operation in the application passes
through this service so that a complete audit trail is maintained.
``log_change`` is the primary entry point; it adds the entry to the
current session and flushes, and the calling service commits it
together with the change it describes.
"""

import json
import logging
from datetime import datetime
from typing import Any

from sqlalchemy import desc

from inventory.exceptions import ResourceNotFoundError
from inventory.extensions import db
from inventory.models.audit import AuditLog
from inventory.utils import paginate

logger = logging.getLogger(__name__)


def _to_json(value: dict[str, Any] | None) -> str | None:
    # Dates and Decimals fall back to their string form.
    return json.dumps(value, default=str) if value else None


# -- Write audit entries ---------------------------------------------------

def log_change(
    user_id: int | None,
    action_type: str,
    entity_type: str,
    entity_id: int | None,
    previous_value: dict[str, Any] | None = None,
    new_value: dict[str, Any] | None = None,
    asset_id: int | None = None,
    details: str | None = None,
) -> AuditLog:
    """
    Record a data change in the audit log.

    Args:
        user_id:        ID of the user who made the change, or None for
                        system actions (e.g., CLI commands).
        action_type:    CREATE, UPDATE, DELETE, RESTORE, STATUS_CHANGE,
                        ASSIGN, UNASSIGN or MIGRATE.
        entity_type:    Entity name (e.g., 'asset', 'asset_po').
        entity_id:      Primary key of the affected record.
        previous_value: Dict of the record state before the change.
        new_value:      Dict of the record state after the change.
        asset_id:       Asset the change concerns, if any.
        details:        Short human-readable description.

    Returns:
        The newly created AuditLog record.
    """
    entry = AuditLog(
        asset_id=asset_id,
        user_id=user_id,
        action_type=action_type,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details[:1000] if details else None,
        previous_value=_to_json(previous_value),
        new_value=_to_json(new_value),
    )
    db.session.add(entry)
    db.session.flush()  # Ensure the entry gets an ID immediately.

    logger.info(
        "Audit: %s %s:%s by user %s",
        action_type,
        entity_type,
        entity_id,
        user_id,
    )
    return entry


def log_asset_action(
    asset_id: int,
    action_type: str,
    details: str | None = None,
    user_id: int | None = None,
    previous_value: dict[str, Any] | None = None,
    new_value: dict[str, Any] | None = None,
) -> AuditLog:
    """Record an action against a single asset."""
    return log_change(
        user_id=user_id,
        action_type=action_type,
        entity_type="asset",
        entity_id=asset_id,
        previous_value=previous_value,
        new_value=new_value,
        asset_id=asset_id,
        details=details,
    )


# -- Query audit logs ------------------------------------------------------

def get_audit_logs(
    page: int = 1,
    per_page: int | None = 50,
    asset_id: int | None = None,
    user_id: int | None = None,
    action_type: str | None = None,
    entity_type: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
):
    """
    Query audit logs with optional filters and pagination.

    Args:
        page:        Page number (1-indexed).
        per_page:    Records per page.
        asset_id:    Filter by the asset the change concerns.
        user_id:     Filter by the user who made the change.
        action_type: Filter by action (CREATE, UPDATE, DELETE, etc.).
        entity_type: Filter by entity (e.g., 'asset_po').
        start_date:  Include only entries on or after this datetime.
        end_date:    Include only entries on or before this datetime.

    Returns:
        A SQLAlchemy pagination object with ``.items``, ``.pages``,
        ``.total``, etc.
    """
    query = AuditLog.query.order_by(desc(AuditLog.created_at), desc(AuditLog.id))

    # Apply optional filters.
    if asset_id is not None:
        query = query.filter(AuditLog.asset_id == asset_id)
    if user_id is not None:
        query = query.filter(AuditLog.user_id == user_id)
    if action_type:
        query = query.filter(AuditLog.action_type == action_type)
    if entity_type:
        query = query.filter(AuditLog.entity_type == entity_type)
    if start_date:
        query = query.filter(AuditLog.created_at >= start_date)
    if end_date:
        query = query.filter(AuditLog.created_at <= end_date)

    return paginate(query, page, per_page)


def get_audit_log(log_id: int) -> AuditLog:
    """Return one audit entry or raise ``ResourceNotFoundError``."""
    entry = db.session.get(AuditLog, log_id)
    if entry is None:
        raise ResourceNotFoundError("AuditLog", "id", log_id)
    return entry


def get_distinct_entity_types() -> list[str]:
    """Return a sorted list of distinct entity_type values in the audit log."""
    rows = (
        db.session.query(AuditLog.entity_type)
        .distinct()
        .order_by(AuditLog.entity_type)
        .all()
    )
    return [row[0] for row in rows]


def delete_audit_log(log_id: int) -> None:
    """Administratively remove one audit entry."""
    entry = get_audit_log(log_id)
    db.session.delete(entry)
    db.session.commit()
    logger.warning("Deleted audit log entry %d", log_id)
