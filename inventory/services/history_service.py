"""
History service — status and assignment history of assets.

History rows are append-only.  The ``record_*`` / ``open_assignment`` /
``close_open_assignments`` helpers add rows to the current session
without committing; the asset and assignment services call them inside
their own unit of work.
"""

import logging
from datetime import datetime, timezone

from inventory.exceptions import ResourceNotFoundError, ValidationFailedError
from inventory.extensions import db
from inventory.models.asset import ASSET_STATUSES, Asset
from inventory.models.history import AssetAssignmentHistory, AssetStatusHistory
from inventory.models.user import User
from inventory.services import audit_service
from inventory.utils import coerce_fields, paginate

logger = logging.getLogger(__name__)


# -- Helpers used inside other services' transactions ---------------------

def record_status_change(
    asset_id: int,
    status: str,
    changed_by: int | None = None,
    remarks: str | None = None,
) -> AssetStatusHistory:
    """Add a status history row (no commit)."""
    entry = AssetStatusHistory(
        asset_id=asset_id, status=status, changed_by=changed_by, remarks=remarks
    )
    db.session.add(entry)
    return entry


def close_open_assignments(asset_id: int, when: datetime | None = None) -> int:
    """Stamp ``unassigned_date`` on every open assignment of an asset (no commit)."""
    when = when or datetime.now(timezone.utc)
    open_rows = AssetAssignmentHistory.query.filter(
        AssetAssignmentHistory.asset_id == asset_id,
        AssetAssignmentHistory.unassigned_date.is_(None),
    ).all()
    for row in open_rows:
        row.unassigned_date = when
    return len(open_rows)


def open_assignment(
    asset_id: int, user_id: int, remarks: str | None = None
) -> AssetAssignmentHistory:
    """Add an open assignment row (no commit)."""
    entry = AssetAssignmentHistory(asset_id=asset_id, user_id=user_id, remarks=remarks)
    db.session.add(entry)
    return entry


# =========================================================================
# Status history
# =========================================================================

def get_status_history(asset_id: int | None = None, page: int = 1, per_page: int | None = None):
    query = AssetStatusHistory.query.order_by(
        AssetStatusHistory.change_date.desc(), AssetStatusHistory.id.desc()
    )
    if asset_id is not None:
        query = query.filter(AssetStatusHistory.asset_id == asset_id)
    return paginate(query, page, per_page)


def get_status_history_entry(entry_id: int) -> AssetStatusHistory:
    entry = db.session.get(AssetStatusHistory, entry_id)
    if entry is None:
        raise ResourceNotFoundError("AssetStatusHistory", "id", entry_id)
    return entry


def create_status_history(data: dict, user_id: int | None = None) -> AssetStatusHistory:
    """Add a manual status history entry for an existing asset."""
    fields = coerce_fields(
        AssetStatusHistory, data, ("asset_id", "status", "changed_by", "remarks")
    )
    _require_asset(fields.get("asset_id"))
    if fields.get("status") not in ASSET_STATUSES:
        raise ValidationFailedError(f"Invalid status: '{fields.get('status')}'")
    entry = record_status_change(
        fields["asset_id"],
        fields["status"],
        changed_by=fields.get("changed_by", user_id),
        remarks=fields.get("remarks"),
    )
    db.session.commit()
    logger.info("Added status history %s for asset %d", entry.status, entry.asset_id)
    return entry


def delete_status_history(entry_id: int, user_id: int | None = None) -> None:
    entry = get_status_history_entry(entry_id)
    audit_service.log_change(
        user_id=user_id,
        action_type="DELETE",
        entity_type="asset_status_history",
        entity_id=entry.id,
        previous_value=entry.to_dict(),
        asset_id=entry.asset_id,
    )
    db.session.delete(entry)
    db.session.commit()
    logger.warning("Deleted status history entry %d", entry_id)


# =========================================================================
# Assignment history
# =========================================================================

def get_assignment_history(
    asset_id: int | None = None,
    user_id: int | None = None,
    page: int = 1,
    per_page: int | None = None,
):
    query = AssetAssignmentHistory.query.order_by(
        AssetAssignmentHistory.assigned_date.desc(), AssetAssignmentHistory.id.desc()
    )
    if asset_id is not None:
        query = query.filter(AssetAssignmentHistory.asset_id == asset_id)
    if user_id is not None:
        query = query.filter(AssetAssignmentHistory.user_id == user_id)
    return paginate(query, page, per_page)


def get_assignment_history_entry(entry_id: int) -> AssetAssignmentHistory:
    entry = db.session.get(AssetAssignmentHistory, entry_id)
    if entry is None:
        raise ResourceNotFoundError("AssetAssignmentHistory", "id", entry_id)
    return entry


def create_assignment_history(data: dict) -> AssetAssignmentHistory:
    """Add a manual assignment history entry (e.g., back-filled records)."""
    fields = coerce_fields(
        AssetAssignmentHistory,
        data,
        ("asset_id", "user_id", "assigned_date", "unassigned_date", "remarks"),
    )
    _require_asset(fields.get("asset_id"))
    if fields.get("user_id") is None or db.session.get(User, fields["user_id"]) is None:
        raise ResourceNotFoundError("User", "id", fields.get("user_id"))
    if (
        fields.get("assigned_date")
        and fields.get("unassigned_date")
        and fields["unassigned_date"] < fields["assigned_date"]
    ):
        raise ValidationFailedError("Unassigned date cannot be before assigned date")

    entry = AssetAssignmentHistory(**fields)
    db.session.add(entry)
    db.session.commit()
    logger.info(
        "Added assignment history for asset %d, user %d", entry.asset_id, entry.user_id
    )
    return entry


def delete_assignment_history(entry_id: int, user_id: int | None = None) -> None:
    entry = get_assignment_history_entry(entry_id)
    audit_service.log_change(
        user_id=user_id,
        action_type="DELETE",
        entity_type="asset_assignment_history",
        entity_id=entry.id,
        previous_value=entry.to_dict(),
        asset_id=entry.asset_id,
    )
    db.session.delete(entry)
    db.session.commit()
    logger.warning("Deleted assignment history entry %d", entry_id)


def _require_asset(asset_id: int | None) -> Asset:
    asset = db.session.get(Asset, asset_id) if asset_id is not None else None
    if asset is None:
        raise ResourceNotFoundError("Asset", "id", asset_id)
    return asset
