"""
Asset service — creation (single and bulk), lookup, update, status
changes and the soft-delete lifecycle of assets.

Creation always goes through ``asset_validation.validate_asset_for_creation``;
ids the engine resolves (vendor from the PO, OS from the OS version,
make and type from the model) fill the asset's columns unless the
caller supplied them.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from inventory.exceptions import (
    ConflictError,
    InventoryError,
    ResourceNotFoundError,
    ValidationFailedError,
)
from inventory.extensions import db
from inventory.models.asset import (
    ASSET_STATUSES,
    STATUS_ACTIVE,
    STATUS_BROKEN,
    STATUS_CEASED,
    STATUS_IN_REPAIR,
    STATUS_IN_STOCK,
    Asset,
    AssetTagAssignment,
)
from inventory.models.history import AssetAssignmentHistory, AssetStatusHistory
from inventory.services import audit_service, history_service, po_service
from inventory.services.asset_validation import (
    AssetRequest,
    reference_errors,
    resolve_references,
    uniqueness_errors,
    validate_asset_for_creation,
)
from inventory.utils import apply_changes, coerce_fields, is_blank, paginate

logger = logging.getLogger(__name__)

# Accepted spellings for each lifecycle status (compared lower-case).
_STATUS_ALIASES = {
    "active": STATUS_ACTIVE,
    "in stock": STATUS_IN_STOCK,
    "in_stock": STATUS_IN_STOCK,
    "instock": STATUS_IN_STOCK,
    "in repair": STATUS_IN_REPAIR,
    "in_repair": STATUS_IN_REPAIR,
    "inrepair": STATUS_IN_REPAIR,
    "broken": STATUS_BROKEN,
    "ceased": STATUS_CEASED,
}


# =========================================================================
# Bulk result types
# =========================================================================

@dataclass
class BulkAssetError:
    index: int
    field: str
    message: str
    asset_identifier: str

    def to_dict(self) -> dict:
        return dict(self.__dict__)


@dataclass
class BulkAssetResult:
    """Outcome of a bulk creation: what was saved and what was not."""

    total_processed: int
    successful_assets: list[Asset] = field(default_factory=list)
    errors: list[BulkAssetError] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.successful_assets)

    @property
    def failure_count(self) -> int:
        return len(self.errors)

    def to_dict(self) -> dict:
        return {
            "total_processed": self.total_processed,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "successful_assets": [a.to_dict() for a in self.successful_assets],
            "errors": [e.to_dict() for e in self.errors],
        }


# =========================================================================
# Normalisation
# =========================================================================

def normalize_status(value: str | None) -> str:
    """
    Map a user-supplied status to one of ``ASSET_STATUSES``.

    Raises:
        ValidationFailedError: If the value is not a known status.
    """
    if is_blank(value):
        raise ValidationFailedError("Status is required")
    status = _STATUS_ALIASES.get(value.strip().lower())
    if status is None:
        raise ValidationFailedError(
            f"Invalid status: '{value}'. Valid values are: {', '.join(ASSET_STATUSES)}"
        )
    return status


def _normalize_category(value: str | None) -> str | None:
    return value.strip().upper() if value else value


# =========================================================================
# Lookup
# =========================================================================

def get_asset(asset_id: int) -> Asset:
    """Return a non-deleted asset, or raise ``ResourceNotFoundError``."""
    asset = db.session.get(Asset, asset_id)
    if asset is None or asset.is_deleted:
        raise ResourceNotFoundError("Asset", "id", asset_id)
    return asset


def get_assets(
    page: int = 1,
    per_page: int | None = None,
    status: str | None = None,
    asset_category: str | None = None,
    asset_type_id: int | None = None,
    current_user_id: int | None = None,
):
    """Return a paginated list of non-deleted assets, newest first."""
    query = Asset.query.filter(Asset.is_deleted.is_(False))
    if status:
        query = query.filter(Asset.status == normalize_status(status))
    if asset_category:
        query = query.filter(Asset.asset_category == _normalize_category(asset_category))
    if asset_type_id is not None:
        query = query.filter(Asset.asset_type_id == asset_type_id)
    if current_user_id is not None:
        query = query.filter(Asset.current_user_id == current_user_id)
    return paginate(query.order_by(Asset.id.desc()), page, per_page)


def search_assets(term: str, page: int = 1, per_page: int | None = None):
    """
    Case-insensitive substring search over name, serial number, IT
    asset code, MAC address and PO number of non-deleted assets.
    """
    pattern = f"%{term.strip()}%"
    query = Asset.query.filter(
        Asset.is_deleted.is_(False),
        or_(
            Asset.name.ilike(pattern),
            Asset.serial_number.ilike(pattern),
            Asset.it_asset_code.ilike(pattern),
            Asset.mac_address.ilike(pattern),
            Asset.po_number.ilike(pattern),
        ),
    ).order_by(Asset.name)
    return paginate(query, page, per_page)


def get_all_assets() -> list[Asset]:
    """Every non-deleted asset, by id; used for exports."""
    return Asset.query.filter(Asset.is_deleted.is_(False)).order_by(Asset.id).all()


def get_deleted_assets(page: int = 1, per_page: int | None = None):
    query = Asset.query.filter(Asset.is_deleted.is_(True)).order_by(Asset.id.desc())
    return paginate(query, page, per_page)


def get_assets_by_po(po_number: str) -> list[Asset]:
    po_service.get_po_by_number(po_number)
    return po_service.get_linked_assets(po_number)


# =========================================================================
# Creation
# =========================================================================

def _build_asset(request: AssetRequest, index: int) -> Asset:
    """
    Validate ``request`` and return an unsaved Asset.

    Raises:
        ValidationFailedError: With every problem found.
    """
    errors = []
    if is_blank(request.name):
        errors.append("Asset name is required")
    status = STATUS_IN_STOCK
    if not is_blank(request.status):
        try:
            status = normalize_status(request.status)
        except ValidationFailedError as exc:
            errors.extend(exc.errors)

    result = validate_asset_for_creation(request, index)
    errors.extend(result.errors)
    if errors:
        raise ValidationFailedError(errors)

    fields = request.to_fields()
    # Resolved ids only fill gaps; explicit values win.
    for column, resolved in result.context.as_fields().items():
        if resolved is not None and fields.get(column) is None:
            fields[column] = resolved
    fields["status"] = status
    fields["asset_category"] = _normalize_category(fields.get("asset_category"))
    return Asset(**fields)


def _persist_new(asset: Asset, user_id: int | None, action_type: str, details: str) -> Asset:
    db.session.add(asset)
    db.session.flush()
    history_service.record_status_change(
        asset.id, asset.status, changed_by=user_id, remarks="Initial status"
    )
    if asset.current_user_id is not None:
        history_service.open_assignment(asset.id, asset.current_user_id)
    audit_service.log_asset_action(
        asset.id,
        action_type,
        details=details,
        user_id=user_id,
        new_value={"name": asset.name, "serial_number": asset.serial_number},
    )
    db.session.commit()
    return asset


def create_asset(data: dict | AssetRequest, user_id: int | None = None) -> Asset:
    """
    Create one asset.

    Raises:
        ValidationFailedError: Carrying all validation errors.
    """
    request = data if isinstance(data, AssetRequest) else AssetRequest.from_dict(data)
    asset = _build_asset(request, 0)
    _persist_new(asset, user_id, "CREATE", f"Asset created with name: {asset.name}")
    logger.info("Created asset %d (%s)", asset.id, asset.name)
    return asset


def create_assets_in_bulk(
    items: list[dict | AssetRequest],
    user_id: int | None = None,
    po_number: str | None = None,
) -> BulkAssetResult:
    """
    Create many assets; a failing item is recorded and skipped.

    Each item is validated against the store as it stands after the
    previous items were saved, so duplicates inside one batch are
    caught too.

    Args:
        po_number: If given, forced onto every item.

    Raises:
        ValidationFailedError: If ``items`` is empty.
    """
    if not items:
        raise ValidationFailedError("Asset request list cannot be null or empty")

    result = BulkAssetResult(total_processed=len(items))
    action = "BULK_CREATE_BY_PO" if po_number else "BULK_CREATE"

    for index, item in enumerate(items):
        identifier = "unidentified asset"
        try:
            request = item if isinstance(item, AssetRequest) else AssetRequest.from_dict(item)
            if po_number:
                request.po_number = po_number
            identifier = request.serial_number or request.name or identifier
            asset = _build_asset(request, index)
            _persist_new(asset, user_id, action, f"Asset created via bulk operation with name: {asset.name}")
            result.successful_assets.append(asset)
        except ValidationFailedError as exc:
            logger.warning("Validation failed for asset[%d]: %s", index, exc.message)
            result.errors.append(
                BulkAssetError(index, "validation", exc.message, identifier)
            )
        except IntegrityError as exc:
            db.session.rollback()
            logger.error("Data integrity violation for asset[%d]", index, exc_info=True)
            result.errors.append(
                BulkAssetError(index, "dataIntegrity", str(exc.orig), identifier)
            )
        except InventoryError as exc:
            db.session.rollback()
            result.errors.append(BulkAssetError(index, "error", exc.message, identifier))

    logger.info(
        "Bulk asset creation: %d created, %d failed of %d",
        result.success_count,
        result.failure_count,
        result.total_processed,
    )
    return result


def create_assets_for_po(
    po_number: str, items: list[dict | AssetRequest], user_id: int | None = None
) -> BulkAssetResult:
    """Bulk-create assets that all belong to ``po_number``."""
    if is_blank(po_number):
        raise ValidationFailedError("PO Number cannot be null or empty")
    if not items:
        raise ValidationFailedError("Asset request list cannot be null or empty")
    po_service.get_po_by_number(po_number)
    return create_assets_in_bulk(items, user_id=user_id, po_number=po_number)


# =========================================================================
# Update
# =========================================================================

# Tags are changed through assignment_service only.
_UPDATABLE_FIELDS = tuple(
    name for name in AssetRequest.field_names() if name not in ("tags",)
)


def update_asset(asset_id: int, data: dict, user_id: int | None = None) -> Asset:
    """
    Partially update an asset.

    Only keys present in ``data`` are changed.  Serial number, IT asset
    code and MAC address are re-checked against other non-deleted
    assets; a changed status or holder is written to history.

    Raises:
        ResourceNotFoundError: Unknown or deleted asset.
        ValidationFailedError: Every problem with the new values.
    """
    asset = get_asset(asset_id)
    fields = coerce_fields(Asset, data, _UPDATABLE_FIELDS)

    errors = []
    if "name" in fields and is_blank(fields["name"]):
        errors.append("Asset name cannot be blank")
    if "status" in fields:
        try:
            fields["status"] = normalize_status(fields["status"])
        except ValidationFailedError as exc:
            errors.extend(exc.errors)
    if "asset_category" in fields:
        fields["asset_category"] = _normalize_category(fields["asset_category"])
    errors.extend(uniqueness_errors(fields, exclude_asset_id=asset_id))
    errors.extend(reference_errors(fields))
    resolution_errors, context = resolve_references(fields)
    errors.extend(resolution_errors)
    if errors:
        raise ValidationFailedError(errors)

    # A new PO, OS version or model re-derives the ids it implies unless
    # the same update sets them explicitly.
    for column, resolved in context.as_fields().items():
        if resolved is not None and column not in fields:
            fields[column] = resolved

    old_user_id = asset.current_user_id
    previous, new = apply_changes(asset, fields)
    if not new:
        return asset

    asset.updated_at = datetime.now(timezone.utc)
    if "status" in new:
        history_service.record_status_change(
            asset.id, asset.status, changed_by=user_id, remarks="Updated via asset edit"
        )
    if "current_user_id" in new:
        history_service.close_open_assignments(asset.id)
        if asset.current_user_id is not None:
            history_service.open_assignment(asset.id, asset.current_user_id)
        audit_service.log_asset_action(
            asset.id,
            "ASSIGN" if asset.current_user_id else "UNASSIGN",
            details=f"User changed from {old_user_id} to {asset.current_user_id}",
            user_id=user_id,
        )
    audit_service.log_asset_action(
        asset.id, "UPDATE", user_id=user_id, previous_value=previous, new_value=new
    )
    db.session.commit()

    logger.info("Updated asset %d: %s", asset.id, sorted(new))
    return asset


def update_asset_status(
    asset_id: int,
    status: str,
    remarks: str | None = None,
    user_id: int | None = None,
) -> Asset:
    """Change an asset's lifecycle status and record it in history."""
    asset = get_asset(asset_id)
    new_status = normalize_status(status)
    old_status = asset.status
    if new_status == old_status:
        return asset

    asset.status = new_status
    asset.updated_at = datetime.now(timezone.utc)
    history_service.record_status_change(
        asset.id, new_status, changed_by=user_id, remarks=remarks
    )
    audit_service.log_asset_action(
        asset.id,
        "STATUS_CHANGE",
        details=remarks,
        user_id=user_id,
        previous_value={"status": old_status},
        new_value={"status": new_status},
    )
    db.session.commit()

    logger.info("Asset %d status %s -> %s", asset.id, old_status, new_status)
    return asset


# =========================================================================
# Delete / restore
# =========================================================================

def delete_asset(asset_id: int, user_id: int | None = None) -> Asset:
    """
    Soft-delete an asset.

    Raises:
        ResourceNotFoundError: Unknown asset.
        ValidationFailedError: The asset is already deleted.
    """
    asset = db.session.get(Asset, asset_id)
    if asset is None:
        raise ResourceNotFoundError("Asset", "id", asset_id)
    if asset.is_deleted:
        raise ValidationFailedError(f"Asset {asset_id} is already deleted")

    asset.is_deleted = True
    asset.updated_at = datetime.now(timezone.utc)
    audit_service.log_asset_action(asset.id, "DELETE", details="Soft-deleted", user_id=user_id)
    db.session.commit()
    logger.info("Soft-deleted asset %d", asset_id)
    return asset


def restore_asset(asset_id: int, user_id: int | None = None) -> Asset:
    """
    Bring a soft-deleted asset back.

    Raises:
        ResourceNotFoundError: Unknown asset.
        ValidationFailedError: The asset is not deleted.
        ConflictError:         A live asset has taken one of its
                               identifiers in the meantime.
    """
    asset = db.session.get(Asset, asset_id)
    if asset is None:
        raise ResourceNotFoundError("Asset", "id", asset_id)
    if not asset.is_deleted:
        raise ValidationFailedError(f"Asset {asset_id} is not deleted")

    clashes = uniqueness_errors(
        {
            "serial_number": asset.serial_number,
            "it_asset_code": asset.it_asset_code,
            "mac_address": asset.mac_address,
        },
        exclude_asset_id=asset_id,
    )
    if clashes:
        raise ConflictError("; ".join(clashes))

    asset.is_deleted = False
    asset.updated_at = datetime.now(timezone.utc)
    audit_service.log_asset_action(asset.id, "RESTORE", details="Restored", user_id=user_id)
    db.session.commit()
    logger.info("Restored asset %d", asset_id)
    return asset


def permanently_delete_asset(asset_id: int, user_id: int | None = None) -> None:
    """
    Remove an asset row and its tag assignments and history.

    The audit trail is kept; its ``asset_id`` is not a foreign key.
    """
    asset = db.session.get(Asset, asset_id)
    if asset is None:
        raise ResourceNotFoundError("Asset", "id", asset_id)

    snapshot = asset.to_dict()
    AssetTagAssignment.query.filter_by(asset_id=asset_id).delete()
    AssetStatusHistory.query.filter_by(asset_id=asset_id).delete()
    AssetAssignmentHistory.query.filter_by(asset_id=asset_id).delete()
    db.session.delete(asset)
    audit_service.log_asset_action(
        asset_id, "DELETE", details="Permanently deleted", user_id=user_id,
        previous_value=snapshot,
    )
    db.session.commit()
    logger.warning("Permanently deleted asset %d", asset_id)
