"""
Purchase order service — PO maintenance and the cascading operations
that keep assets consistent with their PO.

Assets link to a PO by ``po_number``, so three operations touch many
rows at once:

  - ``migrate_po_number``: re-create the PO under a new number and
    repoint every asset to it.
  - ``update_po``: edit a PO in place, repointing assets when the
    number changes and copying procurement fields onto them.
  - ``delete_po_with_cascade``: soft-delete the PO's assets and remove
    the PO.

Each of these commits exactly once; any failure rolls the session back
so no partial state is left behind.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta

from sqlalchemy import or_

from inventory.exceptions import ConflictError, ResourceNotFoundError, ValidationFailedError
from inventory.extensions import db
from inventory.models.asset import STATUS_ACTIVE, STATUS_IN_REPAIR, Asset
from inventory.models.procurement import ACQUISITION_RENTED, ACQUISITION_TYPES, AssetPO
from inventory.services import audit_service, vendor_service
from inventory.utils import apply_changes, coerce_fields, is_blank, paginate

logger = logging.getLogger(__name__)

_PO_FIELDS = ("po_number",) + AssetPO.COPY_FIELDS

# PO fields copied onto every linked asset when the PO is edited.
CASCADED_FIELDS = (
    "invoice_number",
    "acquisition_date",
    "owner_type",
    "acquisition_type",
    "lease_end_date",
    "rental_amount",
    "acquisition_price",
    "depreciation_pct",
    "current_price",
    "min_contract_period",
    "vendor_id",
)


# =========================================================================
# Result types
# =========================================================================

@dataclass
class POMigrationResult:
    """Outcome of ``migrate_po_number``."""

    old_po_number: str
    new_po_number: str
    new_po: AssetPO
    assets_updated: int
    status: str = "SUCCESS"

    @property
    def message(self) -> str:
        return (
            f"Successfully migrated PO number from '{self.old_po_number}' to "
            f"'{self.new_po_number}'. Updated {self.assets_updated} asset records."
        )

    def to_dict(self) -> dict:
        return {
            "old_po_number": self.old_po_number,
            "new_po_number": self.new_po_number,
            "new_po": self.new_po.to_dict(),
            "assets_updated": self.assets_updated,
            "status": self.status,
            "message": self.message,
        }


@dataclass
class PODeletionWarning:
    """What deleting a PO would take with it."""

    po_number: str
    linked_assets: list[Asset]

    @property
    def linked_assets_count(self) -> int:
        return len(self.linked_assets)

    @property
    def has_linked_assets(self) -> bool:
        return bool(self.linked_assets)

    @property
    def warning_message(self) -> str:
        if self.has_linked_assets:
            return (
                f"Warning: This PO has {self.linked_assets_count} linked assets "
                "that will also be deleted. This action cannot be undone."
            )
        return "This PO has no linked assets and can be safely deleted."

    def to_dict(self) -> dict:
        return {
            "po_number": self.po_number,
            "linked_assets": [asset.to_dict() for asset in self.linked_assets],
            "linked_assets_count": self.linked_assets_count,
            "has_linked_assets": self.has_linked_assets,
            "warning_message": self.warning_message,
        }


@dataclass
class AssetDeletionBlocker:
    asset_id: int
    name: str
    serial_number: str | None
    status: str
    assigned_to: str | None
    reason: str

    def to_dict(self) -> dict:
        return dict(self.__dict__)


@dataclass
class PODeletionConflict:
    """Linked assets whose state argues against deleting the PO."""

    po_number: str
    total_assets: int
    blocking_assets: list[AssetDeletionBlocker] = field(default_factory=list)

    @property
    def message(self) -> str:
        return (
            f"Cannot delete PO due to {len(self.blocking_assets)} dependent "
            "assets with blocking conditions"
        )

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "po_number": self.po_number,
            "total_assets": self.total_assets,
            "blocking_assets_count": len(self.blocking_assets),
            "blocking_assets": [b.to_dict() for b in self.blocking_assets],
        }


@dataclass
class POSummary:
    po_number: str
    total_devices: int
    linked_assets_count: int

    @property
    def remaining_assets(self) -> int:
        return max(0, self.total_devices - self.linked_assets_count)

    @property
    def can_create_more_assets(self) -> bool:
        return self.remaining_assets > 0

    def to_dict(self) -> dict:
        return {
            "po_number": self.po_number,
            "total_devices": self.total_devices,
            "linked_assets_count": self.linked_assets_count,
            "remaining_assets": self.remaining_assets,
            "can_create_more_assets": self.can_create_more_assets,
        }


# =========================================================================
# Lookup
# =========================================================================

def get_po_by_id(po_id: int) -> AssetPO | None:
    return db.session.get(AssetPO, po_id)


def get_po(po_id: int) -> AssetPO:
    po = get_po_by_id(po_id)
    if po is None:
        raise ResourceNotFoundError("AssetPO", "id", po_id)
    return po


def get_po_by_number_or_none(po_number: str) -> AssetPO | None:
    """Return the PO with this exact number, or None."""
    return AssetPO.query.filter_by(po_number=po_number).first()


def get_po_by_number(po_number: str) -> AssetPO:
    po = get_po_by_number_or_none(po_number)
    if po is None:
        raise ResourceNotFoundError("AssetPO", "PO number", po_number)
    return po


def get_pos(page: int = 1, per_page: int | None = None, vendor_id: int | None = None):
    query = AssetPO.query.order_by(AssetPO.created_at.desc(), AssetPO.id.desc())
    if vendor_id is not None:
        query = query.filter(AssetPO.vendor_id == vendor_id)
    return paginate(query, page, per_page)


def search_pos(term: str, page: int = 1, per_page: int | None = None):
    """Case-insensitive match on PO number or invoice number."""
    pattern = f"%{term}%"
    query = AssetPO.query.filter(
        or_(AssetPO.po_number.ilike(pattern), AssetPO.invoice_number.ilike(pattern))
    ).order_by(AssetPO.po_number)
    return paginate(query, page, per_page)


def get_po_numbers() -> list[str]:
    rows = db.session.query(AssetPO.po_number).order_by(AssetPO.po_number).all()
    return [row[0] for row in rows]


def get_leases_expiring(days_ahead: int = 30, today: date | None = None) -> list[AssetPO]:
    """Rented POs whose lease ends between today and ``days_ahead`` from now."""
    start = today or date.today()
    end = start + timedelta(days=days_ahead)
    return (
        AssetPO.query.filter(
            AssetPO.acquisition_type == ACQUISITION_RENTED,
            AssetPO.lease_end_date.isnot(None),
            AssetPO.lease_end_date >= start,
            AssetPO.lease_end_date <= end,
        )
        .order_by(AssetPO.lease_end_date)
        .all()
    )


def get_linked_assets(po_number: str, include_deleted: bool = False) -> list[Asset]:
    query = Asset.query.filter(Asset.po_number == po_number)
    if not include_deleted:
        query = query.filter(Asset.is_deleted.is_(False))
    return query.order_by(Asset.id).all()


def get_po_summary(po_number: str) -> POSummary:
    po = get_po_by_number(po_number)
    linked = Asset.query.filter(
        Asset.po_number == po_number, Asset.is_deleted.is_(False)
    ).count()
    summary = POSummary(
        po_number=po_number,
        total_devices=po.total_devices or 0,
        linked_assets_count=linked,
    )
    logger.info(
        "PO summary for %s: total=%d, linked=%d, remaining=%d",
        po_number,
        summary.total_devices,
        summary.linked_assets_count,
        summary.remaining_assets,
    )
    return summary


# =========================================================================
# Field rules
# =========================================================================

def normalize_acquisition_type(value: str | None) -> str:
    """
    Return ``Bought`` or ``Rented`` for any casing of those words.

    Raises:
        ValidationFailedError: If the value is blank or not recognised.
    """
    if is_blank(value):
        raise ValidationFailedError("Acquisition type is required")
    for valid in ACQUISITION_TYPES:
        if value.strip().lower() == valid.lower():
            return valid
    raise ValidationFailedError(
        f"Invalid acquisition type: '{value}'. Valid values are: "
        f"{', '.join(ACQUISITION_TYPES)} (case-insensitive)"
    )


def warranty_date_errors(
    warranty_expiry: date | None,
    acquisition_date: date | None,
    today: date | None = None,
) -> list[str]:
    if warranty_expiry is None:
        return []
    errors = []
    if acquisition_date is not None and warranty_expiry < acquisition_date:
        errors.append(
            f"Warranty expiry date ({warranty_expiry}) cannot be before "
            f"acquisition date ({acquisition_date})"
        )
    today = today or date.today()
    try:
        ten_years_ago = today.replace(year=today.year - 10)
    except ValueError:
        # 29 February
        ten_years_ago = today.replace(year=today.year - 10, day=28)
    if warranty_expiry < ten_years_ago:
        errors.append(
            f"Warranty expiry date ({warranty_expiry}) seems too far in the "
            "past (more than 10 years ago)"
        )
    return errors


def _validate_po_fields(fields: dict, creating: bool) -> None:
    errors = []
    if (creating or "po_number" in fields) and is_blank(fields.get("po_number")):
        errors.append("PO number is required")
    if creating or "acquisition_type" in fields:
        try:
            fields["acquisition_type"] = normalize_acquisition_type(
                fields.get("acquisition_type")
            )
        except ValidationFailedError as exc:
            errors.extend(exc.errors)
    errors.extend(
        warranty_date_errors(
            fields.get("warranty_expiry_date"), fields.get("acquisition_date")
        )
    )
    if errors:
        raise ValidationFailedError(errors)
    if fields.get("vendor_id") is not None:
        vendor_service.get_vendor(fields["vendor_id"])


# =========================================================================
# Create / update / delete
# =========================================================================

def create_po(data: dict, user_id: int | None = None) -> AssetPO:
    """
    Create a purchase order.

    Raises:
        ValidationFailedError: Missing number, bad acquisition type or
                               inconsistent warranty date.
        ConflictError:         The PO number is already in use.
    """
    fields = coerce_fields(AssetPO, data, _PO_FIELDS)
    _validate_po_fields(fields, creating=True)
    if get_po_by_number_or_none(fields["po_number"]) is not None:
        raise ConflictError(f"PO number '{fields['po_number']}' already exists")

    po = AssetPO(**fields)
    db.session.add(po)
    db.session.flush()

    audit_service.log_change(
        user_id=user_id,
        action_type="CREATE",
        entity_type="asset_po",
        entity_id=po.id,
        new_value={"po_number": po.po_number, "acquisition_type": po.acquisition_type},
    )
    db.session.commit()

    logger.info("Created PO %s (id=%d)", po.po_number, po.id)
    return po


def update_po(po_id: int, data: dict, user_id: int | None = None) -> tuple[AssetPO, int]:
    """
    Edit a PO and carry the change to its assets.

    A new ``po_number`` repoints every asset (deleted or not) to the new
    number; procurement fields in ``CASCADED_FIELDS`` that change are
    copied onto the non-deleted linked assets.

    Returns:
        ``(po, affected_asset_count)``.

    Raises:
        ConflictError: If the new PO number belongs to another PO.
    """
    po = get_po(po_id)
    fields = coerce_fields(AssetPO, data, _PO_FIELDS)
    _validate_po_fields(fields, creating=False)

    old_number = po.po_number
    new_number = fields.pop("po_number", old_number)
    renumbering = new_number != old_number
    if renumbering and get_po_by_number_or_none(new_number) is not None:
        raise ConflictError(
            f"Cannot update PO number to '{new_number}' - this PO number "
            "already exists in another AssetPO record"
        )

    try:
        repointed = 0
        if renumbering:
            repointed = _renumber_in_place(po, old_number, new_number)

        previous, new = apply_changes(po, fields)
        cascaded = 0
        cascade_values = {k: v for k, v in new.items() if k in CASCADED_FIELDS}
        if cascade_values:
            cascaded = (
                Asset.query.filter(
                    Asset.po_number == po.po_number,
                    Asset.is_deleted.is_(False),
                ).update(cascade_values, synchronize_session="fetch")
            )

        if renumbering:
            previous["po_number"] = old_number
            new["po_number"] = new_number
        audit_service.log_change(
            user_id=user_id,
            action_type="UPDATE",
            entity_type="asset_po",
            entity_id=po.id,
            previous_value=previous,
            new_value=new,
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.error("Update of PO %s failed; rolled back", old_number, exc_info=True)
        raise

    affected = max(repointed, cascaded)
    logger.info(
        "Updated PO %s (now %s): %d assets affected", old_number, po.po_number, affected
    )
    return po, affected


def _renumber_in_place(po: AssetPO, old_number: str, new_number: str) -> int:
    """
    Change a PO's number while assets reference it (no flush-time FK
    violation): detach the assets, rename, then re-attach.
    """
    asset_ids = [
        row[0]
        for row in db.session.query(Asset.id).filter(Asset.po_number == old_number)
    ]
    if asset_ids:
        Asset.query.filter(Asset.id.in_(asset_ids)).update(
            {"po_number": None}, synchronize_session="fetch"
        )
    po.po_number = new_number
    db.session.flush()
    if asset_ids:
        Asset.query.filter(Asset.id.in_(asset_ids)).update(
            {"po_number": new_number}, synchronize_session="fetch"
        )
    return len(asset_ids)


def delete_po(po_id: int, user_id: int | None = None) -> None:
    """
    Delete a PO that no asset references.

    Raises:
        ConflictError: If any asset still carries the PO number; use
                       ``delete_po_with_cascade`` instead.
    """
    po = get_po(po_id)
    referencing = Asset.query.filter(Asset.po_number == po.po_number).count()
    if referencing:
        raise ConflictError(
            f"Cannot delete PO {po.po_number}: {referencing} assets reference it"
        )
    audit_service.log_change(
        user_id=user_id,
        action_type="DELETE",
        entity_type="asset_po",
        entity_id=po.id,
        previous_value=po.to_dict(),
    )
    db.session.delete(po)
    db.session.commit()
    logger.info("Deleted PO %s", po.po_number)


# =========================================================================
# Cascading operations
# =========================================================================

def migrate_po_number(old_po_number: str, new_po_number: str, user_id: int | None = None) -> POMigrationResult:
    """
    Move a PO and all of its assets to a new PO number.

    Steps: look up the old PO, check the new number is free, create a
    copy of the PO under the new number, repoint every asset that
    references the old number, delete the old PO, commit.

    Raises:
        ValidationFailedError: Blank new number, or same as the old one.
        ResourceNotFoundError: No PO has ``old_po_number``.
        ConflictError:         ``new_po_number`` is already in use.
    """
    logger.info("PO number migration: '%s' -> '%s'", old_po_number, new_po_number)

    if is_blank(new_po_number):
        raise ValidationFailedError("New PO number is required")
    new_po_number = new_po_number.strip()
    if new_po_number == old_po_number:
        raise ValidationFailedError("New PO number must differ from the old PO number")

    original = get_po_by_number(old_po_number)
    if get_po_by_number_or_none(new_po_number) is not None:
        raise ConflictError(f"PO number '{new_po_number}' already exists")

    try:
        replacement = AssetPO(
            po_number=new_po_number,
            **{name: getattr(original, name) for name in AssetPO.COPY_FIELDS},
        )
        db.session.add(replacement)
        db.session.flush()

        # Deleted assets are repointed too so none is left referencing
        # the row about to be removed.
        assets_updated = Asset.query.filter(
            Asset.po_number == old_po_number
        ).update({"po_number": new_po_number}, synchronize_session="fetch")

        original_id = original.id
        db.session.delete(original)
        audit_service.log_change(
            user_id=user_id,
            action_type="MIGRATE",
            entity_type="asset_po",
            entity_id=replacement.id,
            previous_value={"id": original_id, "po_number": old_po_number},
            new_value={"id": replacement.id, "po_number": new_po_number},
            details=f"Repointed {assets_updated} assets",
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.error(
            "PO number migration '%s' -> '%s' failed; rolled back",
            old_po_number,
            new_po_number,
            exc_info=True,
        )
        raise

    result = POMigrationResult(
        old_po_number=old_po_number,
        new_po_number=new_po_number,
        new_po=replacement,
        assets_updated=assets_updated,
    )
    logger.info(result.message)
    return result


def get_po_deletion_warning(po_number: str) -> PODeletionWarning:
    get_po_by_number(po_number)
    warning = PODeletionWarning(po_number=po_number, linked_assets=get_linked_assets(po_number))
    logger.info(
        "Deletion warning for PO %s: %d linked assets",
        po_number,
        warning.linked_assets_count,
    )
    return warning


def _blocking_reasons(asset: Asset, today: date) -> list[str]:
    reasons = []
    if asset.current_user_id is not None:
        if asset.current_user is not None:
            reasons.append(
                f"Asset assigned to user: {asset.current_user.full_name_or_office_name}"
            )
        else:
            reasons.append(f"Asset assigned to user ID: {asset.current_user_id}")
    if asset.status == STATUS_ACTIVE:
        reasons.append("Asset is currently active/in use")
    elif asset.status == STATUS_IN_REPAIR:
        reasons.append("Asset is currently in repair")
    if asset.warranty_expiry is not None and asset.warranty_expiry > today:
        reasons.append(f"Asset has active warranty until {asset.warranty_expiry}")
    if asset.lease_end_date is not None and asset.lease_end_date > today:
        reasons.append(f"Asset has active lease until {asset.lease_end_date}")
    return reasons


def check_po_deletion_conflicts(po_number: str, today: date | None = None) -> PODeletionConflict | None:
    """
    List linked assets that are still in use.

    An asset blocks deletion when it is assigned to a user, ACTIVE or
    IN_REPAIR, or has a warranty or lease ending after today.

    Returns:
        A ``PODeletionConflict``, or None when nothing blocks.
    """
    get_po_by_number(po_number)
    today = today or date.today()
    linked = get_linked_assets(po_number)

    blockers = []
    for asset in linked:
        reasons = _blocking_reasons(asset, today)
        if reasons:
            blockers.append(
                AssetDeletionBlocker(
                    asset_id=asset.id,
                    name=asset.name,
                    serial_number=asset.serial_number,
                    status=asset.status,
                    assigned_to=(
                        asset.current_user.full_name_or_office_name
                        if asset.current_user
                        else None
                    ),
                    reason="; ".join(reasons),
                )
            )

    if not blockers:
        logger.info("No deletion conflicts for PO %s", po_number)
        return None
    logger.info("PO %s has %d blocking assets", po_number, len(blockers))
    return PODeletionConflict(
        po_number=po_number, total_assets=len(linked), blocking_assets=blockers
    )


def delete_po_with_cascade(po_number: str, force: bool = False, user_id: int | None = None) -> int:
    """
    Soft-delete every asset of a PO, then delete the PO.

    Args:
        force: Delete even if ``check_po_deletion_conflicts`` reports
               blocking assets.

    Returns:
        Number of assets soft-deleted.

    Raises:
        ResourceNotFoundError: Unknown PO number.
        ConflictError:         Blocking assets exist and ``force`` is off.
    """
    po = get_po_by_number(po_number)
    if not force and check_po_deletion_conflicts(po_number) is not None:
        raise ConflictError(
            "Cannot delete PO due to dependent assets with blocking conditions. "
            "Use the deletion check endpoint to get detailed conflict information."
        )

    try:
        deleted = Asset.query.filter(
            Asset.po_number == po_number, Asset.is_deleted.is_(False)
        ).update({"is_deleted": True}, synchronize_session="fetch")
        # Clear the reference on every row so the PO row can be removed.
        Asset.query.filter(Asset.po_number == po_number).update(
            {"po_number": None}, synchronize_session="fetch"
        )

        audit_service.log_change(
            user_id=user_id,
            action_type="DELETE",
            entity_type="asset_po",
            entity_id=po.id,
            previous_value=po.to_dict(),
            details=f"Cascade delete; {deleted} assets soft-deleted",
        )
        db.session.delete(po)
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.error("Cascade delete of PO %s failed; rolled back", po_number, exc_info=True)
        raise

    logger.info("Deleted PO %s and soft-deleted %d assets", po_number, deleted)
    return deleted


def delete_individual_asset(asset_id: int, user_id: int | None = None) -> bool:
    """
    Soft-delete one asset.

    Returns:
        True if the asset was deleted, False if it does not exist or is
        already deleted.
    """
    asset = db.session.get(Asset, asset_id)
    if asset is None or asset.is_deleted:
        logger.warning("Asset %s not found or already deleted", asset_id)
        return False

    asset.is_deleted = True
    audit_service.log_asset_action(
        asset_id, "DELETE", details="Soft-deleted", user_id=user_id
    )
    db.session.commit()
    logger.info("Soft-deleted asset %d", asset_id)
    return True
