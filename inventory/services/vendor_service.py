"""
Vendor service — CRUD and activation for suppliers.

A vendor that a purchase order or asset still references cannot be
deleted; deactivate it instead.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import or_

from inventory.exceptions import ConflictError, ResourceNotFoundError, ValidationFailedError
from inventory.extensions import db
from inventory.models.asset import Asset
from inventory.models.catalog import RECORD_STATUSES, STATUS_ACTIVE, STATUS_INACTIVE
from inventory.models.procurement import AssetPO, Vendor
from inventory.services import audit_service
from inventory.utils import apply_changes, coerce_fields, is_blank, paginate

logger = logging.getLogger(__name__)

_VENDOR_FIELDS = ("name", "contact_info", "status")


# -- Lookup ----------------------------------------------------------------

def get_vendor_by_id(vendor_id: int) -> Vendor | None:
    """Return a vendor by primary key, or None if not found."""
    return db.session.get(Vendor, vendor_id)


def get_vendor(vendor_id: int) -> Vendor:
    vendor = get_vendor_by_id(vendor_id)
    if vendor is None:
        raise ResourceNotFoundError("Vendor", "id", vendor_id)
    return vendor


def get_vendors(
    page: int = 1,
    per_page: int | None = None,
    search: str | None = None,
    status: str | None = None,
):
    """
    Return a paginated list of vendors, ordered by name.

    Args:
        search: Case-insensitive match on name or contact info.
        status: Restrict to ``Active`` or ``Inactive``.
    """
    query = Vendor.query.order_by(Vendor.name)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(Vendor.name.ilike(pattern), Vendor.contact_info.ilike(pattern))
        )
    if status:
        query = query.filter(Vendor.status == status)
    return paginate(query, page, per_page)


def get_active_vendors() -> list[Vendor]:
    return (
        Vendor.query.filter(Vendor.status == STATUS_ACTIVE)
        .order_by(Vendor.name)
        .all()
    )


# -- Create / update / delete ----------------------------------------------

def create_vendor(data: dict, user_id: int | None = None) -> Vendor:
    fields = coerce_fields(Vendor, data, _VENDOR_FIELDS)
    _validate(fields, creating=True)

    vendor = Vendor(**fields)
    db.session.add(vendor)
    db.session.flush()

    audit_service.log_change(
        user_id=user_id,
        action_type="CREATE",
        entity_type="vendor",
        entity_id=vendor.id,
        new_value={"name": vendor.name, "contact_info": vendor.contact_info},
    )
    db.session.commit()

    logger.info("Created vendor '%s' (id=%d)", vendor.name, vendor.id)
    return vendor


def update_vendor(vendor_id: int, data: dict, user_id: int | None = None) -> Vendor:
    vendor = get_vendor(vendor_id)
    fields = coerce_fields(Vendor, data, _VENDOR_FIELDS)
    _validate(fields, creating=False)

    previous, new = apply_changes(vendor, fields)
    if new:
        vendor.updated_at = datetime.now(timezone.utc)
        audit_service.log_change(
            user_id=user_id,
            action_type="UPDATE",
            entity_type="vendor",
            entity_id=vendor.id,
            previous_value=previous,
            new_value=new,
        )
        db.session.commit()
        logger.info("Updated vendor %d: %s", vendor.id, sorted(new))
    return vendor


def activate_vendor(vendor_id: int, user_id: int | None = None) -> Vendor:
    return update_vendor(vendor_id, {"status": STATUS_ACTIVE}, user_id)


def deactivate_vendor(vendor_id: int, user_id: int | None = None) -> Vendor:
    return update_vendor(vendor_id, {"status": STATUS_INACTIVE}, user_id)


def delete_vendor(vendor_id: int, user_id: int | None = None) -> None:
    """
    Hard-delete a vendor.

    Raises:
        ConflictError: If any PO or asset references the vendor.
    """
    vendor = get_vendor(vendor_id)

    po_count = AssetPO.query.filter_by(vendor_id=vendor_id).count()
    asset_count = Asset.query.filter(
        or_(
            Asset.vendor_id == vendor_id,
            Asset.extended_warranty_vendor_id == vendor_id,
        )
    ).count()
    if po_count or asset_count:
        raise ConflictError(
            f"Cannot delete vendor {vendor_id}: referenced by "
            f"{po_count} purchase orders and {asset_count} assets"
        )

    audit_service.log_change(
        user_id=user_id,
        action_type="DELETE",
        entity_type="vendor",
        entity_id=vendor.id,
        previous_value=vendor.to_dict(),
    )
    db.session.delete(vendor)
    db.session.commit()
    logger.info("Deleted vendor %d", vendor_id)


def _validate(fields: dict, creating: bool) -> None:
    errors = []
    if (creating or "name" in fields) and is_blank(fields.get("name")):
        errors.append("Vendor name is required")
    status = fields.get("status")
    if status is not None and status not in RECORD_STATUSES:
        errors.append(f"Invalid status: '{status}'")
    if errors:
        raise ValidationFailedError(errors)
