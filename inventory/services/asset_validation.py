"""
Asset validation and resolution engine.

``validate_asset_for_creation`` checks an ``AssetRequest`` before it is
written and derives the foreign keys the request implies but does not
carry (vendor from the PO, OS from the OS version, make and type from
the model).  It is not fail-fast: every check runs and every problem is
reported, in check order, so a bulk import can show all of an item's
errors at once.

Each check is a small function returning a ``_StepOutcome``; the
resolved ids are gathered into a frozen ``ResolutionContext`` once all
checks have run.  Lookups go by id through the owning service's
``get_*_by_id`` getter.
"""

import dataclasses
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from sqlalchemy import func

from inventory.models.asset import Asset
from inventory.services import catalog_service, po_service, user_service, vendor_service
from inventory.utils import coerce_fields, is_blank

logger = logging.getLogger(__name__)


# =========================================================================
# Request / result types
# =========================================================================

@dataclass
class AssetRequest:
    """Inbound data for one asset to be created."""

    name: str | None = None
    asset_category: str | None = None
    serial_number: str | None = None
    it_asset_code: str | None = None
    mac_address: str | None = None
    ipv4_address: str | None = None
    status: str | None = None
    owner_type: str | None = None
    acquisition_type: str | None = None
    inventory_location: str | None = None
    asset_type_id: int | None = None
    make_id: int | None = None
    model_id: int | None = None
    os_id: int | None = None
    os_version_id: int | None = None
    current_user_id: int | None = None
    vendor_id: int | None = None
    extended_warranty_vendor_id: int | None = None
    po_number: str | None = None
    invoice_number: str | None = None
    acquisition_date: date | None = None
    warranty_expiry: date | None = None
    extended_warranty_expiry: date | None = None
    lease_end_date: date | None = None
    license_name: str | None = None
    license_validity_period: date | None = None
    rental_amount: Decimal | None = None
    acquisition_price: Decimal | None = None
    depreciation_pct: Decimal | None = None
    current_price: Decimal | None = None
    min_contract_period: int | None = None
    tags: str | None = None

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in dataclasses.fields(cls))

    @classmethod
    def from_dict(cls, data: dict) -> "AssetRequest":
        """Build a request from a JSON payload, converting dates and numbers."""
        return cls(**coerce_fields(Asset, data, cls.field_names()))

    def to_fields(self) -> dict:
        """Return the supplied (non-None) values as model keyword args."""
        return {
            key: value
            for key, value in dataclasses.asdict(self).items()
            if value is not None
        }

    @property
    def identifier(self) -> str:
        """Best human-readable handle for error reports."""
        return (
            self.serial_number
            or self.it_asset_code
            or self.name
            or "unidentified asset"
        )


@dataclass(frozen=True)
class ResolutionContext:
    """Foreign keys derived during validation."""

    resolved_vendor_id: int | None = None
    resolved_extended_warranty_vendor_id: int | None = None
    resolved_os_id: int | None = None
    resolved_make_id: int | None = None
    resolved_type_id: int | None = None

    def as_fields(self) -> dict:
        """Map resolved ids onto the asset columns they fill."""
        return {
            "vendor_id": self.resolved_vendor_id,
            "extended_warranty_vendor_id": self.resolved_extended_warranty_vendor_id,
            "os_id": self.resolved_os_id,
            "make_id": self.resolved_make_id,
            "asset_type_id": self.resolved_type_id,
        }


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: tuple[str, ...]
    context: ResolutionContext

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "errors": list(self.errors),
            "context": dataclasses.asdict(self.context),
        }


@dataclass
class _StepOutcome:
    errors: list[str] = field(default_factory=list)
    resolved: dict[str, int] = field(default_factory=dict)


# =========================================================================
# Entry point
# =========================================================================

def validate_asset_for_creation(request: AssetRequest, index: int = 0) -> ValidationResult:
    """
    Run every creation check for ``request``.

    Args:
        request: The asset to be created.
        index:   Position in a bulk batch, used in log messages.

    Returns:
        A ``ValidationResult``; never raises.  An unexpected fault in a
        check is logged and reported as one extra error after those
        already collected.
    """
    errors: list[str] = []
    resolved: dict[str, int] = {}

    steps = (
        _check_uniqueness,
        _resolve_purchase_order,
        _resolve_os_from_version,
        _resolve_model_hierarchy,
        _check_direct_references,
    )
    try:
        for step in steps:
            outcome = step(request)
            errors.extend(outcome.errors)
            resolved.update(outcome.resolved)
    except Exception as exc:
        logger.error(
            "Unexpected error validating asset at index %d", index, exc_info=True
        )
        errors.append(f"Unexpected validation error: {exc}")

    context = ResolutionContext(**resolved)
    if errors:
        logger.debug("Asset at index %d failed validation: %s", index, errors)
    return ValidationResult(valid=not errors, errors=tuple(errors), context=context)


# =========================================================================
# Checks
# =========================================================================

def value_exists(column, value, exclude_asset_id: int | None = None) -> bool:
    """
    Return True if a non-deleted asset already has ``value`` in
    ``column`` (case-insensitive).
    """
    query = Asset.query.filter(
        Asset.is_deleted.is_(False),
        func.lower(column) == str(value).strip().lower(),
    )
    if exclude_asset_id is not None:
        query = query.filter(Asset.id != exclude_asset_id)
    return query.first() is not None


UNIQUE_FIELDS = (
    ("serial_number", Asset.serial_number, "Serial number"),
    ("it_asset_code", Asset.it_asset_code, "IT Asset Code"),
    ("mac_address", Asset.mac_address, "MAC Address"),
)


def uniqueness_errors(values: dict, exclude_asset_id: int | None = None) -> list[str]:
    """Duplicate-identifier messages for the given field values."""
    errors = []
    for key, column, label in UNIQUE_FIELDS:
        value = values.get(key)
        if is_blank(value):
            continue
        if value_exists(column, value, exclude_asset_id):
            errors.append(f"{label} already exists (case-insensitive): {value}")
    return errors


def _check_uniqueness(request: AssetRequest) -> _StepOutcome:
    return _StepOutcome(errors=uniqueness_errors(dataclasses.asdict(request)))


def _resolve_purchase_order(request: AssetRequest) -> _StepOutcome:
    outcome = _StepOutcome()
    if is_blank(request.po_number):
        return outcome

    po = po_service.get_po_by_number_or_none(request.po_number)
    if po is None:
        outcome.errors.append(f"Purchase Order not found: {request.po_number}")
        return outcome

    if po.vendor_id is None:
        logger.warning("PO %s has no vendor; nothing to resolve", po.po_number)
        return outcome

    # The PO's vendor fills both vendor slots.
    outcome.resolved["resolved_vendor_id"] = po.vendor_id
    outcome.resolved["resolved_extended_warranty_vendor_id"] = po.vendor_id
    return outcome


def _resolve_os_from_version(request: AssetRequest) -> _StepOutcome:
    outcome = _StepOutcome()
    version_id = request.os_version_id
    if version_id is None:
        return outcome

    version = catalog_service.get_os_version_by_id(version_id)
    if version is None:
        outcome.errors.append(f"OS Version ID {version_id} does not exist")
    elif version.os_id is None:
        outcome.errors.append(f"OS Version ID {version_id} has no associated OS")
    else:
        outcome.resolved["resolved_os_id"] = version.os_id
    return outcome


def _resolve_model_hierarchy(request: AssetRequest) -> _StepOutcome:
    outcome = _StepOutcome()
    model_id = request.model_id
    if model_id is None:
        return outcome

    model = catalog_service.get_asset_model_by_id(model_id)
    if model is None:
        outcome.errors.append(f"Asset Model ID {model_id} does not exist")
        return outcome
    if model.make_id is None:
        outcome.errors.append(f"Asset Model ID {model_id} has no associated Make")
        return outcome

    outcome.resolved["resolved_make_id"] = model.make_id
    make = catalog_service.get_asset_make_by_id(model.make_id)
    if make is None or make.type_id is None:
        # The make stays resolved even though the chain stops here.
        outcome.errors.append(
            f"Asset Make ID {model.make_id} has no associated Asset Type"
        )
    else:
        outcome.resolved["resolved_type_id"] = make.type_id
    return outcome


def resolve_references(values: dict) -> tuple[list[str], ResolutionContext]:
    """
    Run the PO, OS version and model lookups for a partial set of asset
    fields and return their errors along with the ids they imply.
    """
    request = AssetRequest(
        po_number=values.get("po_number"),
        os_version_id=values.get("os_version_id"),
        model_id=values.get("model_id"),
    )
    errors: list[str] = []
    resolved: dict[str, int] = {}
    for step in (_resolve_purchase_order, _resolve_os_from_version, _resolve_model_hierarchy):
        outcome = step(request)
        errors.extend(outcome.errors)
        resolved.update(outcome.resolved)
    return errors, ResolutionContext(**resolved)


_DIRECT_REFERENCES = (
    ("asset_type_id", "Asset Type ID", catalog_service.get_asset_type_by_id),
    ("make_id", "Asset Make ID", catalog_service.get_asset_make_by_id),
    ("current_user_id", "Current User ID", user_service.get_user_by_id),
    ("os_id", "OS ID", catalog_service.get_os_by_id),
    ("vendor_id", "Vendor ID", vendor_service.get_vendor_by_id),
    (
        "extended_warranty_vendor_id",
        "Extended Warranty Vendor ID",
        vendor_service.get_vendor_by_id,
    ),
)


def reference_errors(values: dict) -> list[str]:
    """Messages for directly supplied ids that match no record."""
    errors = []
    for attr, label, getter in _DIRECT_REFERENCES:
        ref_id = values.get(attr)
        if ref_id is not None and getter(ref_id) is None:
            errors.append(f"{label} {ref_id} does not exist")
    return errors


def _check_direct_references(request: AssetRequest) -> _StepOutcome:
    return _StepOutcome(errors=reference_errors(dataclasses.asdict(request)))
