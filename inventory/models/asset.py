"""
Asset inventory models.

Tracks individual hardware and software items, the free-form tags
attached to them, and their lifecycle status.  Assets are soft-deleted
(``is_deleted``) so history and audit rows keep pointing at a real
record; the uniqueness rules on serial number, IT asset code and MAC
address only consider non-deleted rows.
"""

import calendar
from datetime import date

import sqlalchemy as sa
from flask import current_app, has_app_context

from inventory.extensions import db
from inventory.utils import iso, money

# -- Asset lifecycle status ------------------------------------------------
STATUS_ACTIVE = "ACTIVE"
STATUS_IN_STOCK = "IN_STOCK"
STATUS_IN_REPAIR = "IN_REPAIR"
STATUS_BROKEN = "BROKEN"
STATUS_CEASED = "CEASED"
ASSET_STATUSES = (
    STATUS_ACTIVE,
    STATUS_IN_STOCK,
    STATUS_IN_REPAIR,
    STATUS_BROKEN,
    STATUS_CEASED,
)

# -- Derived warranty / license status -------------------------------------
LIFECYCLE_ACTIVE = "ACTIVE"
LIFECYCLE_WARNING = "WARNING"
LIFECYCLE_EXPIRED = "EXPIRED"
NO_WARRANTY = "NO_WARRANTY"
NOT_APPLICABLE = "NOT_APPLICABLE"


def subtract_months(value: date, months: int) -> date:
    """Return ``value`` moved back by whole months, clamping the day."""
    month_index = value.year * 12 + (value.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(value.day, last_day))


def lifecycle_status(expiry: date, warning_months: int, today: date | None = None) -> str:
    """
    Classify an expiry date as EXPIRED, WARNING or ACTIVE.

    WARNING covers the ``warning_months`` before expiry; the expiry day
    itself still counts as in force.
    """
    today = today or date.today()
    if today > expiry:
        return LIFECYCLE_EXPIRED
    if today > subtract_months(expiry, warning_months):
        return LIFECYCLE_WARNING
    return LIFECYCLE_ACTIVE


def _threshold(key: str, default: int) -> int:
    if has_app_context():
        return int(current_app.config.get(key, default))
    return default


class Asset(db.Model):
    """
    A single tracked hardware or software item.

    Catalog, user, OS and vendor references are plain nullable foreign
    keys.  The PO link is by ``po_number`` so a PO renumbering has to
    repoint every asset (``po_service.migrate_po_number``).
    """

    __tablename__ = "asset"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(200), nullable=False)
    asset_category = db.Column(db.String(20), nullable=True)
    serial_number = db.Column(db.String(100), nullable=True, index=True)
    it_asset_code = db.Column(db.String(100), nullable=True, index=True)
    mac_address = db.Column(db.String(50), nullable=True, index=True)
    ipv4_address = db.Column(db.String(45), nullable=True)
    status = db.Column(db.String(20), nullable=False, default=STATUS_IN_STOCK)
    owner_type = db.Column(db.String(100), nullable=True)
    acquisition_type = db.Column(db.String(20), nullable=True)
    inventory_location = db.Column(db.String(200), nullable=True)

    # -- Catalog references ------------------------------------------------
    asset_type_id = db.Column(
        db.Integer, db.ForeignKey("asset_type.id"), nullable=True, index=True
    )
    make_id = db.Column(
        db.Integer, db.ForeignKey("asset_make.id"), nullable=True, index=True
    )
    model_id = db.Column(
        db.Integer, db.ForeignKey("asset_model.id"), nullable=True, index=True
    )
    os_id = db.Column(db.Integer, db.ForeignKey("os.id"), nullable=True)
    os_version_id = db.Column(
        db.Integer, db.ForeignKey("os_version.id"), nullable=True
    )

    # -- Holder / procurement references -----------------------------------
    current_user_id = db.Column(
        db.Integer, db.ForeignKey("app_user.id"), nullable=True, index=True
    )
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendor.id"), nullable=True)
    extended_warranty_vendor_id = db.Column(
        db.Integer, db.ForeignKey("vendor.id"), nullable=True
    )
    po_number = db.Column(
        db.String(100),
        db.ForeignKey("asset_po.po_number"),
        nullable=True,
        index=True,
    )
    invoice_number = db.Column(db.String(100), nullable=True)

    # -- Dates -------------------------------------------------------------
    acquisition_date = db.Column(db.Date, nullable=True)
    warranty_expiry = db.Column(db.Date, nullable=True)
    extended_warranty_expiry = db.Column(db.Date, nullable=True)
    lease_end_date = db.Column(db.Date, nullable=True)

    # -- Software licensing ------------------------------------------------
    license_name = db.Column(db.String(200), nullable=True)
    license_validity_period = db.Column(db.Date, nullable=True)

    # -- Financials --------------------------------------------------------
    rental_amount = db.Column(db.Numeric(12, 2), nullable=True)
    acquisition_price = db.Column(db.Numeric(12, 2), nullable=True)
    depreciation_pct = db.Column(db.Numeric(5, 2), nullable=True)
    current_price = db.Column(db.Numeric(12, 2), nullable=True)
    min_contract_period = db.Column(db.Integer, nullable=True)

    # Display name of the current tag, kept in step by assignment_service.
    tags = db.Column(db.String(500), nullable=True)

    is_deleted = db.Column(db.Boolean, nullable=False, default=False, index=True)
    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    # -- Relationships -----------------------------------------------------
    asset_type = db.relationship("AssetType")
    make = db.relationship("AssetMake")
    model = db.relationship("AssetModel")
    os = db.relationship("OperatingSystem")
    os_version = db.relationship("OSVersion")
    current_user = db.relationship(
        "User", back_populates="assets", foreign_keys=[current_user_id]
    )
    vendor = db.relationship("Vendor", foreign_keys=[vendor_id])
    extended_warranty_vendor = db.relationship(
        "Vendor", foreign_keys=[extended_warranty_vendor_id]
    )
    purchase_order = db.relationship(
        "AssetPO", primaryjoin="Asset.po_number == AssetPO.po_number", viewonly=True
    )
    tag_assignments = db.relationship(
        "AssetTagAssignment", back_populates="asset", lazy="dynamic"
    )

    # =====================================================================
    # Derived status
    # =====================================================================

    @property
    def is_software(self) -> bool:
        return (self.asset_category or "").upper() == "SOFTWARE"

    @property
    def warranty_status(self) -> str:
        """NO_WARRANTY, EXPIRED, WARNING or ACTIVE for ``warranty_expiry``."""
        if self.warranty_expiry is None:
            return NO_WARRANTY
        return lifecycle_status(
            self.warranty_expiry, _threshold("WARRANTY_WARNING_MONTHS", 3)
        )

    @property
    def license_status(self) -> str:
        """NOT_APPLICABLE unless this is software with a validity date."""
        if not self.is_software or self.license_validity_period is None:
            return NOT_APPLICABLE
        return lifecycle_status(
            self.license_validity_period, _threshold("LICENSE_WARNING_MONTHS", 1)
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "asset_category": self.asset_category,
            "serial_number": self.serial_number,
            "it_asset_code": self.it_asset_code,
            "mac_address": self.mac_address,
            "ipv4_address": self.ipv4_address,
            "status": self.status,
            "owner_type": self.owner_type,
            "acquisition_type": self.acquisition_type,
            "inventory_location": self.inventory_location,
            "asset_type_id": self.asset_type_id,
            "asset_type_name": self.asset_type.name if self.asset_type else None,
            "make_id": self.make_id,
            "make_name": self.make.name if self.make else None,
            "model_id": self.model_id,
            "model_name": self.model.name if self.model else None,
            "os_id": self.os_id,
            "os_name": self.os.os_type if self.os else None,
            "os_version_id": self.os_version_id,
            "os_version": (
                self.os_version.version_number if self.os_version else None
            ),
            "current_user_id": self.current_user_id,
            "current_user_name": (
                self.current_user.full_name_or_office_name
                if self.current_user
                else None
            ),
            "vendor_id": self.vendor_id,
            "vendor_name": self.vendor.name if self.vendor else None,
            "extended_warranty_vendor_id": self.extended_warranty_vendor_id,
            "po_number": self.po_number,
            "invoice_number": self.invoice_number,
            "acquisition_date": iso(self.acquisition_date),
            "warranty_expiry": iso(self.warranty_expiry),
            "extended_warranty_expiry": iso(self.extended_warranty_expiry),
            "lease_end_date": iso(self.lease_end_date),
            "license_name": self.license_name,
            "license_validity_period": iso(self.license_validity_period),
            "rental_amount": money(self.rental_amount),
            "acquisition_price": money(self.acquisition_price),
            "depreciation_pct": money(self.depreciation_pct),
            "current_price": money(self.current_price),
            "min_contract_period": self.min_contract_period,
            "tags": self.tags,
            "warranty_status": self.warranty_status,
            "license_status": self.license_status,
            "is_deleted": self.is_deleted,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<Asset {self.id} {self.name}>"


# Store-level backstop for the identifier rules: unique ignoring case
# among non-deleted rows. Only SQLite and PostgreSQL support partial
# expression indexes; elsewhere the service checks stand alone.
_LIVE_ASSET = Asset.__table__.c.is_deleted == sa.false()
UNIQUE_IDENTIFIER_COLUMNS = ("serial_number", "it_asset_code", "mac_address")
for _column in UNIQUE_IDENTIFIER_COLUMNS:
    sa.Index(
        f"uq_asset_{_column}_live",
        sa.func.lower(Asset.__table__.c[_column]),
        unique=True,
        sqlite_where=_LIVE_ASSET,
        postgresql_where=_LIVE_ASSET,
    ).ddl_if(dialect=("sqlite", "postgresql"))


class AssetTag(db.Model):
    """A free-form label (e.g., 'Finance Floor 3', 'Loaner')."""

    __tablename__ = "asset_tag"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    # -- Relationships -----------------------------------------------------
    assignments = db.relationship(
        "AssetTagAssignment", back_populates="tag", lazy="dynamic"
    )

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "created_at": iso(self.created_at)}

    def __repr__(self) -> str:
        return f"<AssetTag {self.name}>"


class AssetTagAssignment(db.Model):
    """
    Join row between an asset and a tag.

    The composite primary key guarantees at most one row per pair.
    """

    __tablename__ = "asset_tag_assignment"

    asset_id = db.Column(db.Integer, db.ForeignKey("asset.id"), primary_key=True)
    tag_id = db.Column(db.Integer, db.ForeignKey("asset_tag.id"), primary_key=True)
    assigned_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    # -- Relationships -----------------------------------------------------
    asset = db.relationship("Asset", back_populates="tag_assignments")
    tag = db.relationship("AssetTag", back_populates="assignments")

    def to_dict(self) -> dict:
        return {
            "asset_id": self.asset_id,
            "tag_id": self.tag_id,
            "tag_name": self.tag.name if self.tag else None,
            "assigned_at": iso(self.assigned_at),
        }

    def __repr__(self) -> str:
        return f"<AssetTagAssignment asset={self.asset_id} tag={self.tag_id}>"
