"""
Procurement models: vendors and purchase orders.

An ``AssetPO`` is identified to users by its ``po_number``.  Assets
reference the PO by that number rather than by surrogate key, which is
why renaming a PO is a cascade (see ``po_service.migrate_po_number``).
"""

from inventory.extensions import db
from inventory.models.catalog import STATUS_ACTIVE
from inventory.utils import iso, money

# Acquisition types accepted on a PO (normalised case-insensitively).
ACQUISITION_BOUGHT = "Bought"
ACQUISITION_RENTED = "Rented"
ACQUISITION_TYPES = (ACQUISITION_BOUGHT, ACQUISITION_RENTED)


class Vendor(db.Model):
    """A supplier of assets, warranties or leases."""

    __tablename__ = "vendor"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(200), nullable=False, index=True)
    contact_info = db.Column(db.String(500), nullable=True)
    status = db.Column(db.String(20), nullable=False, default=STATUS_ACTIVE)
    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    # -- Relationships -----------------------------------------------------
    purchase_orders = db.relationship(
        "AssetPO", back_populates="vendor", lazy="dynamic"
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "contact_info": self.contact_info,
            "status": self.status,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<Vendor {self.name}>"


class AssetPO(db.Model):
    """
    A purchase order (or lease contract) that assets are procured under.

    ``total_devices`` is the number of assets the PO is expected to
    cover; ``po_service.get_po_summary`` compares it with the number of
    linked assets.
    """

    __tablename__ = "asset_po"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    po_number = db.Column(db.String(100), unique=True, nullable=False)
    acquisition_type = db.Column(db.String(20), nullable=False)
    invoice_number = db.Column(db.String(100), nullable=True)
    acquisition_date = db.Column(db.Date, nullable=True)
    vendor_id = db.Column(
        db.Integer,
        db.ForeignKey("vendor.id"),
        nullable=True,
        index=True,
    )
    owner_type = db.Column(db.String(100), nullable=True)
    lease_end_date = db.Column(db.Date, nullable=True)
    rental_amount = db.Column(db.Numeric(12, 2), nullable=True)
    min_contract_period = db.Column(db.Integer, nullable=True)
    acquisition_price = db.Column(db.Numeric(12, 2), nullable=True)
    depreciation_pct = db.Column(db.Numeric(5, 2), nullable=True)
    current_price = db.Column(db.Numeric(12, 2), nullable=True)
    total_devices = db.Column(db.Integer, nullable=True)
    warranty_expiry_date = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    # -- Relationships -----------------------------------------------------
    vendor = db.relationship("Vendor", back_populates="purchase_orders")

    # Fields copied verbatim when a PO is re-created under a new number.
    COPY_FIELDS = (
        "acquisition_type",
        "invoice_number",
        "acquisition_date",
        "vendor_id",
        "owner_type",
        "lease_end_date",
        "rental_amount",
        "min_contract_period",
        "acquisition_price",
        "depreciation_pct",
        "current_price",
        "total_devices",
        "warranty_expiry_date",
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "po_number": self.po_number,
            "acquisition_type": self.acquisition_type,
            "invoice_number": self.invoice_number,
            "acquisition_date": iso(self.acquisition_date),
            "vendor_id": self.vendor_id,
            "vendor_name": self.vendor.name if self.vendor else None,
            "owner_type": self.owner_type,
            "lease_end_date": iso(self.lease_end_date),
            "rental_amount": money(self.rental_amount),
            "min_contract_period": self.min_contract_period,
            "acquisition_price": money(self.acquisition_price),
            "depreciation_pct": money(self.depreciation_pct),
            "current_price": money(self.current_price),
            "total_devices": self.total_devices,
            "warranty_expiry_date": iso(self.warranty_expiry_date),
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<AssetPO {self.po_number}>"
