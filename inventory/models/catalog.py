"""
Hardware/software catalog models.

Two reference hierarchies that assets point into:

  - ``AssetModel`` -> ``AssetMake`` -> ``AssetType``
  - ``OSVersion``  -> ``OperatingSystem``

The parent foreign keys are nullable so an incomplete chain can be
stored and reported by the validation engine instead of failing at
insert time.
"""

from inventory.extensions import db
from inventory.utils import iso

# Record status values shared by catalog, vendor and user tables.
STATUS_ACTIVE = "Active"
STATUS_INACTIVE = "Inactive"
RECORD_STATUSES = (STATUS_ACTIVE, STATUS_INACTIVE)

# Asset categories (stored upper-case on assets, title-case on types).
CATEGORY_HARDWARE = "HARDWARE"
CATEGORY_SOFTWARE = "SOFTWARE"


class AssetType(db.Model):
    """Top of the catalog hierarchy (e.g., Laptop, Monitor, Office Suite)."""

    __tablename__ = "asset_type"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    description = db.Column(db.String(500), nullable=True)
    asset_category = db.Column(db.String(20), nullable=True)
    status = db.Column(db.String(20), nullable=False, default=STATUS_ACTIVE)
    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    # -- Relationships -----------------------------------------------------
    makes = db.relationship("AssetMake", back_populates="asset_type", lazy="dynamic")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "asset_category": self.asset_category,
            "status": self.status,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<AssetType {self.name}>"


class AssetMake(db.Model):
    """A manufacturer within an asset type (e.g., Dell under Laptop)."""

    __tablename__ = "asset_make"
    __table_args__ = (
        db.UniqueConstraint("name", "type_id", name="UQ_asset_make_name_type"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(100), nullable=False)
    type_id = db.Column(
        db.Integer,
        db.ForeignKey("asset_type.id"),
        nullable=True,
        index=True,
    )
    status = db.Column(db.String(20), nullable=False, default=STATUS_ACTIVE)
    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    # -- Relationships -----------------------------------------------------
    asset_type = db.relationship("AssetType", back_populates="makes")
    models = db.relationship("AssetModel", back_populates="make", lazy="dynamic")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type_id": self.type_id,
            "type_name": self.asset_type.name if self.asset_type else None,
            "status": self.status,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<AssetMake {self.name}>"


class AssetModel(db.Model):
    """A specific product of a make (e.g., Latitude 5440) with its specs."""

    __tablename__ = "asset_model"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(150), nullable=False)
    make_id = db.Column(
        db.Integer,
        db.ForeignKey("asset_make.id"),
        nullable=True,
        index=True,
    )
    ram = db.Column(db.String(50), nullable=True)
    storage = db.Column(db.String(50), nullable=True)
    processor = db.Column(db.String(100), nullable=True)
    status = db.Column(db.String(20), nullable=False, default=STATUS_ACTIVE)
    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    # -- Relationships -----------------------------------------------------
    make = db.relationship("AssetMake", back_populates="models")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "make_id": self.make_id,
            "make_name": self.make.name if self.make else None,
            "ram": self.ram,
            "storage": self.storage,
            "processor": self.processor,
            "status": self.status,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<AssetModel {self.name}>"


class OperatingSystem(db.Model):
    """An operating system family (e.g., Windows, macOS, Ubuntu)."""

    __tablename__ = "os"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    os_type = db.Column(db.String(100), unique=True, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=STATUS_ACTIVE)
    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    # -- Relationships -----------------------------------------------------
    versions = db.relationship("OSVersion", back_populates="os", lazy="dynamic")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "os_type": self.os_type,
            "status": self.status,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<OperatingSystem {self.os_type}>"


class OSVersion(db.Model):
    """A release of an operating system (e.g., Windows 11 23H2)."""

    __tablename__ = "os_version"
    __table_args__ = (
        db.UniqueConstraint("os_id", "version_number", name="UQ_os_version_number"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    os_id = db.Column(
        db.Integer,
        db.ForeignKey("os.id"),
        nullable=True,
        index=True,
    )
    version_number = db.Column(db.String(100), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=STATUS_ACTIVE)
    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    # -- Relationships -----------------------------------------------------
    os = db.relationship("OperatingSystem", back_populates="versions")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "os_id": self.os_id,
            "os_type": self.os.os_type if self.os else None,
            "version_number": self.version_number,
            "status": self.status,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<OSVersion {self.version_number}>"
