"""Initial inventory schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    ]


def upgrade():
    """Create catalog, procurement, user, asset, history and audit tables."""
    # --- Catalog ---
    op.create_table(
        "asset_type",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("asset_category", sa.String(20), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_table(
        "asset_make",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("type_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["type_id"], ["asset_type.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", "type_id", name="UQ_asset_make_name_type"),
    )
    op.create_index("ix_asset_make_type_id", "asset_make", ["type_id"])
    op.create_table(
        "asset_model",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("make_id", sa.Integer(), nullable=True),
        sa.Column("ram", sa.String(50), nullable=True),
        sa.Column("storage", sa.String(50), nullable=True),
        sa.Column("processor", sa.String(100), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["make_id"], ["asset_make.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_asset_model_make_id", "asset_model", ["make_id"])
    op.create_table(
        "os",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("os_type", sa.String(100), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("os_type"),
    )
    op.create_table(
        "os_version",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("os_id", sa.Integer(), nullable=True),
        sa.Column("version_number", sa.String(100), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["os_id"], ["os.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("os_id", "version_number", name="UQ_os_version_number"),
    )
    op.create_index("ix_os_version_os_id", "os_version", ["os_id"])

    # --- Procurement ---
    op.create_table(
        "vendor",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("contact_info", sa.String(500), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_vendor_name", "vendor", ["name"])
    op.create_table(
        "asset_po",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("po_number", sa.String(100), nullable=False),
        sa.Column("acquisition_type", sa.String(20), nullable=False),
        sa.Column("invoice_number", sa.String(100), nullable=True),
        sa.Column("acquisition_date", sa.Date(), nullable=True),
        sa.Column("vendor_id", sa.Integer(), nullable=True),
        sa.Column("owner_type", sa.String(100), nullable=True),
        sa.Column("lease_end_date", sa.Date(), nullable=True),
        sa.Column("rental_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("min_contract_period", sa.Integer(), nullable=True),
        sa.Column("acquisition_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("depreciation_pct", sa.Numeric(5, 2), nullable=True),
        sa.Column("current_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("total_devices", sa.Integer(), nullable=True),
        sa.Column("warranty_expiry_date", sa.Date(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["vendor_id"], ["vendor.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("po_number"),
    )
    op.create_index("ix_asset_po_vendor_id", "asset_po", ["vendor_id"])

    # --- Users ---
    op.create_table(
        "app_user",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("full_name_or_office_name", sa.String(200), nullable=False),
        sa.Column("employee_code", sa.String(50), nullable=True),
        sa.Column("user_type", sa.String(50), nullable=True),
        sa.Column("department", sa.String(100), nullable=True),
        sa.Column("designation", sa.String(100), nullable=True),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("location", sa.String(200), nullable=True),
        sa.Column("is_office_asset", sa.Boolean(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("employee_code"),
    )
    op.create_index("ix_app_user_email", "app_user", ["email"])

    # --- Assets ---
    op.create_table(
        "asset",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("asset_category", sa.String(20), nullable=True),
        sa.Column("serial_number", sa.String(100), nullable=True),
        sa.Column("it_asset_code", sa.String(100), nullable=True),
        sa.Column("mac_address", sa.String(50), nullable=True),
        sa.Column("ipv4_address", sa.String(45), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("owner_type", sa.String(100), nullable=True),
        sa.Column("acquisition_type", sa.String(20), nullable=True),
        sa.Column("inventory_location", sa.String(200), nullable=True),
        sa.Column("asset_type_id", sa.Integer(), nullable=True),
        sa.Column("make_id", sa.Integer(), nullable=True),
        sa.Column("model_id", sa.Integer(), nullable=True),
        sa.Column("os_id", sa.Integer(), nullable=True),
        sa.Column("os_version_id", sa.Integer(), nullable=True),
        sa.Column("current_user_id", sa.Integer(), nullable=True),
        sa.Column("vendor_id", sa.Integer(), nullable=True),
        sa.Column("extended_warranty_vendor_id", sa.Integer(), nullable=True),
        sa.Column("po_number", sa.String(100), nullable=True),
        sa.Column("invoice_number", sa.String(100), nullable=True),
        sa.Column("acquisition_date", sa.Date(), nullable=True),
        sa.Column("warranty_expiry", sa.Date(), nullable=True),
        sa.Column("extended_warranty_expiry", sa.Date(), nullable=True),
        sa.Column("lease_end_date", sa.Date(), nullable=True),
        sa.Column("license_name", sa.String(200), nullable=True),
        sa.Column("license_validity_period", sa.Date(), nullable=True),
        sa.Column("rental_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("acquisition_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("depreciation_pct", sa.Numeric(5, 2), nullable=True),
        sa.Column("current_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("min_contract_period", sa.Integer(), nullable=True),
        sa.Column("tags", sa.String(500), nullable=True),
        sa.Column("is_deleted", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["asset_type_id"], ["asset_type.id"]),
        sa.ForeignKeyConstraint(["make_id"], ["asset_make.id"]),
        sa.ForeignKeyConstraint(["model_id"], ["asset_model.id"]),
        sa.ForeignKeyConstraint(["os_id"], ["os.id"]),
        sa.ForeignKeyConstraint(["os_version_id"], ["os_version.id"]),
        sa.ForeignKeyConstraint(["current_user_id"], ["app_user.id"]),
        sa.ForeignKeyConstraint(["vendor_id"], ["vendor.id"]),
        sa.ForeignKeyConstraint(["extended_warranty_vendor_id"], ["vendor.id"]),
        sa.ForeignKeyConstraint(["po_number"], ["asset_po.po_number"]),
        sa.PrimaryKeyConstraint("id"),
    )
    for column in (
        "serial_number",
        "it_asset_code",
        "mac_address",
        "asset_type_id",
        "make_id",
        "model_id",
        "current_user_id",
        "po_number",
        "is_deleted",
    ):
        op.create_index(f"ix_asset_{column}", "asset", [column])

    # Identifiers are unique ignoring case among non-deleted assets.
    # Partial expression indexes exist on SQLite and PostgreSQL only.
    if op.get_bind().dialect.name in ("sqlite", "postgresql"):
        live = sa.column("is_deleted", sa.Boolean()) == sa.false()
        for column in ("serial_number", "it_asset_code", "mac_address"):
            op.create_index(
                f"uq_asset_{column}_live",
                "asset",
                [sa.text(f"lower({column})")],
                unique=True,
                sqlite_where=live,
                postgresql_where=live,
            )

    op.create_table(
        "asset_tag",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_table(
        "asset_tag_assignment",
        sa.Column("asset_id", sa.Integer(), nullable=False),
        sa.Column("tag_id", sa.Integer(), nullable=False),
        sa.Column("assigned_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["asset_id"], ["asset.id"]),
        sa.ForeignKeyConstraint(["tag_id"], ["asset_tag.id"]),
        sa.PrimaryKeyConstraint("asset_id", "tag_id"),
    )

    # --- History ---
    op.create_table(
        "asset_status_history",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("asset_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("changed_by", sa.Integer(), nullable=True),
        sa.Column("change_date", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("remarks", sa.String(500), nullable=True),
        sa.ForeignKeyConstraint(["asset_id"], ["asset.id"]),
        sa.ForeignKeyConstraint(["changed_by"], ["app_user.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_asset_status_history_asset_id", "asset_status_history", ["asset_id"])
    op.create_table(
        "asset_assignment_history",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("asset_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("assigned_date", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("unassigned_date", sa.DateTime(), nullable=True),
        sa.Column("remarks", sa.String(500), nullable=True),
        sa.ForeignKeyConstraint(["asset_id"], ["asset.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["app_user.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_asset_assignment_history_asset_id", "asset_assignment_history", ["asset_id"]
    )
    op.create_index(
        "ix_asset_assignment_history_user_id", "asset_assignment_history", ["user_id"]
    )

    # --- Audit ---
    op.create_table(
        "audit_log",
        sa.Column(
            "id",
            sa.BigInteger().with_variant(sa.Integer(), "sqlite"),
            autoincrement=True,
            nullable=False,
        ),
        sa.Column("asset_id", sa.Integer(), nullable=True),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("action_type", sa.String(50), nullable=False),
        sa.Column("entity_type", sa.String(100), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=True),
        sa.Column("details", sa.String(1000), nullable=True),
        sa.Column("previous_value", sa.Text(), nullable=True),
        sa.Column("new_value", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["app_user.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_log_asset_id", "audit_log", ["asset_id"])


def downgrade():
    """Drop every inventory table in reverse dependency order."""
    for table in (
        "audit_log",
        "asset_assignment_history",
        "asset_status_history",
        "asset_tag_assignment",
        "asset_tag",
        "asset",
        "app_user",
        "asset_po",
        "vendor",
        "os_version",
        "os",
        "asset_model",
        "asset_make",
        "asset_type",
    ):
        op.drop_table(table)
