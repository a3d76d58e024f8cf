"""
Seed script — load a small demo dataset for local development.

Registers a ``flask seed-dev`` CLI command that fills an empty database
with one catalog branch (type, make, model), an operating system with a
version, a vendor, a bought PO, a user and three assets on that PO.
Records go through the service layer so history and audit rows are
written the same way the API writes them.

Usage::

    flask seed-dev                 # Seed an empty database
    flask seed-dev --po PO-DEMO-2  # Use a different PO number

Prerequisites:
    - The tables must exist (``flask db upgrade``).
"""

from datetime import date, timedelta

import click
from flask.cli import with_appcontext

from inventory.models.catalog import AssetType

_DEFAULT_PO_NUMBER = "PO-DEMO-001"


@click.command("seed-dev")
@click.option(
    "--po",
    "po_number",
    default=_DEFAULT_PO_NUMBER,
    show_default=True,
    help="PO number for the demo purchase order.",
)
@with_appcontext
def seed_dev_command(po_number: str):
    """
    Create demo catalog, procurement, user and asset records.

    Does nothing if any asset type already exists, so running it twice
    is harmless.
    """
    # pylint: disable=import-outside-toplevel
    from inventory.services import (
        asset_service,
        catalog_service,
        po_service,
        user_service,
        vendor_service,
    )

    click.echo("=" * 60)
    click.echo("  IT Asset Inventory — Seed Dev Data")
    click.echo("=" * 60)

    if AssetType.query.first() is not None:
        click.secho("\n  Catalog already has data; nothing to do.", fg="yellow")
        return

    # -- Step 1: Catalog ----------------------------------------------------
    click.echo("\n[1/4] Creating catalog...")
    laptop = catalog_service.create_asset_type(
        {"name": "Laptop", "asset_category": "HARDWARE", "description": "Portable computers"}
    )
    make = catalog_service.create_asset_make({"name": "Dell", "type_id": laptop.id})
    model = catalog_service.create_asset_model(
        {
            "name": "Latitude 5440",
            "make_id": make.id,
            "ram": "16 GB",
            "storage": "512 GB SSD",
            "processor": "Intel Core i5-1345U",
        }
    )
    windows = catalog_service.create_os({"os_type": "Windows"})
    win11 = catalog_service.create_os_version({"os_id": windows.id, "version_number": "11 23H2"})
    click.secho(
        f"      ✓ {laptop.name} / {make.name} / {model.name}, "
        f"{windows.os_type} {win11.version_number}",
        fg="green",
    )

    # -- Step 2: Procurement -----------------------------------------------
    click.echo("\n[2/4] Creating vendor and purchase order...")
    vendor = vendor_service.create_vendor(
        {"name": "Acme Hardware Ltd", "contact_info": "sales@acme.example"}
    )
    today = date.today()
    po = po_service.create_po(
        {
            "po_number": po_number,
            "acquisition_type": "Bought",
            "invoice_number": "INV-DEMO-001",
            "acquisition_date": today.isoformat(),
            "vendor_id": vendor.id,
            "acquisition_price": "1250.00",
            "total_devices": 3,
            "warranty_expiry_date": (today + timedelta(days=3 * 365)).isoformat(),
        }
    )
    click.secho(f"      ✓ Vendor {vendor.name}, PO {po.po_number}", fg="green")

    # -- Step 3: Users -----------------------------------------------------
    click.echo("\n[3/4] Creating user...")
    user = user_service.create_user(
        {
            "full_name_or_office_name": "Dev User",
            "employee_code": "EMP-0001",
            "email": "dev.user@localhost",
            "department": "IT",
        }
    )
    click.secho(f"      ✓ {user.full_name_or_office_name} (id={user.id})", fg="green")

    # -- Step 4: Assets ----------------------------------------------------
    click.echo("\n[4/4] Creating assets on the PO...")
    items = [
        {
            "name": f"Laptop {n:03d}",
            "serial_number": f"SN-DEMO-{n:03d}",
            "it_asset_code": f"IT-DEMO-{n:03d}",
            "model_id": model.id,
            "os_version_id": win11.id,
            "asset_category": "HARDWARE",
            "current_user_id": user.id if n == 1 else None,
            "status": "Active" if n == 1 else "In Stock",
        }
        for n in range(1, 4)
    ]
    result = asset_service.create_assets_for_po(po.po_number, items)
    for error in result.errors:
        click.secho(f"      ✗ Item {error.index}: {error.message}", fg="red")
    click.secho(f"      ✓ Created {result.success_count} asset(s).", fg="green")

    click.echo("\n" + "=" * 60)
    click.secho("  Seed complete.", fg="green", bold=True)
    click.echo("=" * 60)
