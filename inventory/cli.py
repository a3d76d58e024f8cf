"""
Custom Flask CLI commands.

These commands are registered with the app via ``register_commands()``
in the application factory. Run them with ``flask <command_name>``.

Usage::

    flask db-check                              # Verify connectivity and tables
    flask migrate-po PO-OLD PO-NEW              # Renumber a PO and its assets
    flask export-assets --format xlsx -o a.xlsx # Write the asset register
    flask seed-dev                              # Load a small demo dataset
"""

import click
from flask.cli import with_appcontext
from sqlalchemy import inspect

from inventory.exceptions import InventoryError
from inventory.extensions import db

# Tables every working install must have.
EXPECTED_TABLES = (
    "asset",
    "asset_po",
    "asset_type",
    "asset_make",
    "asset_model",
    "os",
    "os_version",
    "vendor",
    "app_user",
    "asset_status_history",
    "asset_assignment_history",
    "asset_tag",
    "asset_tag_assignment",
    "audit_log",
)


@click.command("db-check")
@with_appcontext
def db_check_command():
    """
    Verify database connectivity and confirm expected tables exist.

    Runs a simple query against the configured database and lists any
    inventory tables that are missing.  This is useful for confirming
    ``DATABASE_URL`` is correct and migrations have been applied.
    """
    click.echo("=" * 60)
    click.echo("  IT Asset Inventory — Database Connectivity Check")
    click.echo("=" * 60)

    # Mask any password in the URL.
    db_url = db.engine.url.render_as_string(hide_password=True)
    click.echo(f"\n  Connection string: {db_url}\n")

    # -- Step 1: Basic connectivity ----------------------------------------
    click.echo("[1/2] Testing connection...")
    try:
        row = db.session.execute(db.text("SELECT 1 AS connected")).fetchone()
        if not row or row[0] != 1:
            click.secho("      ✗ Unexpected result from test query.", fg="red")
            raise SystemExit(1)
        click.secho("      ✓ Connected successfully.", fg="green")
    except SystemExit:
        raise
    except Exception as exc:  # pylint: disable=broad-exception-caught
        click.secho(f"      ✗ Connection failed: {exc}", fg="red")
        click.echo("\n  Troubleshooting tips:")
        click.echo("    - Is the database server running?")
        click.echo("    - Does DATABASE_URL match your server config?")
        raise SystemExit(1)

    # -- Step 2: Tables ----------------------------------------------------
    click.echo("[2/2] Checking tables...\n")
    present = set(inspect(db.engine).get_table_names())
    missing = [name for name in EXPECTED_TABLES if name not in present]
    for name in EXPECTED_TABLES:
        mark = "✓" if name in present else "✗"
        click.echo(f"      {mark} {name}")

    if missing:
        click.secho(
            f"\n      {len(missing)} table(s) missing. Run 'flask db upgrade'.",
            fg="red",
        )
        raise SystemExit(1)

    click.echo("\n" + "=" * 60)
    click.secho("  All checks passed. Database is ready.", fg="green", bold=True)
    click.echo("=" * 60)


@click.command("migrate-po")
@click.argument("old_po_number")
@click.argument("new_po_number")
@with_appcontext
def migrate_po_command(old_po_number: str, new_po_number: str):
    """Move OLD_PO_NUMBER's data and assets to NEW_PO_NUMBER."""
    from inventory.services import po_service  # pylint: disable=import-outside-toplevel

    try:
        result = po_service.migrate_po_number(old_po_number, new_po_number)
    except InventoryError as exc:
        click.secho(f"Migration failed: {exc.message}", fg="red")
        raise SystemExit(1) from exc
    click.secho(result.message, fg="green")


@click.command("export-assets")
@click.option(
    "--format",
    "export_format",
    type=click.Choice(["csv", "xlsx"]),
    default="csv",
    show_default=True,
    help="Output file format.",
)
@click.option(
    "--output",
    "-o",
    "output_path",
    type=click.Path(dir_okay=False, writable=True),
    required=True,
    help="File to write the asset register to.",
)
@with_appcontext
def export_assets_command(export_format: str, output_path: str):
    """Write the register of all non-deleted assets to a file."""
    # pylint: disable=import-outside-toplevel
    from inventory.services import asset_service, export_service

    assets = asset_service.get_all_assets()
    if export_format == "xlsx":
        buffer = export_service.export_assets_excel(assets)
    else:
        buffer = export_service.export_assets_csv(assets)

    with open(output_path, "wb") as handle:
        handle.write(buffer.read())
    click.secho(f"Exported {len(assets)} asset(s) to {output_path}", fg="green")


def register_commands(app):
    """Register all custom CLI commands with the Flask application."""
    from inventory.seed_dev_data import (  # pylint: disable=import-outside-toplevel
        seed_dev_command,
    )

    app.cli.add_command(db_check_command)
    app.cli.add_command(migrate_po_command)
    app.cli.add_command(export_assets_command)
    app.cli.add_command(seed_dev_command)
