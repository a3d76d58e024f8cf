"""
Pytest configuration and shared fixtures.

Provides a test application, database session, and test client that
all test modules can use. Uses the ``testing`` configuration, which
points at an in-memory SQLite database; the schema is created before
each test and dropped after it.
"""

from datetime import date, timedelta
from types import SimpleNamespace

import pytest
from sqlalchemy import event

from inventory import create_app
from inventory.extensions import db as _db
from inventory.services import (
    catalog_service,
    po_service,
    user_service,
    vendor_service,
)


@pytest.fixture(scope="session")
def app():
    """
    Create a Flask application configured for testing.

    The app is created once per test session.
    """
    app = create_app("testing")

    # Establish an application context for the entire test session.
    with app.app_context():
        if _db.engine.dialect.name == "sqlite":
            event.listen(_db.engine, "connect", _enable_sqlite_foreign_keys)
        yield app


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record):
    """SQLite leaves foreign keys unenforced unless asked per connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture(scope="function")
def db_session(app):  # pylint: disable=redefined-outer-name
    """
    Provide a clean database for each test function.

    Tables are created before the test and dropped afterwards, so no
    rows leak between tests.
    """
    _db.create_all()

    yield _db.session

    _db.session.remove()
    _db.drop_all()


@pytest.fixture(scope="function")
def client(app, db_session):  # pylint: disable=redefined-outer-name,unused-argument
    """
    Provide a Flask test client for making HTTP requests.

    Usage in tests::

        def test_health(client):
            response = client.get("/health")
            assert response.status_code == 200
    """
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture
def inventory_data(db_session):  # pylint: disable=redefined-outer-name,unused-argument
    """
    A small but complete reference dataset.

    One type -> make -> model chain, an OS with a version, a vendor, a
    bought PO from that vendor (warranty three years out) and a user.
    """
    laptop = catalog_service.create_asset_type(
        {"name": "Laptop", "asset_category": "HARDWARE"}
    )
    make = catalog_service.create_asset_make({"name": "Dell", "type_id": laptop.id})
    model = catalog_service.create_asset_model(
        {"name": "Latitude 5440", "make_id": make.id, "ram": "16 GB"}
    )
    windows = catalog_service.create_os({"os_type": "Windows"})
    win11 = catalog_service.create_os_version(
        {"os_id": windows.id, "version_number": "11"}
    )
    vendor = vendor_service.create_vendor({"name": "Acme Hardware"})
    po = po_service.create_po(
        {
            "po_number": "PO-1001",
            "acquisition_type": "bought",
            "invoice_number": "INV-1",
            "acquisition_date": date.today().isoformat(),
            "vendor_id": vendor.id,
            "total_devices": 5,
            "warranty_expiry_date": (date.today() + timedelta(days=1095)).isoformat(),
        }
    )
    user = user_service.create_user(
        {
            "full_name_or_office_name": "Jane Holder",
            "employee_code": "E-100",
            "email": "Jane.Holder@example.com",
        }
    )
    return SimpleNamespace(
        asset_type=laptop,
        make=make,
        model=model,
        os=windows,
        os_version=win11,
        vendor=vendor,
        po=po,
        user=user,
    )
