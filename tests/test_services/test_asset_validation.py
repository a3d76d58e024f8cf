"""
Tests for asset_validation.validate_asset_for_creation().

The engine must report every problem with a request (not just the
first) and derive the vendor, OS, make and type ids the request
implies.
"""

import pytest

from inventory.services import asset_service, catalog_service, po_service
from inventory.services.asset_validation import (
    AssetRequest,
    ResolutionContext,
    validate_asset_for_creation,
)


def _request(**fields) -> AssetRequest:
    fields.setdefault("name", "Test Laptop")
    return AssetRequest(**fields)


class TestValidRequests:
    """Requests that should pass."""

    def test_minimal_request_is_valid(self, inventory_data):
        """A bare name with no references has nothing to check."""
        result = validate_asset_for_creation(_request())
        assert result.valid
        assert result.errors == ()
        assert result.context == ResolutionContext()

    def test_full_chain_resolves_every_id(self, inventory_data):
        """PO, OS version and model fill vendor, OS, make and type."""
        data = inventory_data
        result = validate_asset_for_creation(
            _request(
                po_number=data.po.po_number,
                os_version_id=data.os_version.id,
                model_id=data.model.id,
            )
        )
        assert result.valid
        assert result.context.resolved_vendor_id == data.vendor.id
        assert result.context.resolved_extended_warranty_vendor_id == data.vendor.id
        assert result.context.resolved_os_id == data.os.id
        assert result.context.resolved_make_id == data.make.id
        assert result.context.resolved_type_id == data.asset_type.id

    def test_po_without_vendor_resolves_nothing(self, inventory_data):
        po_service.create_po({"po_number": "PO-NOVENDOR", "acquisition_type": "Rented"})
        result = validate_asset_for_creation(_request(po_number="PO-NOVENDOR"))
        assert result.valid
        assert result.context.resolved_vendor_id is None

    def test_duplicate_serial_on_deleted_asset_is_allowed(self, inventory_data):
        """Only non-deleted assets take part in uniqueness."""
        asset = asset_service.create_asset({"name": "Old", "serial_number": "SN-1"})
        asset_service.delete_asset(asset.id)
        result = validate_asset_for_creation(_request(serial_number="SN-1"))
        assert result.valid


class TestUniqueness:
    """Serial number, IT asset code and MAC address are unique."""

    @pytest.fixture(autouse=True)
    def _existing(self, inventory_data):
        self.existing = asset_service.create_asset(
            {
                "name": "Existing",
                "serial_number": "SN-ABC",
                "it_asset_code": "IT-001",
                "mac_address": "AA:BB:CC:DD:EE:FF",
            }
        )

    def test_serial_number_clash_is_case_insensitive(self):
        result = validate_asset_for_creation(_request(serial_number="sn-abc"))
        assert not result.valid
        assert result.errors == (
            "Serial number already exists (case-insensitive): sn-abc",
        )

    def test_it_asset_code_clash(self):
        result = validate_asset_for_creation(_request(it_asset_code="IT-001"))
        assert result.errors == (
            "IT Asset Code already exists (case-insensitive): IT-001",
        )

    def test_mac_address_clash(self):
        result = validate_asset_for_creation(_request(mac_address="aa:bb:cc:dd:ee:ff"))
        assert result.errors == (
            "MAC Address already exists (case-insensitive): aa:bb:cc:dd:ee:ff",
        )

    def test_blank_identifiers_are_skipped(self):
        result = validate_asset_for_creation(
            _request(serial_number="", it_asset_code="   ", mac_address=None)
        )
        assert result.valid

    def test_all_errors_are_collected_in_check_order(self):
        """Duplicate MAC, duplicate IT code and unknown PO give three errors."""
        result = validate_asset_for_creation(
            _request(
                mac_address="AA:BB:CC:DD:EE:FF",
                it_asset_code="IT-001",
                po_number="PO-MISSING",
            )
        )
        assert not result.valid
        assert result.errors == (
            "IT Asset Code already exists (case-insensitive): IT-001",
            "MAC Address already exists (case-insensitive): AA:BB:CC:DD:EE:FF",
            "Purchase Order not found: PO-MISSING",
        )


class TestReferenceResolution:
    """Chained lookups and directly supplied ids."""

    def test_unknown_po(self, inventory_data):
        result = validate_asset_for_creation(_request(po_number="PO-404"))
        assert result.errors == ("Purchase Order not found: PO-404",)

    def test_unknown_os_version(self, inventory_data):
        result = validate_asset_for_creation(_request(os_version_id=999))
        assert result.errors == ("OS Version ID 999 does not exist",)
        assert result.context.resolved_os_id is None

    def test_os_version_without_os(self, inventory_data):
        orphan = catalog_service.create_os_version({"version_number": "orphan"})
        result = validate_asset_for_creation(_request(os_version_id=orphan.id))
        assert result.errors == (f"OS Version ID {orphan.id} has no associated OS",)

    def test_unknown_model(self, inventory_data):
        result = validate_asset_for_creation(_request(model_id=999))
        assert result.errors == ("Asset Model ID 999 does not exist",)

    def test_model_without_make(self, inventory_data):
        model = catalog_service.create_asset_model({"name": "Loose model"})
        result = validate_asset_for_creation(_request(model_id=model.id))
        assert result.errors == (f"Asset Model ID {model.id} has no associated Make",)
        assert result.context.resolved_make_id is None

    def test_make_without_type_keeps_make_resolved(self, inventory_data):
        make = catalog_service.create_asset_make({"name": "NoType"})
        model = catalog_service.create_asset_model({"name": "M1", "make_id": make.id})
        result = validate_asset_for_creation(_request(model_id=model.id))
        assert result.errors == (
            f"Asset Make ID {make.id} has no associated Asset Type",
        )
        assert result.context.resolved_make_id == make.id
        assert result.context.resolved_type_id is None

    @pytest.mark.parametrize(
        "field_name, label",
        [
            ("asset_type_id", "Asset Type ID"),
            ("make_id", "Asset Make ID"),
            ("current_user_id", "Current User ID"),
            ("os_id", "OS ID"),
            ("vendor_id", "Vendor ID"),
            ("extended_warranty_vendor_id", "Extended Warranty Vendor ID"),
        ],
    )
    def test_unknown_direct_reference(self, inventory_data, field_name, label):
        result = validate_asset_for_creation(_request(**{field_name: 4242}))
        assert result.errors == (f"{label} 4242 does not exist",)

    def test_known_direct_references_pass(self, inventory_data):
        data = inventory_data
        result = validate_asset_for_creation(
            _request(
                asset_type_id=data.asset_type.id,
                make_id=data.make.id,
                current_user_id=data.user.id,
                os_id=data.os.id,
                vendor_id=data.vendor.id,
            )
        )
        assert result.valid


class TestUnexpectedErrors:
    """A fault inside a check is reported, not raised."""

    def test_lookup_failure_becomes_an_error(self, inventory_data, monkeypatch):
        def _broken(_version_id):
            raise RuntimeError("database went away")

        monkeypatch.setattr(catalog_service, "get_os_version_by_id", _broken)
        result = validate_asset_for_creation(
            _request(po_number="PO-404", os_version_id=inventory_data.os_version.id)
        )

        assert not result.valid
        assert result.errors == (
            "Purchase Order not found: PO-404",
            "Unexpected validation error: database went away",
        )

    def test_to_dict_shape(self, inventory_data):
        body = validate_asset_for_creation(_request(model_id=999)).to_dict()
        assert body["valid"] is False
        assert body["errors"] == ["Asset Model ID 999 does not exist"]
        assert set(body["context"]) == {
            "resolved_vendor_id",
            "resolved_extended_warranty_vendor_id",
            "resolved_os_id",
            "resolved_make_id",
            "resolved_type_id",
        }
