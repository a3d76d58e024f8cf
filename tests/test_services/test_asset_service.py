"""
Tests for asset_service: creation (single and bulk), updates, status
changes and the soft-delete lifecycle.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from inventory.exceptions import ConflictError, ResourceNotFoundError, ValidationFailedError
from inventory.extensions import db
from inventory.models.asset import STATUS_ACTIVE, STATUS_IN_REPAIR, STATUS_IN_STOCK, Asset
from inventory.models.audit import AuditLog
from inventory.models.history import AssetAssignmentHistory, AssetStatusHistory
from inventory.services import asset_service, catalog_service, user_service, vendor_service


class TestNormalizeStatus:
    """Accepted spellings map onto the five lifecycle statuses."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("active", STATUS_ACTIVE),
            ("In Stock", STATUS_IN_STOCK),
            ("IN_REPAIR", STATUS_IN_REPAIR),
            ("  broken ", "BROKEN"),
        ],
    )
    def test_known_spellings(self, value, expected):
        assert asset_service.normalize_status(value) == expected

    def test_unknown_status_is_rejected(self):
        with pytest.raises(ValidationFailedError) as exc_info:
            asset_service.normalize_status("Lost")
        assert exc_info.value.errors[0].startswith("Invalid status: 'Lost'")


class TestCreateAsset:
    """Single asset creation."""

    def test_resolved_ids_are_filled_in(self, inventory_data):
        data = inventory_data
        asset = asset_service.create_asset(
            {
                "name": "Laptop A",
                "po_number": data.po.po_number,
                "model_id": data.model.id,
                "os_version_id": data.os_version.id,
                "asset_category": "hardware",
            }
        )
        assert asset.vendor_id == data.vendor.id
        assert asset.extended_warranty_vendor_id == data.vendor.id
        assert asset.make_id == data.make.id
        assert asset.asset_type_id == data.asset_type.id
        assert asset.os_id == data.os.id
        assert asset.asset_category == "HARDWARE"
        assert asset.status == STATUS_IN_STOCK

    def test_explicit_ids_win_over_resolved(self, inventory_data):
        other = vendor_service.create_vendor({"name": "Other Vendor"})
        asset = asset_service.create_asset(
            {"name": "Laptop B", "po_number": "PO-1001", "vendor_id": other.id}
        )
        assert asset.vendor_id == other.id
        assert asset.extended_warranty_vendor_id == inventory_data.vendor.id

    def test_initial_status_and_assignment_history(self, inventory_data):
        asset = asset_service.create_asset(
            {"name": "Laptop C", "status": "active", "current_user_id": inventory_data.user.id}
        )
        status_rows = AssetStatusHistory.query.filter_by(asset_id=asset.id).all()
        assert [row.status for row in status_rows] == [STATUS_ACTIVE]
        assignment = AssetAssignmentHistory.query.filter_by(asset_id=asset.id).one()
        assert assignment.user_id == inventory_data.user.id
        assert assignment.is_open
        assert AuditLog.query.filter_by(asset_id=asset.id, action_type="CREATE").count() == 1

    def test_all_errors_are_reported_together(self, inventory_data):
        with pytest.raises(ValidationFailedError) as exc_info:
            asset_service.create_asset({"name": "", "status": "Lost", "model_id": 999})
        errors = exc_info.value.errors
        assert errors[0] == "Asset name is required"
        assert errors[1].startswith("Invalid status: 'Lost'")
        assert "Asset Model ID 999 does not exist" in errors
        assert Asset.query.count() == 0

    def test_bad_date_is_a_validation_error(self, inventory_data):
        with pytest.raises(ValidationFailedError):
            asset_service.create_asset({"name": "X", "warranty_expiry": "not-a-date"})


class TestBulkCreate:
    """Bulk creation keeps going past failing items."""

    def test_partial_success(self, inventory_data):
        result = asset_service.create_assets_in_bulk(
            [
                {"name": "One", "serial_number": "SN-1"},
                {"name": "Two", "serial_number": "sn-1"},
                {"name": "Three", "serial_number": "SN-3", "po_number": "PO-404"},
                {"name": "Four", "serial_number": "SN-4"},
            ]
        )
        assert result.total_processed == 4
        assert result.success_count == 2
        assert [e.index for e in result.errors] == [1, 2]
        assert result.errors[0].field == "validation"
        assert result.errors[0].asset_identifier == "sn-1"
        assert result.errors[0].message == (
            "Serial number already exists (case-insensitive): sn-1"
        )
        assert result.errors[1].message == "Purchase Order not found: PO-404"

    def test_empty_list_is_rejected(self, inventory_data):
        with pytest.raises(ValidationFailedError):
            asset_service.create_assets_in_bulk([])

    def test_po_number_is_forced_on_every_item(self, inventory_data):
        result = asset_service.create_assets_for_po(
            "PO-1001", [{"name": "A", "po_number": "PO-ELSEWHERE"}, {"name": "B"}]
        )
        assert result.failure_count == 0
        assert {a.po_number for a in result.successful_assets} == {"PO-1001"}
        assert AuditLog.query.filter_by(action_type="BULK_CREATE_BY_PO").count() == 2

    def test_unknown_po_for_bulk(self, inventory_data):
        with pytest.raises(ResourceNotFoundError):
            asset_service.create_assets_for_po("PO-404", [{"name": "A"}])


class TestUpdateAsset:
    """Partial updates re-check identifiers and record history."""

    @pytest.fixture(autouse=True)
    def _assets(self, inventory_data):
        self.data = inventory_data
        self.first = asset_service.create_asset({"name": "First", "serial_number": "SN-A"})
        self.second = asset_service.create_asset({"name": "Second", "serial_number": "SN-B"})

    def test_only_given_fields_change(self):
        asset = asset_service.update_asset(self.first.id, {"inventory_location": "HQ"})
        assert asset.inventory_location == "HQ"
        assert asset.serial_number == "SN-A"

    def test_keeping_own_serial_is_allowed(self):
        asset = asset_service.update_asset(self.first.id, {"serial_number": "sn-a"})
        assert asset.serial_number == "sn-a"

    def test_taking_another_serial_is_rejected(self):
        with pytest.raises(ValidationFailedError) as exc_info:
            asset_service.update_asset(self.first.id, {"serial_number": "SN-B"})
        assert exc_info.value.errors == [
            "Serial number already exists (case-insensitive): SN-B"
        ]

    def test_status_change_is_recorded(self):
        asset_service.update_asset(self.first.id, {"status": "in repair"})
        statuses = [
            row.status
            for row in AssetStatusHistory.query.filter_by(asset_id=self.first.id)
            .order_by(AssetStatusHistory.id)
        ]
        assert statuses == [STATUS_IN_STOCK, STATUS_IN_REPAIR]

    def test_holder_change_closes_previous_assignment(self):
        other = user_service.create_user({"full_name_or_office_name": "Second Holder"})
        asset_service.update_asset(self.first.id, {"current_user_id": self.data.user.id})
        asset_service.update_asset(self.first.id, {"current_user_id": other.id})

        rows = (
            AssetAssignmentHistory.query.filter_by(asset_id=self.first.id)
            .order_by(AssetAssignmentHistory.id)
            .all()
        )
        assert [row.user_id for row in rows] == [self.data.user.id, other.id]
        assert not rows[0].is_open
        assert rows[1].is_open

    def test_unknown_po_on_update(self):
        with pytest.raises(ValidationFailedError) as exc_info:
            asset_service.update_asset(self.first.id, {"po_number": "PO-404"})
        assert exc_info.value.errors == ["Purchase Order not found: PO-404"]

    def test_new_model_re_derives_make_and_type(self):
        desktop = catalog_service.create_asset_type({"name": "Desktop"})
        hp = catalog_service.create_asset_make({"name": "HP", "type_id": desktop.id})
        elite = catalog_service.create_asset_model({"name": "EliteDesk", "make_id": hp.id})
        asset_service.update_asset(self.first.id, {"model_id": self.data.model.id})

        asset = asset_service.update_asset(self.first.id, {"model_id": elite.id})

        assert asset.make_id == hp.id
        assert asset.asset_type_id == desktop.id

    def test_new_po_and_os_version_re_derive_ids(self):
        asset = asset_service.update_asset(
            self.first.id,
            {"po_number": "PO-1001", "os_version_id": self.data.os_version.id},
        )
        assert asset.vendor_id == self.data.vendor.id
        assert asset.extended_warranty_vendor_id == self.data.vendor.id
        assert asset.os_id == self.data.os.id

    def test_explicit_id_wins_over_re_derived(self):
        other = vendor_service.create_vendor({"name": "Reseller"})
        asset = asset_service.update_asset(
            self.first.id, {"po_number": "PO-1001", "vendor_id": other.id}
        )
        assert asset.vendor_id == other.id
        assert asset.extended_warranty_vendor_id == self.data.vendor.id

    def test_model_with_broken_chain_is_rejected(self):
        loose = catalog_service.create_asset_model({"name": "Loose"})
        with pytest.raises(ValidationFailedError) as exc_info:
            asset_service.update_asset(self.first.id, {"model_id": loose.id})
        assert exc_info.value.errors == [f"Asset Model ID {loose.id} has no associated Make"]
        assert db.session.get(Asset, self.first.id).model_id is None

    def test_update_status_endpoint_helper(self):
        asset = asset_service.update_asset_status(self.first.id, "Broken", remarks="Dropped")
        assert asset.status == "BROKEN"
        entry = AuditLog.query.filter_by(action_type="STATUS_CHANGE").one()
        assert entry.details == "Dropped"


class TestSoftDeleteLifecycle:
    """Delete, restore and permanent delete."""

    def test_deleted_asset_is_hidden(self, inventory_data):
        asset = asset_service.create_asset({"name": "Gone"})
        asset_service.delete_asset(asset.id)
        with pytest.raises(ResourceNotFoundError):
            asset_service.get_asset(asset.id)
        assert asset.id in [a.id for a in asset_service.get_deleted_assets().items]
        assert asset_service.get_assets().total == 0

    def test_double_delete_is_rejected(self, inventory_data):
        asset = asset_service.create_asset({"name": "Gone"})
        asset_service.delete_asset(asset.id)
        with pytest.raises(ValidationFailedError):
            asset_service.delete_asset(asset.id)

    def test_restore(self, inventory_data):
        asset = asset_service.create_asset({"name": "Back", "serial_number": "SN-R"})
        asset_service.delete_asset(asset.id)
        restored = asset_service.restore_asset(asset.id)
        assert not restored.is_deleted

    def test_restore_refused_when_identifier_was_reused(self, inventory_data):
        asset = asset_service.create_asset({"name": "Old", "serial_number": "SN-R"})
        asset_service.delete_asset(asset.id)
        asset_service.create_asset({"name": "New", "serial_number": "SN-R"})
        with pytest.raises(ConflictError):
            asset_service.restore_asset(asset.id)

    def test_restore_live_asset_is_rejected(self, inventory_data):
        asset = asset_service.create_asset({"name": "Live"})
        with pytest.raises(ValidationFailedError):
            asset_service.restore_asset(asset.id)

    def test_permanent_delete_keeps_audit_trail(self, inventory_data):
        asset = asset_service.create_asset({"name": "Purged", "status": "Active"})
        asset_id = asset.id
        asset_service.permanently_delete_asset(asset_id)
        assert db.session.get(Asset, asset_id) is None
        assert AssetStatusHistory.query.filter_by(asset_id=asset_id).count() == 0
        assert AuditLog.query.filter_by(asset_id=asset_id).count() == 2


class TestSearch:
    def test_search_by_serial_and_po(self, inventory_data):
        asset_service.create_asset({"name": "Findable", "serial_number": "XYZ-123"})
        asset_service.create_asset({"name": "On PO", "po_number": "PO-1001"})
        assert [a.name for a in asset_service.search_assets("xyz").items] == ["Findable"]
        assert [a.name for a in asset_service.search_assets("PO-1001").items] == ["On PO"]


class TestIdentifierValues:
    """Identifiers sent as JSON numbers are stored as text."""

    def test_numeric_serial_on_create(self, inventory_data):
        asset = asset_service.create_asset({"name": "Numeric", "serial_number": 12345})
        assert asset.serial_number == "12345"

    def test_numeric_serial_keeps_other_checks_running(self, inventory_data):
        with pytest.raises(ValidationFailedError) as exc_info:
            asset_service.create_asset(
                {"name": "Numeric", "serial_number": 12345, "po_number": "PO-404"}
            )
        assert exc_info.value.errors == ["Purchase Order not found: PO-404"]

    def test_numeric_serial_clash_on_update(self, inventory_data):
        asset_service.create_asset({"name": "First", "serial_number": "12345"})
        second = asset_service.create_asset({"name": "Second"})
        with pytest.raises(ValidationFailedError) as exc_info:
            asset_service.update_asset(second.id, {"serial_number": 12345})
        assert exc_info.value.errors == [
            "Serial number already exists (case-insensitive): 12345"
        ]

    def test_numeric_it_asset_code_on_update(self, inventory_data):
        asset = asset_service.create_asset({"name": "Coded"})
        updated = asset_service.update_asset(asset.id, {"it_asset_code": 77})
        assert updated.it_asset_code == "77"

    def test_object_value_is_rejected(self, inventory_data):
        with pytest.raises(ValidationFailedError) as exc_info:
            asset_service.create_asset({"name": "Odd", "mac_address": {"a": 1}})
        assert exc_info.value.errors[0].startswith("Invalid value for mac_address")


class TestStoreConstraints:
    """The database backs up the service-level rules."""

    def test_live_duplicate_serial_is_refused(self, db_session):
        db_session.add(Asset(name="One", serial_number="DUP"))
        db_session.commit()
        db_session.add(Asset(name="Two", serial_number="dup"))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()
        assert Asset.query.count() == 1

    def test_deleted_rows_do_not_hold_identifiers(self, db_session):
        db_session.add(Asset(name="Old", it_asset_code="IT-9", is_deleted=True))
        db_session.add(Asset(name="New", it_asset_code="IT-9"))
        db_session.commit()
        assert Asset.query.count() == 2

    def test_unknown_po_reference_is_refused(self, db_session):
        db_session.add(Asset(name="Orphan", po_number="PO-NONE"))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()
