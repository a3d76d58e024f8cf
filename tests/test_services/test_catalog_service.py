"""
Tests for the reference-data services: catalog, vendors and users.
"""

import pytest

from inventory.exceptions import ConflictError, ResourceNotFoundError, ValidationFailedError
from inventory.models.audit import AuditLog
from inventory.services import asset_service, catalog_service, user_service, vendor_service


class TestAssetTypes:
    def test_name_is_unique_ignoring_case(self, db_session):
        catalog_service.create_asset_type({"name": "Monitor"})
        with pytest.raises(ConflictError):
            catalog_service.create_asset_type({"name": "monitor"})

    def test_rename_onto_itself_is_allowed(self, inventory_data):
        renamed = catalog_service.update_asset_type(
            inventory_data.asset_type.id, {"name": "LAPTOP"}
        )
        assert renamed.name == "LAPTOP"

    def test_blank_name(self, db_session):
        with pytest.raises(ValidationFailedError):
            catalog_service.create_asset_type({"name": ""})

    def test_invalid_record_status(self, db_session):
        with pytest.raises(ValidationFailedError):
            catalog_service.create_asset_type({"name": "Phone", "status": "Retired"})

    def test_delete_refused_while_makes_exist(self, inventory_data):
        with pytest.raises(ConflictError) as exc_info:
            catalog_service.delete_asset_type(inventory_data.asset_type.id)
        assert "1 makes" in exc_info.value.message

    def test_delete_unused_type(self, db_session):
        asset_type = catalog_service.create_asset_type({"name": "Scanner"})
        catalog_service.delete_asset_type(asset_type.id)
        assert catalog_service.get_asset_type_by_id(asset_type.id) is None
        assert AuditLog.query.filter_by(entity_type="asset_type", action_type="DELETE").count() == 1

    def test_search(self, inventory_data):
        catalog_service.create_asset_type({"name": "Desktop"})
        page = catalog_service.get_asset_types(search="desk")
        assert [t.name for t in page.items] == ["Desktop"]


class TestMakesAndModels:
    def test_make_with_unknown_type(self, db_session):
        with pytest.raises(ResourceNotFoundError):
            catalog_service.create_asset_make({"name": "HP", "type_id": 999})

    def test_makes_filtered_by_type(self, inventory_data):
        catalog_service.create_asset_make({"name": "Loose"})
        page = catalog_service.get_asset_makes(type_id=inventory_data.asset_type.id)
        assert [m.name for m in page.items] == ["Dell"]

    def test_model_details_resolve_chain(self, inventory_data):
        details = catalog_service.get_model_details(inventory_data.model.id)
        assert details["make_name"] == "Dell"
        assert details["type_id"] == inventory_data.asset_type.id
        assert details["type_name"] == "Laptop"

    def test_model_details_with_broken_chain(self, db_session):
        model = catalog_service.create_asset_model({"name": "Orphan"})
        details = catalog_service.get_model_details(model.id)
        assert details["make_name"] is None
        assert details["type_name"] is None

    def test_model_in_use_cannot_be_deleted(self, inventory_data):
        asset_service.create_asset({"name": "Uses model", "model_id": inventory_data.model.id})
        with pytest.raises(ConflictError):
            catalog_service.delete_asset_model(inventory_data.model.id)

    def test_unknown_model(self, db_session):
        with pytest.raises(ResourceNotFoundError):
            catalog_service.get_asset_model(999)


class TestOperatingSystems:
    def test_os_type_is_unique_ignoring_case(self, inventory_data):
        with pytest.raises(ConflictError):
            catalog_service.create_os({"os_type": "WINDOWS"})

    def test_rename_onto_other_os_is_a_conflict(self, inventory_data):
        linux = catalog_service.create_os({"os_type": "Linux"})
        with pytest.raises(ConflictError):
            catalog_service.update_os(linux.id, {"os_type": "windows"})

    def test_delete_refused_while_versions_exist(self, inventory_data):
        with pytest.raises(ConflictError):
            catalog_service.delete_os(inventory_data.os.id)

    def test_versions_filtered_by_os(self, inventory_data):
        linux = catalog_service.create_os({"os_type": "Linux"})
        catalog_service.create_os_version({"os_id": linux.id, "version_number": "24.04"})
        page = catalog_service.get_os_versions(os_id=inventory_data.os.id)
        assert [v.version_number for v in page.items] == ["11"]


class TestVendors:
    def test_name_required(self, db_session):
        with pytest.raises(ValidationFailedError) as exc_info:
            vendor_service.create_vendor({"contact_info": "sales@example.com"})
        assert exc_info.value.errors == ["Vendor name is required"]

    def test_deactivate_and_activate(self, inventory_data):
        vendor_id = inventory_data.vendor.id
        vendor_service.deactivate_vendor(vendor_id)
        assert vendor_service.get_active_vendors() == []
        vendor_service.activate_vendor(vendor_id)
        assert [v.id for v in vendor_service.get_active_vendors()] == [vendor_id]

    def test_vendor_on_po_cannot_be_deleted(self, inventory_data):
        with pytest.raises(ConflictError) as exc_info:
            vendor_service.delete_vendor(inventory_data.vendor.id)
        assert "1 purchase orders" in exc_info.value.message

    def test_unreferenced_vendor_is_deleted(self, db_session):
        vendor = vendor_service.create_vendor({"name": "Short lived"})
        vendor_service.delete_vendor(vendor.id)
        assert vendor_service.get_vendor_by_id(vendor.id) is None


class TestUsers:
    def test_employee_code_is_unique(self, inventory_data):
        with pytest.raises(ConflictError):
            user_service.create_user(
                {"full_name_or_office_name": "Someone Else", "employee_code": "E-100"}
            )

    def test_update_keeping_own_code(self, inventory_data):
        user = user_service.update_user(
            inventory_data.user.id, {"employee_code": "E-100", "department": "Finance"}
        )
        assert user.department == "Finance"

    def test_lookup_by_email_ignores_case(self, inventory_data):
        user = user_service.get_user_by_email("jane.holder@EXAMPLE.com")
        assert user.id == inventory_data.user.id

    def test_inactive_users_can_be_excluded(self, inventory_data):
        user_service.create_user({"full_name_or_office_name": "Front Office"})
        user_service.deactivate_user(inventory_data.user.id)
        page = user_service.get_users(include_inactive=False)
        assert [u.full_name_or_office_name for u in page.items] == ["Front Office"]

    def test_holder_cannot_be_deleted(self, inventory_data):
        asset_service.create_asset(
            {"name": "Held", "current_user_id": inventory_data.user.id}
        )
        with pytest.raises(ConflictError):
            user_service.delete_user(inventory_data.user.id)

    def test_name_required(self, db_session):
        with pytest.raises(ValidationFailedError):
            user_service.create_user({"email": "nobody@example.com"})
