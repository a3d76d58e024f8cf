"""
Tests for po_service: PO CRUD, number migration, update cascades and
cascade deletion with conflict detection.
"""

from datetime import date, timedelta

import pytest

from inventory.exceptions import ConflictError, ResourceNotFoundError, ValidationFailedError
from inventory.extensions import db
from inventory.models.asset import Asset
from inventory.models.audit import AuditLog
from inventory.models.procurement import AssetPO
from inventory.services import asset_service, assignment_service, po_service


def _add_assets(po_number: str, count: int, **extra) -> list[Asset]:
    items = [
        {"name": f"Device {n}", "serial_number": f"{po_number}-SN-{n}", **extra}
        for n in range(count)
    ]
    result = asset_service.create_assets_for_po(po_number, items)
    assert result.failure_count == 0, [e.message for e in result.errors]
    return result.successful_assets


class TestCreatePO:
    """Field rules for new purchase orders."""

    def test_acquisition_type_is_normalized(self, inventory_data):
        po = po_service.create_po({"po_number": "PO-2", "acquisition_type": "RENTED"})
        assert po.acquisition_type == "Rented"

    def test_invalid_acquisition_type(self, inventory_data):
        with pytest.raises(ValidationFailedError) as exc_info:
            po_service.create_po({"po_number": "PO-2", "acquisition_type": "Leased"})
        assert "Invalid acquisition type: 'Leased'" in exc_info.value.errors[0]

    def test_duplicate_number_is_a_conflict(self, inventory_data):
        with pytest.raises(ConflictError):
            po_service.create_po({"po_number": "PO-1001", "acquisition_type": "Bought"})

    def test_warranty_before_acquisition_is_rejected(self, inventory_data):
        with pytest.raises(ValidationFailedError) as exc_info:
            po_service.create_po(
                {
                    "po_number": "PO-3",
                    "acquisition_type": "Bought",
                    "acquisition_date": "2025-06-01",
                    "warranty_expiry_date": "2025-01-01",
                }
            )
        assert exc_info.value.errors == [
            "Warranty expiry date (2025-01-01) cannot be before acquisition date (2025-06-01)"
        ]

    def test_unknown_vendor(self, inventory_data):
        with pytest.raises(ResourceNotFoundError):
            po_service.create_po(
                {"po_number": "PO-4", "acquisition_type": "Bought", "vendor_id": 999}
            )

    def test_warranty_date_errors_flags_ancient_dates(self):
        today = date(2026, 10, 19)
        errors = po_service.warranty_date_errors(date(2010, 1, 1), None, today=today)
        assert errors == [
            "Warranty expiry date (2010-01-01) seems too far in the past (more than 10 years ago)"
        ]


class TestMigratePONumber:
    """Moving a PO and its assets to a new number."""

    def test_success_repoints_assets_and_removes_old_po(self, inventory_data):
        assets = _add_assets("PO-1001", 3)

        result = po_service.migrate_po_number("PO-1001", "PO-2001")

        assert result.assets_updated == 3
        assert result.message == (
            "Successfully migrated PO number from 'PO-1001' to 'PO-2001'. "
            "Updated 3 asset records."
        )
        assert po_service.get_po_by_number_or_none("PO-1001") is None
        new_po = po_service.get_po_by_number("PO-2001")
        assert new_po.vendor_id == inventory_data.vendor.id
        assert new_po.invoice_number == "INV-1"
        for asset in assets:
            assert db.session.get(Asset, asset.id).po_number == "PO-2001"

    def test_soft_deleted_assets_follow_the_new_number(self, inventory_data):
        live, gone = _add_assets("PO-1001", 2)
        asset_service.delete_asset(gone.id)

        result = po_service.migrate_po_number("PO-1001", "PO-2001")

        assert result.assets_updated == 2
        assert db.session.get(Asset, live.id).po_number == "PO-2001"
        deleted = db.session.get(Asset, gone.id)
        assert deleted.po_number == "PO-2001"
        assert deleted.is_deleted

    def test_migration_is_audited(self, inventory_data):
        po_service.migrate_po_number("PO-1001", "PO-2001")
        entry = AuditLog.query.filter_by(action_type="MIGRATE").one()
        assert entry.entity_type == "asset_po"
        assert "PO-2001" in entry.new_value

    def test_existing_target_leaves_state_unchanged(self, inventory_data):
        po_service.create_po({"po_number": "PO-TAKEN", "acquisition_type": "Bought"})
        assets = _add_assets("PO-1001", 2)

        with pytest.raises(ConflictError):
            po_service.migrate_po_number("PO-1001", "PO-TAKEN")

        db.session.expire_all()
        assert po_service.get_po_by_number_or_none("PO-1001") is not None
        assert Asset.query.filter_by(po_number="PO-1001").count() == len(assets)
        assert Asset.query.filter_by(po_number="PO-TAKEN").count() == 0

    def test_unknown_old_number(self, inventory_data):
        with pytest.raises(ResourceNotFoundError):
            po_service.migrate_po_number("PO-NOPE", "PO-NEW")

    @pytest.mark.parametrize("new_number", ["", "   ", None, "PO-1001"])
    def test_blank_or_same_new_number(self, inventory_data, new_number):
        with pytest.raises(ValidationFailedError):
            po_service.migrate_po_number("PO-1001", new_number)

    def test_failure_mid_way_rolls_back(self, inventory_data, monkeypatch):
        _add_assets("PO-1001", 1)

        def _boom(**_kwargs):
            raise RuntimeError("audit store down")

        monkeypatch.setattr(po_service.audit_service, "log_change", _boom)
        with pytest.raises(RuntimeError):
            po_service.migrate_po_number("PO-1001", "PO-2001")

        assert po_service.get_po_by_number_or_none("PO-2001") is None
        assert po_service.get_po_by_number_or_none("PO-1001") is not None
        assert Asset.query.filter_by(po_number="PO-1001").count() == 1


class TestUpdatePO:
    """Edits to a PO flow down to its non-deleted assets."""

    def test_cascaded_fields_reach_live_assets_only(self, inventory_data):
        live, gone = _add_assets("PO-1001", 2)
        asset_service.delete_asset(gone.id)

        po, affected = po_service.update_po(
            inventory_data.po.id, {"invoice_number": "INV-2", "acquisition_price": "999.50"}
        )

        assert po.invoice_number == "INV-2"
        assert affected == 1
        assert db.session.get(Asset, live.id).invoice_number == "INV-2"
        assert str(db.session.get(Asset, live.id).acquisition_price) == "999.50"
        assert db.session.get(Asset, gone.id).invoice_number is None

    def test_renumbering_repoints_assets(self, inventory_data):
        (asset,) = _add_assets("PO-1001", 1)

        po, _ = po_service.update_po(inventory_data.po.id, {"po_number": "PO-1001-R"})

        assert po.po_number == "PO-1001-R"
        assert db.session.get(Asset, asset.id).po_number == "PO-1001-R"

    def test_renumbering_onto_existing_number_is_a_conflict(self, inventory_data):
        po_service.create_po({"po_number": "PO-OTHER", "acquisition_type": "Bought"})
        with pytest.raises(ConflictError):
            po_service.update_po(inventory_data.po.id, {"po_number": "PO-OTHER"})


class TestDeletionChecks:
    """Deletion warning and conflict detection."""

    def test_warning_counts_linked_assets(self, inventory_data):
        _add_assets("PO-1001", 2)
        warning = po_service.get_po_deletion_warning("PO-1001")
        assert warning.linked_assets_count == 2
        assert warning.warning_message.startswith("Warning: This PO has 2 linked assets")

    def test_warning_without_assets(self, inventory_data):
        warning = po_service.get_po_deletion_warning("PO-1001")
        assert not warning.has_linked_assets
        assert warning.warning_message == (
            "This PO has no linked assets and can be safely deleted."
        )

    def test_idle_assets_do_not_block(self, inventory_data):
        _add_assets("PO-1001", 2, status="In Stock")
        assert po_service.check_po_deletion_conflicts("PO-1001") is None

    def test_blocking_reasons_are_listed(self, inventory_data):
        today = date.today()
        (asset,) = _add_assets(
            "PO-1001",
            1,
            status="Active",
            warranty_expiry=(today + timedelta(days=30)).isoformat(),
        )
        assignment_service.assign_user(asset.id, inventory_data.user.id)

        conflict = po_service.check_po_deletion_conflicts("PO-1001")

        assert conflict is not None
        assert conflict.total_assets == 1
        (blocker,) = conflict.blocking_assets
        assert blocker.assigned_to == "Jane Holder"
        assert "Asset assigned to user: Jane Holder" in blocker.reason
        assert "Asset is currently active/in use" in blocker.reason
        assert f"Asset has active warranty until {today + timedelta(days=30)}" in blocker.reason
        assert conflict.message == (
            "Cannot delete PO due to 1 dependent assets with blocking conditions"
        )

    def test_in_repair_and_lease_block(self, inventory_data):
        lease_end = date.today() + timedelta(days=10)
        _add_assets("PO-1001", 1, status="in_repair", lease_end_date=lease_end.isoformat())
        conflict = po_service.check_po_deletion_conflicts("PO-1001")
        reason = conflict.blocking_assets[0].reason
        assert "Asset is currently in repair" in reason
        assert f"Asset has active lease until {lease_end}" in reason


class TestCascadeDelete:
    """delete_po_with_cascade soft-deletes assets then removes the PO."""

    def test_clean_po_is_deleted_with_its_assets(self, inventory_data):
        assets = _add_assets("PO-1001", 3, status="In Stock")

        deleted = po_service.delete_po_with_cascade("PO-1001")

        assert deleted == 3
        assert po_service.get_po_by_number_or_none("PO-1001") is None
        for asset in assets:
            row = db.session.get(Asset, asset.id)
            assert row.is_deleted
            assert row.po_number is None

    def test_conflicts_refuse_without_force(self, inventory_data):
        _add_assets("PO-1001", 1, status="Active")
        with pytest.raises(ConflictError):
            po_service.delete_po_with_cascade("PO-1001")
        assert db.session.get(AssetPO, inventory_data.po.id) is not None

    def test_force_overrides_conflicts(self, inventory_data):
        _add_assets("PO-1001", 1, status="Active")
        assert po_service.delete_po_with_cascade("PO-1001", force=True) == 1
        assert po_service.get_po_by_number_or_none("PO-1001") is None

    def test_plain_delete_refuses_referenced_po(self, inventory_data):
        _add_assets("PO-1001", 1)
        with pytest.raises(ConflictError):
            po_service.delete_po(inventory_data.po.id)


class TestDeleteIndividualAsset:
    """Quiet single-asset soft delete."""

    def test_deletes_once(self, inventory_data):
        (asset,) = _add_assets("PO-1001", 1)
        assert po_service.delete_individual_asset(asset.id) is True
        assert po_service.delete_individual_asset(asset.id) is False

    def test_unknown_asset(self, inventory_data):
        assert po_service.delete_individual_asset(999) is False


class TestPOQueries:
    """Summary, search and lease expiry lookups."""

    def test_summary(self, inventory_data):
        _add_assets("PO-1001", 2)
        summary = po_service.get_po_summary("PO-1001")
        assert summary.total_devices == 5
        assert summary.linked_assets_count == 2
        assert summary.remaining_assets == 3
        assert summary.can_create_more_assets

    def test_leases_expiring_only_returns_rented(self, inventory_data):
        soon = (date.today() + timedelta(days=5)).isoformat()
        po_service.create_po(
            {"po_number": "PO-R1", "acquisition_type": "Rented", "lease_end_date": soon}
        )
        po_service.create_po(
            {"po_number": "PO-B1", "acquisition_type": "Bought", "lease_end_date": soon}
        )
        numbers = [po.po_number for po in po_service.get_leases_expiring(30)]
        assert numbers == ["PO-R1"]

    def test_search_matches_partial_number(self, inventory_data):
        page = po_service.search_pos("1001")
        assert [po.po_number for po in page.items] == ["PO-1001"]
