"""
Tests for assignment_service and tag_service.
"""

import pytest

from inventory.exceptions import ConflictError, ResourceNotFoundError, ValidationFailedError
from inventory.extensions import db
from inventory.models.asset import Asset, AssetTagAssignment
from inventory.models.history import AssetAssignmentHistory
from inventory.services import asset_service, assignment_service, tag_service


@pytest.fixture
def asset(inventory_data):
    return asset_service.create_asset({"name": "Tagged Laptop", "serial_number": "SN-T"})


class TestUserAssignment:
    """Assigning and unassigning holders."""

    def test_assign_then_unassign(self, inventory_data, asset):
        assignment_service.assign_user(asset.id, inventory_data.user.id, remarks="New hire")
        assert assignment_service.get_current_user(asset.id).id == inventory_data.user.id

        assignment_service.unassign_user(asset.id)
        assert assignment_service.get_current_user(asset.id) is None
        row = AssetAssignmentHistory.query.filter_by(asset_id=asset.id).one()
        assert row.remarks == "New hire"
        assert row.unassigned_date is not None

    def test_unassign_unassigned_asset(self, asset):
        with pytest.raises(ValidationFailedError):
            assignment_service.unassign_user(asset.id)

    def test_assign_unknown_user(self, asset):
        with pytest.raises(ResourceNotFoundError):
            assignment_service.assign_user(asset.id, 999)


class TestTagAssignment:
    """Replace, add-by-name and remove."""

    def test_replace_semantics(self, asset):
        red = tag_service.create_tag("red")
        blue = tag_service.create_tag("blue")
        green = tag_service.create_tag("green")

        assignment_service.assign_tags(asset.id, [red.id, blue.id])
        assignment_service.assign_tags(asset.id, [green.id, green.id])

        rows = assignment_service.get_tag_assignments(asset_id=asset.id)
        assert [row.tag_id for row in rows] == [green.id]
        assert db.session.get(Asset, asset.id).tags == "green"

    def test_empty_list_clears_tags(self, asset):
        red = tag_service.create_tag("red")
        assignment_service.assign_tags(asset.id, [red.id])
        assignment_service.assign_tags(asset.id, [])
        assert AssetTagAssignment.query.filter_by(asset_id=asset.id).count() == 0
        assert db.session.get(Asset, asset.id).tags is None

    def test_unknown_tag_changes_nothing(self, asset):
        red = tag_service.create_tag("red")
        assignment_service.assign_tags(asset.id, [red.id])
        with pytest.raises(ResourceNotFoundError):
            assignment_service.assign_tags(asset.id, [999])
        assert [row.tag_id for row in assignment_service.get_tag_assignments(asset.id)] == [red.id]

    def test_assign_by_name_creates_tag(self, asset):
        assignment_service.assign_tag_by_name(asset.id, "Finance")
        assignment_service.assign_tag_by_name(asset.id, "Audit")
        assert tag_service.get_tag_by_name("finance") is not None
        assert db.session.get(Asset, asset.id).tags == "Audit, Finance"

    def test_assign_same_name_twice_is_a_conflict(self, asset):
        assignment_service.assign_tag_by_name(asset.id, "Finance")
        with pytest.raises(ConflictError):
            assignment_service.assign_tag_by_name(asset.id, "FINANCE")

    def test_unassign_tag(self, asset):
        tag_id = assignment_service.assign_tag_by_name(asset.id, "Finance").tag_id
        assignment_service.unassign_tag(asset.id, tag_id)
        assert db.session.get(Asset, asset.id).tags is None
        with pytest.raises(ResourceNotFoundError):
            assignment_service.unassign_tag(asset.id, tag_id)


class TestTags:
    """Tag CRUD."""

    def test_duplicate_name_is_case_insensitive(self, db_session):
        tag_service.create_tag("Spare")
        with pytest.raises(ConflictError):
            tag_service.create_tag("spare")

    def test_blank_name(self, db_session):
        with pytest.raises(ValidationFailedError):
            tag_service.create_tag("  ")

    def test_find_or_create_is_idempotent(self, db_session):
        first = tag_service.find_or_create_tag("Loaner")
        second = tag_service.find_or_create_tag("loaner")
        assert first.id == second.id

    def test_delete_removes_assignments(self, asset):
        tag_id = assignment_service.assign_tag_by_name(asset.id, "Temp").tag_id
        tag_service.delete_tag(tag_id)
        assert AssetTagAssignment.query.count() == 0
        assert db.session.get(Asset, asset.id).tags is None
