"""
Tests for report_service analytics, the derived warranty/license
status helpers and the export_service file builders.
"""

import csv
import io
from datetime import date

import pytest
from openpyxl import load_workbook

from inventory.models.asset import (
    LIFECYCLE_ACTIVE,
    LIFECYCLE_EXPIRED,
    LIFECYCLE_WARNING,
    NO_WARRANTY,
    NOT_APPLICABLE,
    lifecycle_status,
    subtract_months,
)
from inventory.services import asset_service, export_service, report_service

TODAY = date(2026, 10, 19)


class TestLifecycleStatus:
    @pytest.mark.parametrize(
        "value, months, expected",
        [
            (date(2026, 5, 31), 3, date(2026, 2, 28)),
            (date(2024, 5, 31), 3, date(2024, 2, 29)),
            (date(2026, 1, 15), 1, date(2025, 12, 15)),
            (date(2026, 3, 10), 0, date(2026, 3, 10)),
        ],
    )
    def test_subtract_months_clamps_day(self, value, months, expected):
        assert subtract_months(value, months) == expected

    def test_expiry_day_still_counts(self):
        assert lifecycle_status(TODAY, 3, today=TODAY) == LIFECYCLE_WARNING

    def test_expired(self):
        assert lifecycle_status(date(2026, 10, 18), 3, today=TODAY) == LIFECYCLE_EXPIRED

    def test_warning_window(self):
        assert lifecycle_status(date(2027, 1, 1), 3, today=TODAY) == LIFECYCLE_WARNING

    def test_active(self):
        assert lifecycle_status(date(2027, 6, 1), 3, today=TODAY) == LIFECYCLE_ACTIVE

    def test_asset_without_warranty(self, inventory_data):
        asset = asset_service.create_asset({"name": "No warranty"})
        assert asset.warranty_status == NO_WARRANTY
        assert asset.license_status == NOT_APPLICABLE

    def test_software_license_status(self, inventory_data):
        asset = asset_service.create_asset(
            {
                "name": "Office Suite",
                "asset_category": "SOFTWARE",
                "license_validity_period": "2000-01-01",
            }
        )
        assert asset.license_status == LIFECYCLE_EXPIRED


class TestAgeBucket:
    @pytest.mark.parametrize(
        "acquired, expected",
        [
            (None, "Unknown"),
            (date(2026, 1, 1), "0-1 years"),
            (date(2024, 10, 1), "1-3 years"),
            (date(2022, 1, 1), "3-5 years"),
            (date(2015, 1, 1), "5+ years"),
        ],
    )
    def test_buckets(self, acquired, expected):
        assert report_service.age_bucket(acquired, TODAY) == expected


class TestAnalyticsSummary:
    @pytest.fixture(autouse=True)
    def _register(self, inventory_data):
        data = inventory_data
        asset_service.create_asset(
            {
                "name": "Covered",
                "status": "Active",
                "asset_category": "HARDWARE",
                "model_id": data.model.id,
                "os_version_id": data.os_version.id,
                "acquisition_date": "2026-01-01",
                "warranty_expiry": "2028-01-01",
            }
        )
        asset_service.create_asset(
            {
                "name": "Lapsed",
                "asset_category": "HARDWARE",
                "model_id": data.model.id,
                "acquisition_date": "2015-01-01",
                "warranty_expiry": "2018-01-01",
            }
        )
        asset_service.create_asset({"name": "Bare"})
        gone = asset_service.create_asset({"name": "Deleted", "status": "Active"})
        asset_service.delete_asset(gone.id)

    def test_counts_exclude_deleted_assets(self):
        summary = report_service.get_analytics_summary(today=TODAY)
        assert summary.total_assets == 3
        assert summary.by_status == {"ACTIVE": 1, "IN_STOCK": 2}
        assert summary.by_category == {"HARDWARE": 2, "Unknown": 1}
        assert summary.by_os == {"Windows": 1, "Unknown": 2}
        assert summary.by_asset_type == {"Laptop": 2, "Unknown": 1}

    def test_warranty_and_age(self):
        summary = report_service.get_analytics_summary(today=TODAY)
        laptop = summary.warranty_by_asset_type["Laptop"]
        assert (laptop.in_warranty, laptop.out_of_warranty, laptop.no_warranty) == (1, 1, 0)
        assert summary.warranty_by_asset_type["Unknown"].no_warranty == 1
        assert summary.age_buckets == {
            "0-1 years": 1,
            "1-3 years": 0,
            "3-5 years": 0,
            "5+ years": 1,
            "Unknown": 1,
        }

    def test_to_dict_includes_totals(self):
        body = report_service.get_analytics_summary(today=TODAY).to_dict()
        assert body["warranty_by_asset_type"]["Laptop"]["total"] == 2


class TestExports:
    @pytest.fixture
    def assets(self, inventory_data):
        asset_service.create_asset(
            {
                "name": "Exported",
                "serial_number": "EXP-1",
                "po_number": "PO-1001",
                "acquisition_price": "1250.5",
                "current_user_id": inventory_data.user.id,
            }
        )
        return asset_service.get_assets().items

    def test_csv_has_header_and_rows(self, assets):
        buffer = export_service.export_assets_csv(assets)
        text = buffer.getvalue().decode("utf-8-sig")
        rows = list(csv.reader(io.StringIO(text)))
        assert rows[0] == export_service.ASSET_REGISTER_HEADERS
        row = dict(zip(rows[0], rows[1]))
        assert row["Serial Number"] == "EXP-1"
        assert row["Vendor"] == "Acme Hardware"
        assert row["Assigned To"] == "Jane Holder"
        assert row["Acquisition Price"] == "1250.50"

    def test_excel_workbook(self, assets):
        workbook = load_workbook(export_service.export_assets_excel(assets))
        sheet = workbook["Asset Register"]
        header = [cell.value for cell in sheet[1]]
        assert header == export_service.ASSET_REGISTER_HEADERS
        assert sheet.max_row == 2
        assert sheet.cell(row=2, column=3).value == "EXP-1"
