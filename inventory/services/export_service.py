"""
Export service — generate CSV and Excel files of the asset register.

All export functions return a BytesIO buffer ready to be sent as
a Flask response with the appropriate content type.
"""

import csv
import io
import logging
from decimal import Decimal

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from inventory.models.asset import Asset

logger = logging.getLogger(__name__)

# Excel header styling constants.
_HEADER_FONT = Font(bold=True, color="FFFFFF")
_HEADER_FILL = PatternFill(start_color="2B579A", end_color="2B579A", fill_type="solid")
_HEADER_ALIGN = Alignment(horizontal="center", wrap_text=True)
_CURRENCY_FORMAT = '#,##0.00'
_DATE_FORMAT = "yyyy-mm-dd"

ASSET_REGISTER_HEADERS = [
    "Asset ID",
    "Name",
    "Serial Number",
    "IT Asset Code",
    "Status",
    "Category",
    "Asset Type",
    "Make",
    "Model",
    "OS",
    "PO Number",
    "Vendor",
    "Assigned To",
    "Acquisition Date",
    "Acquisition Price",
    "Warranty Expiry",
    "Warranty Status",
    "License Status",
    "Location",
]

# Columns (1-indexed) holding dates and money in the Excel sheet.
_DATE_COLUMNS = (14, 16)
_CURRENCY_COLUMNS = (15,)


def _register_row(asset: Asset) -> list:
    """One asset as a list of raw values in ``ASSET_REGISTER_HEADERS`` order."""
    return [
        asset.id,
        asset.name,
        asset.serial_number,
        asset.it_asset_code,
        asset.status,
        asset.asset_category,
        asset.asset_type.name if asset.asset_type else None,
        asset.make.name if asset.make else None,
        asset.model.name if asset.model else None,
        asset.os.os_type if asset.os else None,
        asset.po_number,
        asset.vendor.name if asset.vendor else None,
        asset.current_user.full_name_or_office_name if asset.current_user else None,
        asset.acquisition_date,
        asset.acquisition_price,
        asset.warranty_expiry,
        asset.warranty_status,
        asset.license_status,
        asset.inventory_location,
    ]


# =========================================================================
# CSV Exports
# =========================================================================

def export_assets_csv(assets: list[Asset]) -> io.BytesIO:
    """
    Export the asset register to CSV.

    Args:
        assets: Assets to include, in output order.

    Returns:
        BytesIO buffer containing the CSV data.
    """
    output = io.StringIO()
    writer = csv.writer(output)

    writer.writerow(ASSET_REGISTER_HEADERS)
    for asset in assets:
        row = _register_row(asset)
        writer.writerow(
            [_format_csv_value(value) for value in row]
        )

    # Convert to bytes for Flask response.
    buffer = io.BytesIO()
    buffer.write(output.getvalue().encode("utf-8-sig"))
    buffer.seek(0)
    logger.info("Exported %d assets to CSV", len(assets))
    return buffer


# =========================================================================
# Excel Exports
# =========================================================================

def export_assets_excel(assets: list[Asset]) -> io.BytesIO:
    """
    Export the asset register to an Excel workbook.

    Args:
        assets: Assets to include, in output order.

    Returns:
        BytesIO buffer containing the .xlsx data.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = "Asset Register"

    _write_header_row(ws, ASSET_REGISTER_HEADERS)

    for row_idx, asset in enumerate(assets, start=2):
        for col_idx, value in enumerate(_register_row(asset), start=1):
            if isinstance(value, Decimal):
                value = float(value)
            cell = ws.cell(row=row_idx, column=col_idx, value=value)
            if col_idx in _CURRENCY_COLUMNS and value is not None:
                cell.number_format = _CURRENCY_FORMAT
            elif col_idx in _DATE_COLUMNS and value is not None:
                cell.number_format = _DATE_FORMAT

    ws.freeze_panes = "A2"
    _auto_fit_columns(ws)

    buffer = io.BytesIO()
    wb.save(buffer)
    buffer.seek(0)
    logger.info("Exported %d assets to Excel", len(assets))
    return buffer


# =========================================================================
# Internal helpers
# =========================================================================

def _write_header_row(ws, headers: list[str]) -> None:
    """Write a styled header row to an Excel worksheet."""
    for col_idx, header in enumerate(headers, start=1):
        cell = ws.cell(row=1, column=col_idx, value=header)
        cell.font = _HEADER_FONT
        cell.fill = _HEADER_FILL
        cell.alignment = _HEADER_ALIGN


def _auto_fit_columns(ws) -> None:
    """Auto-fit column widths based on content (approximate)."""
    for col in ws.columns:
        max_length = 0
        col_letter = get_column_letter(col[0].column)
        for cell in col:
            if cell.value:
                max_length = max(max_length, len(str(cell.value)))
        ws.column_dimensions[col_letter].width = min(max_length + 4, 40)


def _format_csv_value(value) -> str:
    if value is None:
        return ""
    if isinstance(value, Decimal):
        return f"{value:.2f}"
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)
