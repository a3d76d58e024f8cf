"""
Routes for the reports blueprint.

Provides the analytics summary and the asset register export in CSV or
Excel format.
"""

from datetime import date

from flask import jsonify, make_response, request

from inventory.blueprints.reports import bp
from inventory.exceptions import ValidationFailedError
from inventory.services import asset_service, export_service, report_service

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@bp.route("/summary", methods=["GET"])
def analytics_summary():
    """Counts by status, category, OS, asset type, warranty and age."""
    return jsonify(report_service.get_analytics_summary().to_dict())


@bp.route("/export", methods=["GET"])
def export_asset_register():
    """
    Download the asset register of all non-deleted assets.

    Query parameters:
        format: ``csv`` (default) or ``xlsx``.
    """
    export_format = request.args.get("format", "csv").lower()
    assets = asset_service.get_all_assets()
    filename = f"asset_register_{date.today():%Y%m%d}"

    if export_format == "xlsx":
        buffer = export_service.export_assets_excel(assets)
        response = make_response(buffer.read())
        response.headers["Content-Type"] = XLSX_CONTENT_TYPE
        response.headers["Content-Disposition"] = f"attachment; filename={filename}.xlsx"
        return response

    if export_format == "csv":
        buffer = export_service.export_assets_csv(assets)
        response = make_response(buffer.read())
        response.headers["Content-Type"] = "text/csv; charset=utf-8"
        response.headers["Content-Disposition"] = f"attachment; filename={filename}.csv"
        return response

    raise ValidationFailedError(f"Unsupported export format: '{export_format}'")
