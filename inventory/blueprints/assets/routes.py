"""
Routes for the assets blueprint.

Create runs the validation engine; a failed validation answers 400
with every error in ``errors``.  Bulk endpoints always answer 200 with
a per-item report, even when some items failed.
"""

from flask import jsonify, request

from inventory.blueprints.assets import bp
from inventory.blueprints.common import (
    acting_user_id,
    created,
    json_body,
    json_list,
    no_content,
    page_args,
    paged,
)
from inventory.services import asset_service, po_service
from inventory.services.asset_validation import AssetRequest, validate_asset_for_creation


# =========================================================================
# Read
# =========================================================================


@bp.route("", methods=["GET"])
def asset_list():
    """List non-deleted assets; filter by status, category, type, user."""
    pagination = asset_service.get_assets(
        status=request.args.get("status"),
        asset_category=request.args.get("asset_category"),
        asset_type_id=request.args.get("asset_type_id", type=int),
        current_user_id=request.args.get("current_user_id", type=int),
        **page_args(),
    )
    return paged(pagination)


@bp.route("/search", methods=["GET"])
def asset_search():
    """Search by name, serial, IT asset code, MAC or PO number."""
    return paged(asset_service.search_assets(request.args.get("q", ""), **page_args()))


@bp.route("/deleted", methods=["GET"])
def asset_deleted_list():
    return paged(asset_service.get_deleted_assets(**page_args()))


@bp.route("/by-po/<path:po_number>", methods=["GET"])
def assets_by_po(po_number: str):
    assets = asset_service.get_assets_by_po(po_number)
    return jsonify([asset.to_dict() for asset in assets])


@bp.route("/<int:asset_id>", methods=["GET"])
def asset_detail(asset_id: int):
    return jsonify(asset_service.get_asset(asset_id).to_dict())


# =========================================================================
# Create
# =========================================================================


@bp.route("", methods=["POST"])
def asset_create():
    asset = asset_service.create_asset(json_body(), user_id=acting_user_id())
    return created(asset)


@bp.route("/validate", methods=["POST"])
def asset_validate():
    """Dry-run the creation checks without saving anything."""
    result = validate_asset_for_creation(AssetRequest.from_dict(json_body()))
    return jsonify(result.to_dict())


@bp.route("/bulk", methods=["POST"])
def asset_bulk_create():
    """Create many assets; accepts a JSON array or ``{"assets": [...]}``."""
    result = asset_service.create_assets_in_bulk(
        json_list("assets"), user_id=acting_user_id()
    )
    return jsonify(result.to_dict())


@bp.route("/bulk/po/<path:po_number>", methods=["POST"])
def asset_bulk_create_for_po(po_number: str):
    result = asset_service.create_assets_for_po(
        po_number, json_list("assets"), user_id=acting_user_id()
    )
    return jsonify(result.to_dict())


# =========================================================================
# Update
# =========================================================================


@bp.route("/<int:asset_id>", methods=["PUT", "PATCH"])
def asset_update(asset_id: int):
    """Partial update: only keys present in the body change."""
    asset = asset_service.update_asset(asset_id, json_body(), user_id=acting_user_id())
    return jsonify(asset.to_dict())


@bp.route("/<int:asset_id>/status", methods=["PUT", "PATCH"])
def asset_status_update(asset_id: int):
    data = json_body()
    asset = asset_service.update_asset_status(
        asset_id,
        data.get("status"),
        remarks=data.get("remarks"),
        user_id=acting_user_id(),
    )
    return jsonify(asset.to_dict())


# =========================================================================
# Delete / restore
# =========================================================================


@bp.route("/<int:asset_id>", methods=["DELETE"])
def asset_delete(asset_id: int):
    """Soft delete; ``?permanent=true`` removes the row for good."""
    if request.args.get("permanent", "").lower() in ("1", "true", "yes"):
        asset_service.permanently_delete_asset(asset_id, user_id=acting_user_id())
    else:
        asset_service.delete_asset(asset_id, user_id=acting_user_id())
    return no_content()


@bp.route("/<int:asset_id>/soft-delete", methods=["POST"])
def asset_soft_delete_quiet(asset_id: int):
    """Soft delete that reports absence as ``deleted: false`` instead of 404."""
    deleted = po_service.delete_individual_asset(asset_id, user_id=acting_user_id())
    return jsonify({"asset_id": asset_id, "deleted": deleted})


@bp.route("/<int:asset_id>/restore", methods=["POST"])
def asset_restore(asset_id: int):
    asset = asset_service.restore_asset(asset_id, user_id=acting_user_id())
    return jsonify(asset.to_dict())
