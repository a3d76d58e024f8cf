"""
Routes for the procurement blueprint — purchase orders and vendors.

PO endpoints that change the PO number or delete a PO cascade to the
linked assets; see ``po_service``.
"""

from flask import jsonify, request

from inventory.blueprints.common import (
    acting_user_id,
    created,
    json_body,
    no_content,
    page_args,
    paged,
)
from inventory.blueprints.procurement import bp
from inventory.exceptions import ValidationFailedError
from inventory.services import po_service, vendor_service

# =========================================================================
# Purchase orders
# =========================================================================


@bp.route("/asset-pos", methods=["GET"])
def po_list():
    term = request.args.get("q")
    if term:
        return paged(po_service.search_pos(term, **page_args()))
    return paged(
        po_service.get_pos(vendor_id=request.args.get("vendor_id", type=int), **page_args())
    )


@bp.route("/asset-pos/numbers", methods=["GET"])
def po_numbers():
    return jsonify(po_service.get_po_numbers())


@bp.route("/asset-pos/leases-expiring", methods=["GET"])
def po_leases_expiring():
    days = request.args.get("days", 30, type=int)
    return jsonify([po.to_dict() for po in po_service.get_leases_expiring(days)])


@bp.route("/asset-pos", methods=["POST"])
def po_create():
    return created(po_service.create_po(json_body(), user_id=acting_user_id()))


@bp.route("/asset-pos/<int:po_id>", methods=["GET"])
def po_detail(po_id: int):
    return jsonify(po_service.get_po(po_id).to_dict())


@bp.route("/asset-pos/<int:po_id>", methods=["PUT", "PATCH"])
def po_update(po_id: int):
    """Update a PO; a new ``po_number`` repoints its assets."""
    po, affected = po_service.update_po(po_id, json_body(), user_id=acting_user_id())
    return jsonify({"po": po.to_dict(), "assets_affected": affected})


@bp.route("/asset-pos/<int:po_id>", methods=["DELETE"])
def po_delete(po_id: int):
    po_service.delete_po(po_id, user_id=acting_user_id())
    return no_content()


@bp.route("/asset-pos/by-number/<path:po_number>", methods=["GET"])
def po_by_number(po_number: str):
    return jsonify(po_service.get_po_by_number(po_number).to_dict())


@bp.route("/asset-pos/by-number/<path:po_number>/summary", methods=["GET"])
def po_summary(po_number: str):
    return jsonify(po_service.get_po_summary(po_number).to_dict())


@bp.route("/asset-pos/by-number/<path:po_number>/deletion-warning", methods=["GET"])
def po_deletion_warning(po_number: str):
    return jsonify(po_service.get_po_deletion_warning(po_number).to_dict())


@bp.route("/asset-pos/by-number/<path:po_number>/deletion-conflicts", methods=["GET"])
def po_deletion_conflicts(po_number: str):
    """``{"has_conflicts": false}`` when nothing blocks deletion."""
    conflict = po_service.check_po_deletion_conflicts(po_number)
    if conflict is None:
        return jsonify({"has_conflicts": False, "po_number": po_number})
    return jsonify({"has_conflicts": True, **conflict.to_dict()})


@bp.route("/asset-pos/by-number/<path:po_number>/cascade", methods=["DELETE"])
def po_cascade_delete(po_number: str):
    """Soft-delete the PO's assets and the PO; ``?force=true`` skips the conflict check."""
    force = request.args.get("force", "").lower() in ("1", "true", "yes")
    deleted = po_service.delete_po_with_cascade(
        po_number, force=force, user_id=acting_user_id()
    )
    return jsonify({"po_number": po_number, "assets_deleted": deleted})


@bp.route("/asset-pos/migrate", methods=["POST"])
def po_migrate():
    """Body: ``{"old_po_number": ..., "new_po_number": ...}``."""
    data = json_body()
    old_number = data.get("old_po_number")
    if not old_number:
        raise ValidationFailedError("Old PO number is required")
    result = po_service.migrate_po_number(
        old_number, data.get("new_po_number"), user_id=acting_user_id()
    )
    return jsonify(result.to_dict())


# =========================================================================
# Vendors
# =========================================================================


@bp.route("/vendors", methods=["GET"])
def vendor_list():
    return paged(
        vendor_service.get_vendors(
            search=request.args.get("q"),
            status=request.args.get("status"),
            **page_args(),
        )
    )


@bp.route("/vendors/active", methods=["GET"])
def vendor_active_list():
    return jsonify([v.to_dict() for v in vendor_service.get_active_vendors()])


@bp.route("/vendors", methods=["POST"])
def vendor_create():
    return created(vendor_service.create_vendor(json_body(), user_id=acting_user_id()))


@bp.route("/vendors/<int:vendor_id>", methods=["GET"])
def vendor_detail(vendor_id: int):
    return jsonify(vendor_service.get_vendor(vendor_id).to_dict())


@bp.route("/vendors/<int:vendor_id>", methods=["PUT", "PATCH"])
def vendor_update(vendor_id: int):
    vendor = vendor_service.update_vendor(vendor_id, json_body(), user_id=acting_user_id())
    return jsonify(vendor.to_dict())


@bp.route("/vendors/<int:vendor_id>/activate", methods=["POST"])
def vendor_activate(vendor_id: int):
    return jsonify(vendor_service.activate_vendor(vendor_id, acting_user_id()).to_dict())


@bp.route("/vendors/<int:vendor_id>/deactivate", methods=["POST"])
def vendor_deactivate(vendor_id: int):
    return jsonify(vendor_service.deactivate_vendor(vendor_id, acting_user_id()).to_dict())


@bp.route("/vendors/<int:vendor_id>", methods=["DELETE"])
def vendor_delete(vendor_id: int):
    vendor_service.delete_vendor(vendor_id, user_id=acting_user_id())
    return no_content()
