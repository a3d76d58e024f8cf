"""
Routes for the assignments blueprint — tag CRUD plus user and tag
assignment of assets.
"""

from flask import jsonify, request

from inventory.blueprints.assignments import bp
from inventory.blueprints.common import (
    acting_user_id,
    created,
    json_body,
    no_content,
    page_args,
    paged,
)
from inventory.exceptions import ValidationFailedError
from inventory.services import assignment_service, tag_service

# =========================================================================
# Tags
# =========================================================================


@bp.route("/tags", methods=["GET"])
def tag_list():
    return paged(tag_service.get_tags(search=request.args.get("q"), **page_args()))


@bp.route("/tags", methods=["POST"])
def tag_create():
    return created(tag_service.create_tag(json_body().get("name"), user_id=acting_user_id()))


@bp.route("/tags/find-or-create", methods=["POST"])
def tag_find_or_create():
    tag = tag_service.find_or_create_tag(json_body().get("name"), user_id=acting_user_id())
    return jsonify(tag.to_dict())


@bp.route("/tags/<int:tag_id>", methods=["GET"])
def tag_detail(tag_id: int):
    return jsonify(tag_service.get_tag(tag_id).to_dict())


@bp.route("/tags/<int:tag_id>", methods=["PUT", "PATCH"])
def tag_update(tag_id: int):
    tag = tag_service.update_tag(tag_id, json_body().get("name"), user_id=acting_user_id())
    return jsonify(tag.to_dict())


@bp.route("/tags/<int:tag_id>", methods=["DELETE"])
def tag_delete(tag_id: int):
    tag_service.delete_tag(tag_id, user_id=acting_user_id())
    return no_content()


# =========================================================================
# User assignment
# =========================================================================


@bp.route("/assignments/users/<int:asset_id>", methods=["GET"])
def asset_current_user(asset_id: int):
    """The asset's current holder, or ``null``."""
    user = assignment_service.get_current_user(asset_id)
    return jsonify(user.to_dict() if user else None)


@bp.route("/assignments/users/<int:asset_id>", methods=["POST"])
def asset_assign_user(asset_id: int):
    """Body: ``{"user_id": ..., "remarks": ...}``."""
    data = json_body()
    user_id = data.get("user_id")
    if not isinstance(user_id, int):
        raise ValidationFailedError("user_id must be an integer")
    asset = assignment_service.assign_user(
        asset_id, user_id, remarks=data.get("remarks"), changed_by=acting_user_id()
    )
    return jsonify(asset.to_dict())


@bp.route("/assignments/users/<int:asset_id>", methods=["DELETE"])
def asset_unassign_user(asset_id: int):
    asset = assignment_service.unassign_user(
        asset_id,
        remarks=request.args.get("remarks"),
        changed_by=acting_user_id(),
    )
    return jsonify(asset.to_dict())


# =========================================================================
# Tag assignment
# =========================================================================


@bp.route("/assignments/tags", methods=["GET"])
def tag_assignment_list():
    assignments = assignment_service.get_tag_assignments(
        asset_id=request.args.get("asset_id", type=int),
        tag_id=request.args.get("tag_id", type=int),
    )
    return jsonify([a.to_dict() for a in assignments])


@bp.route("/assignments/tags/<int:asset_id>", methods=["PUT"])
def asset_replace_tags(asset_id: int):
    """Replace the asset's tags. Body: ``{"tag_ids": [...]}``."""
    tag_ids = json_body().get("tag_ids")
    if not isinstance(tag_ids, list) or not all(isinstance(t, int) for t in tag_ids):
        raise ValidationFailedError("tag_ids must be a list of integers")
    assignments = assignment_service.assign_tags(asset_id, tag_ids, changed_by=acting_user_id())
    return jsonify([a.to_dict() for a in assignments])


@bp.route("/assignments/tags/<int:asset_id>", methods=["POST"])
def asset_add_tag(asset_id: int):
    """Add one tag by name, creating the tag if needed. Body: ``{"name": ...}``."""
    assignment = assignment_service.assign_tag_by_name(
        asset_id, json_body().get("name") or "", changed_by=acting_user_id()
    )
    return jsonify(assignment.to_dict()), 201


@bp.route("/assignments/tags/<int:asset_id>/<int:tag_id>", methods=["DELETE"])
def asset_remove_tag(asset_id: int, tag_id: int):
    assignment_service.unassign_tag(asset_id, tag_id, changed_by=acting_user_id())
    return no_content()
