"""
Routes for the users blueprint — people and offices that hold assets.
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
from inventory.blueprints.users import bp
from inventory.exceptions import ResourceNotFoundError
from inventory.services import user_service


@bp.route("", methods=["GET"])
def user_list():
    """List users; ``?q=`` searches, ``?include_inactive=false`` hides inactive."""
    include_inactive = request.args.get("include_inactive", "true").lower() != "false"
    pagination = user_service.get_users(
        search=request.args.get("q"),
        include_inactive=include_inactive,
        **page_args(),
    )
    return paged(pagination)


@bp.route("/by-email/<string:email>", methods=["GET"])
def user_by_email(email: str):
    user = user_service.get_user_by_email(email)
    if user is None:
        raise ResourceNotFoundError("User", "email", email)
    return jsonify(user.to_dict())


@bp.route("/by-employee-code/<string:employee_code>", methods=["GET"])
def user_by_employee_code(employee_code: str):
    user = user_service.get_user_by_employee_code(employee_code)
    if user is None:
        raise ResourceNotFoundError("User", "employee_code", employee_code)
    return jsonify(user.to_dict())


@bp.route("", methods=["POST"])
def user_create():
    return created(user_service.create_user(json_body(), changed_by=acting_user_id()))


@bp.route("/<int:user_id>", methods=["GET"])
def user_detail(user_id: int):
    return jsonify(user_service.get_user(user_id).to_dict())


@bp.route("/<int:user_id>", methods=["PUT", "PATCH"])
def user_update(user_id: int):
    user = user_service.update_user(user_id, json_body(), changed_by=acting_user_id())
    return jsonify(user.to_dict())


@bp.route("/<int:user_id>/activate", methods=["POST"])
def user_activate(user_id: int):
    return jsonify(user_service.activate_user(user_id, changed_by=acting_user_id()).to_dict())


@bp.route("/<int:user_id>/deactivate", methods=["POST"])
def user_deactivate(user_id: int):
    return jsonify(user_service.deactivate_user(user_id, changed_by=acting_user_id()).to_dict())


@bp.route("/<int:user_id>", methods=["DELETE"])
def user_delete(user_id: int):
    user_service.delete_user(user_id, changed_by=acting_user_id())
    return no_content()
