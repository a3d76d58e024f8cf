"""
Routes for the catalog blueprint — asset types, makes, models, operating
systems and OS versions.

Every entity gets the same five endpoints; deleting a record that is
still referenced answers 409.
"""

from flask import jsonify, request

from inventory.blueprints.catalog import bp
from inventory.blueprints.common import (
    acting_user_id,
    created,
    json_body,
    no_content,
    page_args,
    paged,
)
from inventory.services import catalog_service

# =========================================================================
# Asset types
# =========================================================================


@bp.route("/asset-types", methods=["GET"])
def asset_type_list():
    return paged(catalog_service.get_asset_types(search=request.args.get("q"), **page_args()))


@bp.route("/asset-types", methods=["POST"])
def asset_type_create():
    return created(catalog_service.create_asset_type(json_body(), user_id=acting_user_id()))


@bp.route("/asset-types/<int:type_id>", methods=["GET"])
def asset_type_detail(type_id: int):
    return jsonify(catalog_service.get_asset_type(type_id).to_dict())


@bp.route("/asset-types/<int:type_id>", methods=["PUT", "PATCH"])
def asset_type_update(type_id: int):
    record = catalog_service.update_asset_type(type_id, json_body(), user_id=acting_user_id())
    return jsonify(record.to_dict())


@bp.route("/asset-types/<int:type_id>", methods=["DELETE"])
def asset_type_delete(type_id: int):
    catalog_service.delete_asset_type(type_id, user_id=acting_user_id())
    return no_content()


# =========================================================================
# Asset makes
# =========================================================================


@bp.route("/asset-makes", methods=["GET"])
def asset_make_list():
    return paged(
        catalog_service.get_asset_makes(
            type_id=request.args.get("type_id", type=int),
            search=request.args.get("q"),
            **page_args(),
        )
    )


@bp.route("/asset-makes", methods=["POST"])
def asset_make_create():
    return created(catalog_service.create_asset_make(json_body(), user_id=acting_user_id()))


@bp.route("/asset-makes/<int:make_id>", methods=["GET"])
def asset_make_detail(make_id: int):
    return jsonify(catalog_service.get_asset_make(make_id).to_dict())


@bp.route("/asset-makes/<int:make_id>", methods=["PUT", "PATCH"])
def asset_make_update(make_id: int):
    record = catalog_service.update_asset_make(make_id, json_body(), user_id=acting_user_id())
    return jsonify(record.to_dict())


@bp.route("/asset-makes/<int:make_id>", methods=["DELETE"])
def asset_make_delete(make_id: int):
    catalog_service.delete_asset_make(make_id, user_id=acting_user_id())
    return no_content()


# =========================================================================
# Asset models
# =========================================================================


@bp.route("/asset-models", methods=["GET"])
def asset_model_list():
    return paged(
        catalog_service.get_asset_models(
            make_id=request.args.get("make_id", type=int),
            search=request.args.get("q"),
            **page_args(),
        )
    )


@bp.route("/asset-models", methods=["POST"])
def asset_model_create():
    return created(catalog_service.create_asset_model(json_body(), user_id=acting_user_id()))


@bp.route("/asset-models/<int:model_id>", methods=["GET"])
def asset_model_detail(model_id: int):
    return jsonify(catalog_service.get_asset_model(model_id).to_dict())


@bp.route("/asset-models/<int:model_id>/details", methods=["GET"])
def asset_model_details(model_id: int):
    """Model with its make and type names, for pre-filling asset forms."""
    return jsonify(catalog_service.get_model_details(model_id))


@bp.route("/asset-models/<int:model_id>", methods=["PUT", "PATCH"])
def asset_model_update(model_id: int):
    record = catalog_service.update_asset_model(model_id, json_body(), user_id=acting_user_id())
    return jsonify(record.to_dict())


@bp.route("/asset-models/<int:model_id>", methods=["DELETE"])
def asset_model_delete(model_id: int):
    catalog_service.delete_asset_model(model_id, user_id=acting_user_id())
    return no_content()


# =========================================================================
# Operating systems
# =========================================================================


@bp.route("/os", methods=["GET"])
def os_list():
    return paged(
        catalog_service.get_operating_systems(search=request.args.get("q"), **page_args())
    )


@bp.route("/os", methods=["POST"])
def os_create():
    return created(catalog_service.create_os(json_body(), user_id=acting_user_id()))


@bp.route("/os/<int:os_id>", methods=["GET"])
def os_detail(os_id: int):
    return jsonify(catalog_service.get_os(os_id).to_dict())


@bp.route("/os/<int:os_id>", methods=["PUT", "PATCH"])
def os_update(os_id: int):
    record = catalog_service.update_os(os_id, json_body(), user_id=acting_user_id())
    return jsonify(record.to_dict())


@bp.route("/os/<int:os_id>", methods=["DELETE"])
def os_delete(os_id: int):
    catalog_service.delete_os(os_id, user_id=acting_user_id())
    return no_content()


# =========================================================================
# OS versions
# =========================================================================


@bp.route("/os-versions", methods=["GET"])
def os_version_list():
    return paged(
        catalog_service.get_os_versions(
            os_id=request.args.get("os_id", type=int),
            search=request.args.get("q"),
            **page_args(),
        )
    )


@bp.route("/os-versions", methods=["POST"])
def os_version_create():
    return created(catalog_service.create_os_version(json_body(), user_id=acting_user_id()))


@bp.route("/os-versions/<int:version_id>", methods=["GET"])
def os_version_detail(version_id: int):
    return jsonify(catalog_service.get_os_version(version_id).to_dict())


@bp.route("/os-versions/<int:version_id>", methods=["PUT", "PATCH"])
def os_version_update(version_id: int):
    record = catalog_service.update_os_version(
        version_id, json_body(), user_id=acting_user_id()
    )
    return jsonify(record.to_dict())


@bp.route("/os-versions/<int:version_id>", methods=["DELETE"])
def os_version_delete(version_id: int):
    catalog_service.delete_os_version(version_id, user_id=acting_user_id())
    return no_content()
