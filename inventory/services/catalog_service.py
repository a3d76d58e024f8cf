"""
Catalog service — CRUD for the asset type/make/model hierarchy and for
operating systems and their versions.

Getters named ``get_*_by_id`` return ``None`` for a missing row and are
what the validation engine uses for id resolution.  The plain ``get_*``
getters raise ``ResourceNotFoundError`` and back the API.

Deleting a catalog entry that children or assets still reference is
refused with ``ConflictError``; there is no cascade.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import func

from inventory.exceptions import ConflictError, ResourceNotFoundError, ValidationFailedError
from inventory.extensions import db
from inventory.models.asset import Asset
from inventory.models.catalog import (
    RECORD_STATUSES,
    AssetMake,
    AssetModel,
    AssetType,
    OperatingSystem,
    OSVersion,
)
from inventory.services import audit_service
from inventory.utils import apply_changes, coerce_fields, is_blank, paginate

logger = logging.getLogger(__name__)

_TYPE_FIELDS = ("name", "description", "asset_category", "status")
_MAKE_FIELDS = ("name", "type_id", "status")
_MODEL_FIELDS = ("name", "make_id", "ram", "storage", "processor", "status")
_OS_FIELDS = ("os_type", "status")
_OS_VERSION_FIELDS = ("os_id", "version_number", "status")


def _require(record, resource: str, record_id: int):
    if record is None:
        raise ResourceNotFoundError(resource, "id", record_id)
    return record


def _check_status(fields: dict) -> None:
    status = fields.get("status")
    if status is not None and status not in RECORD_STATUSES:
        raise ValidationFailedError(
            f"Invalid status: '{status}'. Valid values are: "
            + ", ".join(RECORD_STATUSES)
        )


def _require_name(fields: dict, key: str, label: str) -> None:
    if is_blank(fields.get(key)):
        raise ValidationFailedError(f"{label} is required")


def _save_new(record, entity_type: str, user_id: int | None):
    db.session.add(record)
    db.session.flush()
    audit_service.log_change(
        user_id=user_id,
        action_type="CREATE",
        entity_type=entity_type,
        entity_id=record.id,
        new_value=record.to_dict(),
    )
    db.session.commit()
    logger.info("Created %s %s", entity_type, record)
    return record


def _save_update(record, changes: dict, entity_type: str, user_id: int | None):
    previous, new = apply_changes(record, changes)
    if new:
        record.updated_at = datetime.now(timezone.utc)
        audit_service.log_change(
            user_id=user_id,
            action_type="UPDATE",
            entity_type=entity_type,
            entity_id=record.id,
            previous_value=previous,
            new_value=new,
        )
        db.session.commit()
        logger.info("Updated %s %s: %s", entity_type, record, sorted(new))
    return record


def _delete(record, entity_type: str, user_id: int | None) -> None:
    snapshot = record.to_dict()
    db.session.delete(record)
    audit_service.log_change(
        user_id=user_id,
        action_type="DELETE",
        entity_type=entity_type,
        entity_id=snapshot["id"],
        previous_value=snapshot,
    )
    db.session.commit()
    logger.info("Deleted %s %s", entity_type, snapshot["id"])


def _refuse_if_referenced(label: str, record_id: int, counts: dict[str, int]) -> None:
    in_use = {name: count for name, count in counts.items() if count}
    if in_use:
        detail = ", ".join(f"{count} {name}" for name, count in in_use.items())
        raise ConflictError(
            f"Cannot delete {label} {record_id}: still referenced by {detail}"
        )


# =========================================================================
# Asset types
# =========================================================================

def get_asset_types(page: int = 1, per_page: int | None = None, search: str | None = None):
    query = AssetType.query.order_by(AssetType.name)
    if search:
        query = query.filter(AssetType.name.ilike(f"%{search}%"))
    return paginate(query, page, per_page)


def get_asset_type_by_id(type_id: int) -> AssetType | None:
    return db.session.get(AssetType, type_id)


def get_asset_type(type_id: int) -> AssetType:
    return _require(get_asset_type_by_id(type_id), "AssetType", type_id)


def create_asset_type(data: dict, user_id: int | None = None) -> AssetType:
    """Create an asset type; the name must be unique (case-insensitive)."""
    fields = coerce_fields(AssetType, data, _TYPE_FIELDS)
    _require_name(fields, "name", "Asset type name")
    _check_status(fields)
    _check_type_name_free(fields["name"])
    return _save_new(AssetType(**fields), "asset_type", user_id)


def update_asset_type(type_id: int, data: dict, user_id: int | None = None) -> AssetType:
    asset_type = get_asset_type(type_id)
    fields = coerce_fields(AssetType, data, _TYPE_FIELDS)
    if "name" in fields:
        _require_name(fields, "name", "Asset type name")
        _check_type_name_free(fields["name"], exclude_id=type_id)
    _check_status(fields)
    return _save_update(asset_type, fields, "asset_type", user_id)


def delete_asset_type(type_id: int, user_id: int | None = None) -> None:
    asset_type = get_asset_type(type_id)
    _refuse_if_referenced(
        "asset type",
        type_id,
        {
            "makes": AssetMake.query.filter_by(type_id=type_id).count(),
            "assets": Asset.query.filter_by(asset_type_id=type_id).count(),
        },
    )
    _delete(asset_type, "asset_type", user_id)


def _check_type_name_free(name: str, exclude_id: int | None = None) -> None:
    query = AssetType.query.filter(func.lower(AssetType.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(AssetType.id != exclude_id)
    if query.first() is not None:
        raise ConflictError(f"Asset type already exists: {name}")


# =========================================================================
# Asset makes
# =========================================================================

def get_asset_makes(
    page: int = 1,
    per_page: int | None = None,
    type_id: int | None = None,
    search: str | None = None,
):
    query = AssetMake.query.order_by(AssetMake.name)
    if type_id is not None:
        query = query.filter(AssetMake.type_id == type_id)
    if search:
        query = query.filter(AssetMake.name.ilike(f"%{search}%"))
    return paginate(query, page, per_page)


def get_asset_make_by_id(make_id: int) -> AssetMake | None:
    return db.session.get(AssetMake, make_id)


def get_asset_make(make_id: int) -> AssetMake:
    return _require(get_asset_make_by_id(make_id), "AssetMake", make_id)


def create_asset_make(data: dict, user_id: int | None = None) -> AssetMake:
    fields = coerce_fields(AssetMake, data, _MAKE_FIELDS)
    _require_name(fields, "name", "Asset make name")
    _check_status(fields)
    if fields.get("type_id") is not None:
        get_asset_type(fields["type_id"])
    return _save_new(AssetMake(**fields), "asset_make", user_id)


def update_asset_make(make_id: int, data: dict, user_id: int | None = None) -> AssetMake:
    make = get_asset_make(make_id)
    fields = coerce_fields(AssetMake, data, _MAKE_FIELDS)
    if "name" in fields:
        _require_name(fields, "name", "Asset make name")
    _check_status(fields)
    if fields.get("type_id") is not None:
        get_asset_type(fields["type_id"])
    return _save_update(make, fields, "asset_make", user_id)


def delete_asset_make(make_id: int, user_id: int | None = None) -> None:
    make = get_asset_make(make_id)
    _refuse_if_referenced(
        "asset make",
        make_id,
        {
            "models": AssetModel.query.filter_by(make_id=make_id).count(),
            "assets": Asset.query.filter_by(make_id=make_id).count(),
        },
    )
    _delete(make, "asset_make", user_id)


# =========================================================================
# Asset models
# =========================================================================

def get_asset_models(
    page: int = 1,
    per_page: int | None = None,
    make_id: int | None = None,
    search: str | None = None,
):
    query = AssetModel.query.order_by(AssetModel.name)
    if make_id is not None:
        query = query.filter(AssetModel.make_id == make_id)
    if search:
        query = query.filter(AssetModel.name.ilike(f"%{search}%"))
    return paginate(query, page, per_page)


def get_asset_model_by_id(model_id: int) -> AssetModel | None:
    return db.session.get(AssetModel, model_id)


def get_asset_model(model_id: int) -> AssetModel:
    return _require(get_asset_model_by_id(model_id), "AssetModel", model_id)


def get_model_details(model_id: int) -> dict:
    """
    Return the model with its make and type names resolved.

    Missing links in the chain come back as ``None`` rather than
    raising, so an incomplete hierarchy is still viewable.
    """
    model = get_asset_model(model_id)
    make = get_asset_make_by_id(model.make_id) if model.make_id else None
    asset_type = (
        get_asset_type_by_id(make.type_id) if make and make.type_id else None
    )
    details = model.to_dict()
    details.update(
        {
            "make_name": make.name if make else None,
            "type_id": asset_type.id if asset_type else None,
            "type_name": asset_type.name if asset_type else None,
        }
    )
    return details


def create_asset_model(data: dict, user_id: int | None = None) -> AssetModel:
    fields = coerce_fields(AssetModel, data, _MODEL_FIELDS)
    _require_name(fields, "name", "Asset model name")
    _check_status(fields)
    if fields.get("make_id") is not None:
        get_asset_make(fields["make_id"])
    return _save_new(AssetModel(**fields), "asset_model", user_id)


def update_asset_model(model_id: int, data: dict, user_id: int | None = None) -> AssetModel:
    model = get_asset_model(model_id)
    fields = coerce_fields(AssetModel, data, _MODEL_FIELDS)
    if "name" in fields:
        _require_name(fields, "name", "Asset model name")
    _check_status(fields)
    if fields.get("make_id") is not None:
        get_asset_make(fields["make_id"])
    return _save_update(model, fields, "asset_model", user_id)


def delete_asset_model(model_id: int, user_id: int | None = None) -> None:
    model = get_asset_model(model_id)
    _refuse_if_referenced(
        "asset model",
        model_id,
        {"assets": Asset.query.filter_by(model_id=model_id).count()},
    )
    _delete(model, "asset_model", user_id)


# =========================================================================
# Operating systems
# =========================================================================

def get_operating_systems(
    page: int = 1, per_page: int | None = None, search: str | None = None
):
    query = OperatingSystem.query.order_by(OperatingSystem.os_type)
    if search:
        query = query.filter(OperatingSystem.os_type.ilike(f"%{search}%"))
    return paginate(query, page, per_page)


def get_os_by_id(os_id: int) -> OperatingSystem | None:
    return db.session.get(OperatingSystem, os_id)


def get_os(os_id: int) -> OperatingSystem:
    return _require(get_os_by_id(os_id), "OS", os_id)


def create_os(data: dict, user_id: int | None = None) -> OperatingSystem:
    fields = coerce_fields(OperatingSystem, data, _OS_FIELDS)
    _require_name(fields, "os_type", "OS type")
    _check_status(fields)
    existing = OperatingSystem.query.filter(
        func.lower(OperatingSystem.os_type) == fields["os_type"].lower()
    ).first()
    if existing is not None:
        raise ConflictError(f"OS already exists: {fields['os_type']}")
    return _save_new(OperatingSystem(**fields), "os", user_id)


def update_os(os_id: int, data: dict, user_id: int | None = None) -> OperatingSystem:
    os_record = get_os(os_id)
    fields = coerce_fields(OperatingSystem, data, _OS_FIELDS)
    if "os_type" in fields:
        _require_name(fields, "os_type", "OS type")
        clash = OperatingSystem.query.filter(
            func.lower(OperatingSystem.os_type) == fields["os_type"].lower(),
            OperatingSystem.id != os_id,
        ).first()
        if clash is not None:
            raise ConflictError(f"OS already exists: {fields['os_type']}")
    _check_status(fields)
    return _save_update(os_record, fields, "os", user_id)


def delete_os(os_id: int, user_id: int | None = None) -> None:
    os_record = get_os(os_id)
    _refuse_if_referenced(
        "OS",
        os_id,
        {
            "versions": OSVersion.query.filter_by(os_id=os_id).count(),
            "assets": Asset.query.filter_by(os_id=os_id).count(),
        },
    )
    _delete(os_record, "os", user_id)


# =========================================================================
# OS versions
# =========================================================================

def get_os_versions(
    page: int = 1,
    per_page: int | None = None,
    os_id: int | None = None,
    search: str | None = None,
):
    query = OSVersion.query.order_by(OSVersion.version_number)
    if os_id is not None:
        query = query.filter(OSVersion.os_id == os_id)
    if search:
        query = query.filter(OSVersion.version_number.ilike(f"%{search}%"))
    return paginate(query, page, per_page)


def get_os_version_by_id(version_id: int) -> OSVersion | None:
    return db.session.get(OSVersion, version_id)


def get_os_version(version_id: int) -> OSVersion:
    return _require(get_os_version_by_id(version_id), "OSVersion", version_id)


def create_os_version(data: dict, user_id: int | None = None) -> OSVersion:
    fields = coerce_fields(OSVersion, data, _OS_VERSION_FIELDS)
    _require_name(fields, "version_number", "Version number")
    _check_status(fields)
    if fields.get("os_id") is not None:
        get_os(fields["os_id"])
    return _save_new(OSVersion(**fields), "os_version", user_id)


def update_os_version(version_id: int, data: dict, user_id: int | None = None) -> OSVersion:
    version = get_os_version(version_id)
    fields = coerce_fields(OSVersion, data, _OS_VERSION_FIELDS)
    if "version_number" in fields:
        _require_name(fields, "version_number", "Version number")
    _check_status(fields)
    if fields.get("os_id") is not None:
        get_os(fields["os_id"])
    return _save_update(version, fields, "os_version", user_id)


def delete_os_version(version_id: int, user_id: int | None = None) -> None:
    version = get_os_version(version_id)
    _refuse_if_referenced(
        "OS version",
        version_id,
        {"assets": Asset.query.filter_by(os_version_id=version_id).count()},
    )
    _delete(version, "os_version", user_id)
