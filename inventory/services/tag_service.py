"""
Tag service — CRUD for free-form asset tags.
"""

import logging

from sqlalchemy import func

from inventory.exceptions import ConflictError, ResourceNotFoundError, ValidationFailedError
from inventory.extensions import db
from inventory.models.asset import Asset, AssetTag, AssetTagAssignment
from inventory.services import audit_service
from inventory.utils import is_blank, paginate

logger = logging.getLogger(__name__)


def get_tags(page: int = 1, per_page: int | None = None, search: str | None = None):
    query = AssetTag.query.order_by(AssetTag.name)
    if search:
        query = query.filter(AssetTag.name.ilike(f"%{search}%"))
    return paginate(query, page, per_page)


def get_tag_by_id(tag_id: int) -> AssetTag | None:
    return db.session.get(AssetTag, tag_id)


def get_tag(tag_id: int) -> AssetTag:
    tag = get_tag_by_id(tag_id)
    if tag is None:
        raise ResourceNotFoundError("AssetTag", "id", tag_id)
    return tag


def get_tag_by_name(name: str) -> AssetTag | None:
    """Return the tag with this name (case-insensitive), or None."""
    return AssetTag.query.filter(func.lower(AssetTag.name) == name.strip().lower()).first()


def create_tag(name: str, user_id: int | None = None) -> AssetTag:
    """
    Create a tag.

    Raises:
        ValidationFailedError: Blank name.
        ConflictError:         A tag with this name already exists.
    """
    if is_blank(name):
        raise ValidationFailedError("Tag name is required")
    name = name.strip()
    if get_tag_by_name(name) is not None:
        raise ConflictError(f"Tag already exists: {name}")

    tag = AssetTag(name=name)
    db.session.add(tag)
    db.session.flush()
    audit_service.log_change(
        user_id=user_id,
        action_type="CREATE",
        entity_type="asset_tag",
        entity_id=tag.id,
        new_value={"name": name},
    )
    db.session.commit()
    logger.info("Created tag '%s' (id=%d)", name, tag.id)
    return tag


def find_or_create_tag(name: str, user_id: int | None = None) -> AssetTag:
    """Return the existing tag with this name, creating it if needed."""
    if is_blank(name):
        raise ValidationFailedError("Tag name is required")
    return get_tag_by_name(name) or create_tag(name, user_id)


def update_tag(tag_id: int, name: str, user_id: int | None = None) -> AssetTag:
    tag = get_tag(tag_id)
    if is_blank(name):
        raise ValidationFailedError("Tag name is required")
    name = name.strip()
    clash = get_tag_by_name(name)
    if clash is not None and clash.id != tag_id:
        raise ConflictError(f"Tag already exists: {name}")
    if name == tag.name:
        return tag

    old_name = tag.name
    tag.name = name
    audit_service.log_change(
        user_id=user_id,
        action_type="UPDATE",
        entity_type="asset_tag",
        entity_id=tag.id,
        previous_value={"name": old_name},
        new_value={"name": name},
    )
    db.session.commit()
    logger.info("Renamed tag %d: '%s' -> '%s'", tag_id, old_name, name)
    return tag


def tag_label(asset_id: int) -> str | None:
    """Comma-separated names of the tags on an asset, or None."""
    names = (
        db.session.query(AssetTag.name)
        .join(AssetTagAssignment, AssetTagAssignment.tag_id == AssetTag.id)
        .filter(AssetTagAssignment.asset_id == asset_id)
        .order_by(AssetTag.name)
        .all()
    )
    return ", ".join(row[0] for row in names) or None


def delete_tag(tag_id: int, user_id: int | None = None) -> None:
    """Delete a tag together with its assignments."""
    tag = get_tag(tag_id)
    asset_ids = [
        row[0]
        for row in db.session.query(AssetTagAssignment.asset_id).filter_by(tag_id=tag_id)
    ]
    removed = AssetTagAssignment.query.filter_by(tag_id=tag_id).delete()
    for asset in Asset.query.filter(Asset.id.in_(asset_ids)):
        asset.tags = tag_label(asset.id)
    audit_service.log_change(
        user_id=user_id,
        action_type="DELETE",
        entity_type="asset_tag",
        entity_id=tag.id,
        previous_value={"name": tag.name},
        details=f"Removed {removed} assignments",
    )
    db.session.delete(tag)
    db.session.commit()
    logger.info("Deleted tag %d and %d assignments", tag_id, removed)
