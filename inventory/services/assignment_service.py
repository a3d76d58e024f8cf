"""
Assignment service — who holds an asset, and which tags it carries.

User assignment keeps ``AssetAssignmentHistory`` in step: assigning
closes any open history row before opening a new one, and unassigning
closes it.

Tag assignment uses replace semantics: ``assign_tags`` drops the
asset's existing tag rows and writes the new set, so there is never
more than one row per (asset, tag) pair.  The asset's ``tags`` column
holds the display name of its current tag(s).
"""

import logging
from datetime import datetime, timezone

from inventory.exceptions import ConflictError, ResourceNotFoundError, ValidationFailedError
from inventory.extensions import db
from inventory.models.asset import Asset, AssetTagAssignment
from inventory.models.user import User
from inventory.services import asset_service, audit_service, history_service, tag_service, user_service

logger = logging.getLogger(__name__)


# =========================================================================
# User assignment
# =========================================================================

def assign_user(
    asset_id: int,
    user_id: int,
    remarks: str | None = None,
    changed_by: int | None = None,
) -> Asset:
    """
    Assign an asset to a user, ending any current assignment.

    Raises:
        ResourceNotFoundError: Unknown asset or user.
    """
    asset = asset_service.get_asset(asset_id)
    user = user_service.get_user(user_id)
    previous_user_id = asset.current_user_id

    now = datetime.now(timezone.utc)
    history_service.close_open_assignments(asset.id, when=now)
    history_service.open_assignment(asset.id, user.id, remarks=remarks)
    asset.current_user_id = user.id
    asset.updated_at = now

    audit_service.log_asset_action(
        asset.id,
        "ASSIGN",
        details=f"Assigned to {user.full_name_or_office_name}",
        user_id=changed_by,
        previous_value={"current_user_id": previous_user_id},
        new_value={"current_user_id": user.id},
    )
    db.session.commit()

    logger.info("Assigned asset %d to user %d", asset.id, user.id)
    return asset


def unassign_user(asset_id: int, remarks: str | None = None, changed_by: int | None = None) -> Asset:
    """
    Clear an asset's holder and close its open assignment row.

    Raises:
        ValidationFailedError: The asset is not assigned.
    """
    asset = asset_service.get_asset(asset_id)
    if asset.current_user_id is None:
        raise ValidationFailedError(f"Asset {asset_id} is not assigned to any user")

    previous_user_id = asset.current_user_id
    now = datetime.now(timezone.utc)
    history_service.close_open_assignments(asset.id, when=now)
    asset.current_user_id = None
    asset.updated_at = now

    audit_service.log_asset_action(
        asset.id,
        "UNASSIGN",
        details=remarks or f"Unassigned from user {previous_user_id}",
        user_id=changed_by,
        previous_value={"current_user_id": previous_user_id},
    )
    db.session.commit()

    logger.info("Unassigned asset %d from user %d", asset.id, previous_user_id)
    return asset


def get_current_user(asset_id: int) -> User | None:
    asset = asset_service.get_asset(asset_id)
    if asset.current_user_id is None:
        return None
    return user_service.get_user_by_id(asset.current_user_id)


# =========================================================================
# Tag assignment
# =========================================================================

def _refresh_tag_label(asset: Asset) -> None:
    asset.tags = tag_service.tag_label(asset.id)


def assign_tags(asset_id: int, tag_ids: list[int], changed_by: int | None = None) -> list[AssetTagAssignment]:
    """
    Replace the asset's tags with ``tag_ids``.

    Duplicate ids in the input collapse to one row.

    Raises:
        ResourceNotFoundError: Unknown asset or any unknown tag.
    """
    asset = asset_service.get_asset(asset_id)
    unique_ids = list(dict.fromkeys(tag_ids))
    tags = [tag_service.get_tag(tag_id) for tag_id in unique_ids]

    previous = sorted(
        row[0]
        for row in db.session.query(AssetTagAssignment.tag_id).filter_by(asset_id=asset_id)
    )
    AssetTagAssignment.query.filter_by(asset_id=asset_id).delete()
    db.session.flush()

    assignments = []
    for tag in tags:
        assignment = AssetTagAssignment(asset_id=asset.id, tag_id=tag.id)
        db.session.add(assignment)
        assignments.append(assignment)
    db.session.flush()

    _refresh_tag_label(asset)
    audit_service.log_asset_action(
        asset.id,
        "UPDATE",
        details="Tags replaced",
        user_id=changed_by,
        previous_value={"tag_ids": previous},
        new_value={"tag_ids": [t.id for t in tags]},
    )
    db.session.commit()

    logger.info("Asset %d now has tags %s", asset.id, [t.name for t in tags])
    return assignments


def assign_tag_by_name(asset_id: int, tag_name: str, changed_by: int | None = None) -> AssetTagAssignment:
    """
    Add one tag (created if new) to an asset, keeping its other tags.

    Raises:
        ConflictError: The asset already carries this tag.
    """
    asset = asset_service.get_asset(asset_id)
    tag = tag_service.find_or_create_tag(tag_name, user_id=changed_by)
    if db.session.get(AssetTagAssignment, (asset.id, tag.id)) is not None:
        raise ConflictError(f"Asset {asset.id} already has tag '{tag.name}'")

    assignment = AssetTagAssignment(asset_id=asset.id, tag_id=tag.id)
    db.session.add(assignment)
    db.session.flush()
    _refresh_tag_label(asset)
    audit_service.log_asset_action(
        asset.id, "UPDATE", details=f"Tag '{tag.name}' added", user_id=changed_by
    )
    db.session.commit()

    logger.info("Tagged asset %d with '%s'", asset.id, tag.name)
    return assignment


def unassign_tag(asset_id: int, tag_id: int, changed_by: int | None = None) -> None:
    """
    Remove one tag from an asset.

    Raises:
        ResourceNotFoundError: The asset does not carry this tag.
    """
    asset = asset_service.get_asset(asset_id)
    assignment = db.session.get(AssetTagAssignment, (asset_id, tag_id))
    if assignment is None:
        raise ResourceNotFoundError("AssetTagAssignment", "asset/tag", f"{asset_id}/{tag_id}")

    db.session.delete(assignment)
    db.session.flush()
    _refresh_tag_label(asset)
    audit_service.log_asset_action(
        asset.id, "UPDATE", details=f"Tag {tag_id} removed", user_id=changed_by
    )
    db.session.commit()
    logger.info("Removed tag %d from asset %d", tag_id, asset_id)


def get_tag_assignments(asset_id: int | None = None, tag_id: int | None = None) -> list[AssetTagAssignment]:
    query = AssetTagAssignment.query
    if asset_id is not None:
        query = query.filter(AssetTagAssignment.asset_id == asset_id)
    if tag_id is not None:
        query = query.filter(AssetTagAssignment.tag_id == tag_id)
    return query.order_by(AssetTagAssignment.asset_id, AssetTagAssignment.tag_id).all()
