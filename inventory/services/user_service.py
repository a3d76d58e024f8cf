"""
User service — asset holder lookup, maintenance and activation.

Users here are the people and offices assets are assigned to.  The
employee code is the business key: it is unique, and a clash raises
``ConflictError``.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import func, or_

from inventory.exceptions import ConflictError, ResourceNotFoundError, ValidationFailedError
from inventory.extensions import db
from inventory.models.asset import Asset
from inventory.models.catalog import RECORD_STATUSES, STATUS_ACTIVE, STATUS_INACTIVE
from inventory.models.history import AssetAssignmentHistory
from inventory.models.user import User
from inventory.services import audit_service
from inventory.utils import apply_changes, coerce_fields, is_blank, paginate

logger = logging.getLogger(__name__)

_USER_FIELDS = (
    "full_name_or_office_name",
    "employee_code",
    "user_type",
    "department",
    "designation",
    "country",
    "city",
    "email",
    "location",
    "is_office_asset",
    "status",
)


# -- User lookup -----------------------------------------------------------


def get_user_by_id(user_id: int) -> User | None:
    """Return a user by primary key, or None if not found."""
    return db.session.get(User, user_id)


def get_user(user_id: int) -> User:
    user = get_user_by_id(user_id)
    if user is None:
        raise ResourceNotFoundError("User", "id", user_id)
    return user


def get_user_by_email(email: str) -> User | None:
    """Return a user by email address (case-insensitive)."""
    return User.query.filter(func.lower(User.email) == email.lower()).first()


def get_user_by_employee_code(employee_code: str) -> User | None:
    return User.query.filter_by(employee_code=employee_code).first()


def get_users(
    page: int = 1,
    per_page: int | None = None,
    search: str | None = None,
    include_inactive: bool = True,
):
    """
    Return a paginated list of users, ordered by name.

    Args:
        search:           Case-insensitive match on name, email,
                          employee code or department.
        include_inactive: If False, only ``Active`` users are returned.
    """
    query = User.query.order_by(User.full_name_or_office_name)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                User.full_name_or_office_name.ilike(pattern),
                User.email.ilike(pattern),
                User.employee_code.ilike(pattern),
                User.department.ilike(pattern),
            )
        )
    if not include_inactive:
        query = query.filter(User.status == STATUS_ACTIVE)
    return paginate(query, page, per_page)


# -- Create / update / delete ----------------------------------------------


def create_user(data: dict, changed_by: int | None = None) -> User:
    """
    Create a new asset holder.

    Raises:
        ValidationFailedError: If the name is missing or status invalid.
        ConflictError:         If the employee code is already in use.
    """
    fields = coerce_fields(User, data, _USER_FIELDS)
    _validate(fields, creating=True)
    _check_employee_code_free(fields.get("employee_code"))

    user = User(**fields)
    db.session.add(user)
    db.session.flush()  # Get the user ID for audit logging.

    audit_service.log_change(
        user_id=changed_by,
        action_type="CREATE",
        entity_type="user",
        entity_id=user.id,
        new_value={
            "full_name_or_office_name": user.full_name_or_office_name,
            "employee_code": user.employee_code,
            "email": user.email,
        },
    )
    db.session.commit()

    logger.info("Created user %s (id=%d)", user.employee_code, user.id)
    return user


def update_user(user_id: int, data: dict, changed_by: int | None = None) -> User:
    user = get_user(user_id)
    fields = coerce_fields(User, data, _USER_FIELDS)
    _validate(fields, creating=False)
    if fields.get("employee_code") != user.employee_code:
        _check_employee_code_free(fields.get("employee_code"), exclude_id=user_id)

    previous, new = apply_changes(user, fields)
    if new:
        user.updated_at = datetime.now(timezone.utc)
        audit_service.log_change(
            user_id=changed_by,
            action_type="UPDATE",
            entity_type="user",
            entity_id=user.id,
            previous_value=previous,
            new_value=new,
        )
        db.session.commit()
        logger.info("Updated user %d: %s", user.id, sorted(new))
    return user


def deactivate_user(user_id: int, changed_by: int | None = None) -> User:
    """Mark a user Inactive; their assets are left assigned."""
    return update_user(user_id, {"status": STATUS_INACTIVE}, changed_by)


def activate_user(user_id: int, changed_by: int | None = None) -> User:
    """Re-enable a previously deactivated user."""
    return update_user(user_id, {"status": STATUS_ACTIVE}, changed_by)


def delete_user(user_id: int, changed_by: int | None = None) -> None:
    """
    Hard-delete a user.

    Raises:
        ConflictError: If the user still holds assets or has assignment
                       history; deactivate instead.
    """
    user = get_user(user_id)
    held = Asset.query.filter_by(current_user_id=user_id).count()
    history = AssetAssignmentHistory.query.filter_by(user_id=user_id).count()
    if held or history:
        raise ConflictError(
            f"Cannot delete user {user_id}: holds {held} assets and has "
            f"{history} assignment history rows"
        )

    audit_service.log_change(
        user_id=changed_by,
        action_type="DELETE",
        entity_type="user",
        entity_id=user.id,
        previous_value=user.to_dict(),
    )
    db.session.delete(user)
    db.session.commit()
    logger.info("Deleted user %d", user_id)


def _check_employee_code_free(employee_code: str | None, exclude_id: int | None = None) -> None:
    if is_blank(employee_code):
        return
    existing = get_user_by_employee_code(employee_code)
    if existing is not None and existing.id != exclude_id:
        raise ConflictError(f"Employee code already exists: {employee_code}")


def _validate(fields: dict, creating: bool) -> None:
    errors = []
    if (creating or "full_name_or_office_name" in fields) and is_blank(
        fields.get("full_name_or_office_name")
    ):
        errors.append("Full name or office name is required")
    status = fields.get("status")
    if status is not None and status not in RECORD_STATUSES:
        errors.append(f"Invalid status: '{status}'")
    if errors:
        raise ValidationFailedError(errors)
