"""
Routes for the history blueprint — status history, assignment history
and the audit log.
"""

from datetime import datetime

from flask import jsonify, request

from inventory.blueprints.common import (
    acting_user_id,
    created,
    json_body,
    no_content,
    page_args,
    paged,
)
from inventory.blueprints.history import bp
from inventory.exceptions import ValidationFailedError
from inventory.services import audit_service, history_service


def _datetime_arg(name: str) -> datetime | None:
    value = request.args.get(name)
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise ValidationFailedError(f"Invalid {name}: '{value}'") from exc


# =========================================================================
# Status history
# =========================================================================


@bp.route("/history/status", methods=["GET"])
def status_history_list():
    pagination = history_service.get_status_history(
        asset_id=request.args.get("asset_id", type=int), **page_args()
    )
    return paged(pagination)


@bp.route("/history/status", methods=["POST"])
def status_history_create():
    return created(history_service.create_status_history(json_body(), user_id=acting_user_id()))


@bp.route("/history/status/<int:entry_id>", methods=["GET"])
def status_history_detail(entry_id: int):
    return jsonify(history_service.get_status_history_entry(entry_id).to_dict())


@bp.route("/history/status/<int:entry_id>", methods=["DELETE"])
def status_history_delete(entry_id: int):
    history_service.delete_status_history(entry_id, user_id=acting_user_id())
    return no_content()


# =========================================================================
# Assignment history
# =========================================================================


@bp.route("/history/assignments", methods=["GET"])
def assignment_history_list():
    pagination = history_service.get_assignment_history(
        asset_id=request.args.get("asset_id", type=int),
        user_id=request.args.get("user_id", type=int),
        **page_args(),
    )
    return paged(pagination)


@bp.route("/history/assignments", methods=["POST"])
def assignment_history_create():
    return created(history_service.create_assignment_history(json_body()))


@bp.route("/history/assignments/<int:entry_id>", methods=["GET"])
def assignment_history_detail(entry_id: int):
    return jsonify(history_service.get_assignment_history_entry(entry_id).to_dict())


@bp.route("/history/assignments/<int:entry_id>", methods=["DELETE"])
def assignment_history_delete(entry_id: int):
    history_service.delete_assignment_history(entry_id, user_id=acting_user_id())
    return no_content()


# =========================================================================
# Audit log
# =========================================================================


@bp.route("/audit-logs", methods=["GET"])
def audit_log_list():
    """
    Browse audit entries, newest first.

    Filters: ``asset_id``, ``user_id``, ``action_type``, ``entity_type``,
    ``start_date`` and ``end_date`` (ISO 8601).
    """
    pagination = audit_service.get_audit_logs(
        asset_id=request.args.get("asset_id", type=int),
        user_id=request.args.get("user_id", type=int),
        action_type=request.args.get("action_type") or None,
        entity_type=request.args.get("entity_type") or None,
        start_date=_datetime_arg("start_date"),
        end_date=_datetime_arg("end_date"),
        **page_args(),
    )
    return paged(pagination)


@bp.route("/audit-logs/entity-types", methods=["GET"])
def audit_entity_types():
    return jsonify(audit_service.get_distinct_entity_types())


@bp.route("/audit-logs/<int:log_id>", methods=["GET"])
def audit_log_detail(log_id: int):
    return jsonify(audit_service.get_audit_log(log_id).to_dict())


@bp.route("/audit-logs/<int:log_id>", methods=["DELETE"])
def audit_log_delete(log_id: int):
    audit_service.delete_audit_log(log_id)
    return no_content()
