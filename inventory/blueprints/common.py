"""
Request/response helpers shared by the JSON blueprints.
"""

from flask import jsonify, request

from inventory.exceptions import ValidationFailedError
from inventory.utils import page_to_dict


def json_body() -> dict:
    """
    Return the request's JSON object.

    Malformed JSON is rejected by Flask with a 400 before this returns;
    a body that parses but is not an object is rejected here.
    """
    data = request.get_json(silent=False)
    if not isinstance(data, dict):
        raise ValidationFailedError("Request body must be a JSON object")
    return data


def json_list(key: str | None = None) -> list:
    """Return a JSON array body (or ``body[key]`` when given)."""
    data = request.get_json(silent=False)
    if key is not None and isinstance(data, dict):
        data = data.get(key)
    if not isinstance(data, list):
        raise ValidationFailedError("Request body must be a JSON array")
    return data


def acting_user_id() -> int | None:
    """The caller's user id from ``X-User-Id``, for audit attribution."""
    value = request.headers.get("X-User-Id", "").strip()
    return int(value) if value.isdigit() else None


def page_args() -> dict:
    """``page`` / ``per_page`` query arguments as keyword args."""
    return {
        "page": request.args.get("page", 1, type=int),
        "per_page": request.args.get("per_page", None, type=int),
    }


def paged(pagination, serializer=None):
    return jsonify(page_to_dict(pagination, serializer))


def created(record):
    return jsonify(record.to_dict()), 201


def no_content():
    return "", 204
