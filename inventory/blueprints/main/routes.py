"""
Routes for the main blueprint — health check and API index.
"""

from flask import jsonify
from sqlalchemy import text

from inventory.blueprints.main import bp
from inventory.extensions import db


@bp.route("/health")
def health_check():
    """
    Health check endpoint for monitoring and load balancers.

    Returns 200 if the app is running and can reach the database.
    """
    try:
        db.session.execute(text("SELECT 1"))
        return {"status": "healthy", "database": "connected"}, 200
    except Exception as exc:  # pylint: disable=broad-except
        db.session.rollback()
        return {"status": "unhealthy", "database": str(exc)}, 503


@bp.route("/api")
def api_index():
    """List the resource collections the API exposes."""
    return jsonify(
        {
            "resources": [
                "/api/assets",
                "/api/asset-pos",
                "/api/vendors",
                "/api/users",
                "/api/asset-types",
                "/api/asset-makes",
                "/api/asset-models",
                "/api/os",
                "/api/os-versions",
                "/api/tags",
                "/api/assignments",
                "/api/history",
                "/api/audit-logs",
                "/api/reports",
            ]
        }
    )
