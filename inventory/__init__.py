"""
Application factory for the IT Asset Inventory backend.

Usage::

    from inventory import create_app
    app = create_app()           # Uses FLASK_ENV to pick config.
    app = create_app("testing")  # Explicit config for tests.
"""

import logging
import os

from flask import Flask, jsonify
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from .config import config_by_name
from .exceptions import InventoryError
from .extensions import db, migrate

logger = logging.getLogger(__name__)


def create_app(config_name: str | None = None) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        config_name: One of 'development', 'testing', or 'production'.
                     Defaults to the FLASK_ENV environment variable,
                     falling back to 'development'.

    Returns:
        A fully configured Flask application instance.
    """
    # Resolve the configuration class.
    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")
    config_class = config_by_name.get(config_name)
    if config_class is None:
        raise ValueError(
            f"Unknown config '{config_name}'. "
            f"Valid options: {list(config_by_name.keys())}"
        )

    app = Flask(__name__)
    app.config.from_object(config_class)
    app.json.sort_keys = app.config.get("JSON_SORT_KEYS", False)

    # Refuse to run production with insecure or missing settings.
    if config_name == "production":
        config_class.validate_production_secrets(app.config)

    # -- Configure logging -------------------------------------------------
    _configure_logging(app)

    # -- Initialize extensions ---------------------------------------------
    _register_extensions(app)

    # -- Register blueprints -----------------------------------------------
    _register_blueprints(app)

    # -- Register error handlers -------------------------------------------
    _register_error_handlers(app)

    # -- Register custom CLI commands --------------------------------------
    _register_cli_commands(app)

    return app


def _register_extensions(app: Flask) -> None:
    """Bind all Flask extensions to the application instance."""
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so metadata is complete for create_all / Alembic.
    from . import models  # noqa: F401  pylint: disable=import-outside-toplevel


def _register_blueprints(app: Flask) -> None:
    """
    Import and register each blueprint with its URL prefix.

    Blueprints are imported inside this function to avoid circular
    imports, so models and services can safely import ``db`` from
    extensions at module level.
    """
    # pylint: disable=import-outside-toplevel

    # Main blueprint: health check and API index.
    from .blueprints.main import bp as main_bp

    app.register_blueprint(main_bp)

    # Assets: CRUD, bulk create, status, soft delete / restore.
    from .blueprints.assets import bp as assets_bp

    app.register_blueprint(assets_bp, url_prefix="/api/assets")

    # Procurement: purchase orders (with cascades) and vendors.
    from .blueprints.procurement import bp as procurement_bp

    app.register_blueprint(procurement_bp, url_prefix="/api")

    # Catalog: asset types/makes/models, OS and OS versions.
    from .blueprints.catalog import bp as catalog_bp

    app.register_blueprint(catalog_bp, url_prefix="/api")

    # Users: asset holders.
    from .blueprints.users import bp as users_bp

    app.register_blueprint(users_bp, url_prefix="/api/users")

    # Tags and assignments: tag CRUD, user and tag assignment.
    from .blueprints.assignments import bp as assignments_bp

    app.register_blueprint(assignments_bp, url_prefix="/api")

    # History: status/assignment history and audit logs.
    from .blueprints.history import bp as history_bp

    app.register_blueprint(history_bp, url_prefix="/api")

    # Reports: analytics summary and asset register exports.
    from .blueprints.reports import bp as reports_bp

    app.register_blueprint(reports_bp, url_prefix="/api/reports")


def _register_error_handlers(app: Flask) -> None:
    """Translate service exceptions and HTTP errors into JSON bodies."""

    @app.errorhandler(InventoryError)
    def inventory_error(error: InventoryError):
        """Typed service errors carry their own status and code."""
        if error.http_status >= 500:
            db.session.rollback()
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(IntegrityError)
    def integrity_error(error: IntegrityError):
        """A store constraint rejected the write (e.g., a unique key race)."""
        db.session.rollback()
        logger.warning("Integrity error: %s", error.orig)
        return jsonify({"error": "CONFLICT", "message": str(error.orig)}), 409

    @app.errorhandler(HTTPException)
    def http_error(error: HTTPException):
        """Malformed JSON (400), unknown routes (404), wrong method (405)."""
        name = error.name.upper().replace(" ", "_")
        return jsonify({"error": name, "message": error.description}), error.code

    @app.errorhandler(500)
    def internal_error(error):  # pylint: disable=unused-argument
        """Handle 500 Internal Server Error."""
        db.session.rollback()
        logger.error("Unhandled error", exc_info=True)
        return (
            jsonify({"error": "INTERNAL_ERROR", "message": "Internal server error"}),
            500,
        )


def _register_cli_commands(app: Flask) -> None:
    """Register custom Flask CLI commands (e.g., flask db-check)."""
    from .cli import register_commands  # pylint: disable=import-outside-toplevel

    register_commands(app)


def _configure_logging(app: Flask) -> None:
    """
    Set the root log level from ``LOG_LEVEL``.

    SQL echo is left to ``SQLALCHEMY_ECHO``; the engine logger is kept
    at WARNING otherwise so debug runs stay readable.
    """
    log_level = app.config.get("LOG_LEVEL", "INFO")
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    # Quiet down noisy libraries in development.
    if app.debug and not app.config.get("SQLALCHEMY_ECHO"):
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
