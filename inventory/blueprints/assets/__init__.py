"""
Assets blueprint — asset CRUD, bulk creation, status and soft delete.
"""

from flask import Blueprint

bp = Blueprint("assets", __name__)

# Import routes after blueprint creation to avoid circular imports.
from inventory.blueprints.assets import routes  # noqa: E402, F401
