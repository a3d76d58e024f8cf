"""
Catalog blueprint — asset types, makes, models, OS and OS versions.
"""

from flask import Blueprint

bp = Blueprint("catalog", __name__)

# Import routes after blueprint creation to avoid circular imports.
from inventory.blueprints.catalog import routes  # noqa: E402, F401
