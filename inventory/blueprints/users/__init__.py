"""
Users blueprint — asset holders.
"""

from flask import Blueprint

bp = Blueprint("users", __name__)

# Import routes after blueprint creation to avoid circular imports.
from inventory.blueprints.users import routes  # noqa: E402, F401
