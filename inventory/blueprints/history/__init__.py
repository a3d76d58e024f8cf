"""
History blueprint — status/assignment history and audit logs.
"""

from flask import Blueprint

bp = Blueprint("history", __name__)

# Import routes after blueprint creation to avoid circular imports.
from inventory.blueprints.history import routes  # noqa: E402, F401
