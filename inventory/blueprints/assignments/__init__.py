"""
Assignments blueprint — tags, tag assignment and user assignment.
"""

from flask import Blueprint

bp = Blueprint("assignments", __name__)

# Import routes after blueprint creation to avoid circular imports.
from inventory.blueprints.assignments import routes  # noqa: E402, F401
