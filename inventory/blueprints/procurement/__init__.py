"""
Procurement blueprint — purchase orders, PO cascades and vendors.
"""

from flask import Blueprint

bp = Blueprint("procurement", __name__)

# Import routes after blueprint creation to avoid circular imports.
from inventory.blueprints.procurement import routes  # noqa: E402, F401
