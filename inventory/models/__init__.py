"""
Model package — imports all models so Alembic and SQLAlchemy can
discover them automatically when ``flask db`` commands are run.

  - catalog.py     -> asset types/makes/models, OS and OS versions
  - procurement.py -> vendors and purchase orders
  - user.py        -> asset holders
  - asset.py       -> assets, tags and tag assignments
  - history.py     -> status and assignment history
  - audit.py       -> audit log
"""

from inventory.models.catalog import (  # noqa: F401
    AssetMake,
    AssetModel,
    AssetType,
    OperatingSystem,
    OSVersion,
)
from inventory.models.procurement import AssetPO, Vendor  # noqa: F401
from inventory.models.user import User  # noqa: F401
from inventory.models.asset import (  # noqa: F401
    Asset,
    AssetTag,
    AssetTagAssignment,
)
from inventory.models.history import (  # noqa: F401
    AssetAssignmentHistory,
    AssetStatusHistory,
)
from inventory.models.audit import AuditLog  # noqa: F401
