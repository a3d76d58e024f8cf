"""
Append-only history of asset status changes and user assignments.

Rows are never edited, with one exception: ``unassigned_date`` is set
on an ``AssetAssignmentHistory`` row when the assignment it records
ends.
"""

from inventory.extensions import db
from inventory.utils import iso


class AssetStatusHistory(db.Model):
    """One row per status an asset has been put into."""

    __tablename__ = "asset_status_history"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    asset_id = db.Column(
        db.Integer, db.ForeignKey("asset.id"), nullable=False, index=True
    )
    status = db.Column(db.String(20), nullable=False)
    changed_by = db.Column(db.Integer, db.ForeignKey("app_user.id"), nullable=True)
    change_date = db.Column(db.DateTime, nullable=False, server_default=db.func.now())
    remarks = db.Column(db.String(500), nullable=True)

    # -- Relationships -----------------------------------------------------
    asset = db.relationship("Asset")
    changed_by_user = db.relationship("User", foreign_keys=[changed_by])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "asset_id": self.asset_id,
            "status": self.status,
            "changed_by": self.changed_by,
            "change_date": iso(self.change_date),
            "remarks": self.remarks,
        }

    def __repr__(self) -> str:
        return f"<AssetStatusHistory asset={self.asset_id} {self.status}>"


class AssetAssignmentHistory(db.Model):
    """
    One row per period an asset was held by a user.

    An open row (``unassigned_date`` is NULL) is the current assignment.
    """

    __tablename__ = "asset_assignment_history"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    asset_id = db.Column(
        db.Integer, db.ForeignKey("asset.id"), nullable=False, index=True
    )
    user_id = db.Column(
        db.Integer, db.ForeignKey("app_user.id"), nullable=False, index=True
    )
    assigned_date = db.Column(
        db.DateTime, nullable=False, server_default=db.func.now()
    )
    unassigned_date = db.Column(db.DateTime, nullable=True)
    remarks = db.Column(db.String(500), nullable=True)

    # -- Relationships -----------------------------------------------------
    asset = db.relationship("Asset")
    user = db.relationship("User")

    @property
    def is_open(self) -> bool:
        return self.unassigned_date is None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "asset_id": self.asset_id,
            "user_id": self.user_id,
            "user_name": self.user.full_name_or_office_name if self.user else None,
            "assigned_date": iso(self.assigned_date),
            "unassigned_date": iso(self.unassigned_date),
            "remarks": self.remarks,
        }

    def __repr__(self) -> str:
        return (
            f"<AssetAssignmentHistory asset={self.asset_id} "
            f"user={self.user_id} open={self.is_open}>"
        )
