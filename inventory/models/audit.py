"""
Audit logging model.

``AuditLog`` records every data change made through the service layer.
"""

from inventory.extensions import db
from inventory.utils import iso


class AuditLog(db.Model):
    """
    Records all data changes in the application.

    Change details are stored as JSON blobs for flexibility.

    ``action_type`` values: CREATE, UPDATE, DELETE, RESTORE,
    STATUS_CHANGE, ASSIGN, UNASSIGN, MIGRATE.

    JSON conventions for ``previous_value`` / ``new_value``:
      - CREATE: previous_value is NULL, new_value has full record.
      - UPDATE: both contain only the changed fields.
      - DELETE: previous_value has full record, new_value is NULL.

    ``asset_id`` is set for asset-scoped entries so an asset's trail can
    be listed without decoding ``entity_type``/``entity_id``.  It is not
    a foreign key: entries outlive a permanently deleted asset.
    """

    __tablename__ = "audit_log"

    # Use BigInteger; the table grows with every write.
    id = db.Column(
        db.BigInteger().with_variant(db.Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    asset_id = db.Column(db.Integer, nullable=True, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("app_user.id"), nullable=True)
    action_type = db.Column(db.String(50), nullable=False)
    entity_type = db.Column(db.String(100), nullable=False)
    entity_id = db.Column(db.Integer, nullable=True)
    details = db.Column(db.String(1000), nullable=True)
    previous_value = db.Column(db.Text, nullable=True)
    new_value = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    # -- Relationships -----------------------------------------------------
    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "asset_id": self.asset_id,
            "user_id": self.user_id,
            "action_type": self.action_type,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "details": self.details,
            "previous_value": self.previous_value,
            "new_value": self.new_value,
            "created_at": iso(self.created_at),
        }

    def __repr__(self) -> str:
        return (
            f"<AuditLog {self.action_type} {self.entity_type}"
            f":{self.entity_id}>"
        )
