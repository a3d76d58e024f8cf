"""
Asset-holder model.

A ``User`` is anyone an asset can be assigned to: an employee or, with
``is_office_asset`` set, a shared office/room.  There is no login; the
API is unauthenticated and the acting user is only recorded for audit
attribution.
"""

from inventory.extensions import db
from inventory.models.catalog import STATUS_ACTIVE
from inventory.utils import iso


class User(db.Model):
    """
    An employee or office that can hold assets.

    ``employee_code`` is the business key and is unique; email lookups
    are case-insensitive in ``user_service``.
    """

    __tablename__ = "app_user"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    full_name_or_office_name = db.Column(db.String(200), nullable=False)
    employee_code = db.Column(db.String(50), unique=True, nullable=True)
    user_type = db.Column(db.String(50), nullable=True)
    department = db.Column(db.String(100), nullable=True)
    designation = db.Column(db.String(100), nullable=True)
    country = db.Column(db.String(100), nullable=True)
    city = db.Column(db.String(100), nullable=True)
    email = db.Column(db.String(255), nullable=True, index=True)
    location = db.Column(db.String(200), nullable=True)
    is_office_asset = db.Column(db.Boolean, nullable=False, default=False)
    status = db.Column(db.String(20), nullable=False, default=STATUS_ACTIVE)
    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    # -- Relationships -----------------------------------------------------
    assets = db.relationship(
        "Asset",
        back_populates="current_user",
        foreign_keys="Asset.current_user_id",
        lazy="dynamic",
    )

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "full_name_or_office_name": self.full_name_or_office_name,
            "employee_code": self.employee_code,
            "user_type": self.user_type,
            "department": self.department,
            "designation": self.designation,
            "country": self.country,
            "city": self.city,
            "email": self.email,
            "location": self.location,
            "is_office_asset": self.is_office_asset,
            "status": self.status,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<User {self.employee_code or self.full_name_or_office_name}>"
