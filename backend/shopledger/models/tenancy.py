from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class Tenant(db.Model):
    """
    Multi-tenant root: every shop admin account is a Tenant.

    WHY: Shared-database multi-tenancy with strict isolation.
    Products, transactions, and sessions all carry tenant_id and no
    query may cross tenant boundaries.

    Tenants are created at registration and never deleted. Email and
    password are fixed after registration; the profile fields are mutable.
    """
    __tablename__ = "tenants"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    # Shop profile
    phone = db.Column(db.String(32), nullable=False)
    city = db.Column(db.String(128), nullable=False)
    branch = db.Column(db.String(128), nullable=False)
    gstin = db.Column(db.String(32), nullable=False)  # tax registration id

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Tenant id={self.id} email={self.email!r}>"

    def to_dict(self) -> dict:
        # password_hash never leaves the model
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "city": self.city,
            "branch": self.branch,
            "gstin": self.gstin,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
