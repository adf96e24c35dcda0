from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


ROLE_ADMIN = "admin"
ROLE_STAFF = "staff"
ROLE_REPRESENTATIVE = "representative"
ROLE_PENDING = "pending"

ALL_ROLES = {ROLE_ADMIN, ROLE_STAFF, ROLE_REPRESENTATIVE, ROLE_PENDING}
# Roles an admin may assign explicitly; "pending" is only ever set on admission.
ASSIGNABLE_ROLES = {ROLE_ADMIN, ROLE_STAFF, ROLE_REPRESENTATIVE}


class StaffAccount(db.Model):
    """
    Local profile of an identity verified by the external identity provider.

    Keyed by the provider's uid. Only the role is owned here; name, photo and
    last login are refreshed from the identity on every sync.
    """
    __tablename__ = "staff_accounts"

    uid = db.Column(db.String(128), primary_key=True)
    email = db.Column(db.String(255), nullable=False, default="")
    name = db.Column(db.String(255), nullable=False, default="")
    photo_url = db.Column(db.String(1024), nullable=False, default="")
    role = db.Column(db.String(32), nullable=False, default=ROLE_PENDING, index=True)
    last_login = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "uid": self.uid,
            "email": self.email,
            "name": self.name,
            "photoURL": self.photo_url,
            "role": self.role,
            "lastLogin": to_utc_z(self.last_login),
            "createdAt": to_utc_z(self.created_at),
        }

    def to_staff_entry(self) -> dict:
        return {
            "id": self.uid,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "lastLogin": to_utc_z(self.last_login),
        }
