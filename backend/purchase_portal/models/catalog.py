from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from .purchase_requests import new_document_id


class Product(db.Model):
    """Catalog entry offered on the purchase request form."""
    __tablename__ = "products"

    id = db.Column(db.String(32), primary_key=True, default=new_document_id)
    # Exact-match uniqueness; names differing only in case are distinct products.
    name = db.Column(db.String(255), nullable=False, unique=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "createdAt": to_utc_z(self.created_at),
        }
