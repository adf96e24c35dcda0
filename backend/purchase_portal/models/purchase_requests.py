from __future__ import annotations

import uuid

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


def new_document_id() -> str:
    return uuid.uuid4().hex


class PurchaseRequest(db.Model):
    """
    A staff purchase request and its response lifecycle.

    Submission fields are captured once at creation. The lifecycle fields
    (status, token, response, reminders) are written only by the lifecycle
    engine and the reminder sweep.
    """
    __tablename__ = "purchase_requests"

    id = db.Column(db.String(32), primary_key=True, default=new_document_id)

    # Submission details
    store_name = db.Column(db.String(255), nullable=False)
    employee_name = db.Column(db.String(255), nullable=False)
    order_date = db.Column(db.DateTime, nullable=False)
    invoice_date = db.Column(db.DateTime, nullable=False)
    product_model = db.Column(db.String(255), nullable=False)
    serial_number = db.Column(db.String(255), nullable=False, default="")
    fob = db.Column(db.String(255), nullable=False, default="")
    discount = db.Column(db.String(64), nullable=False)
    rebate = db.Column(db.String(255), nullable=False, default="")
    email = db.Column(db.String(255), nullable=False, default="")         # submitter (Sight App) email
    public_email = db.Column(db.String(255), nullable=False, default="")  # contact of whoever filled the form

    # Denormalized sender identity captured at creation
    admin_email = db.Column(db.String(255), nullable=False)
    admin_name = db.Column(db.String(255), nullable=False)

    # Lifecycle
    status = db.Column(db.String(16), nullable=False, default="Pending", index=True)
    response_token = db.Column(db.String(128), nullable=False, unique=True, index=True)
    token_used = db.Column(db.Boolean, nullable=False, default=False)
    response_type = db.Column(db.String(16), nullable=True)
    response_note = db.Column(db.Text, nullable=True)
    response_timestamp = db.Column(db.DateTime, nullable=True)

    # Reminders
    reminder_count = db.Column(db.Integer, nullable=False, default=0)
    last_reminder_sent = db.Column(db.DateTime, nullable=True)
    email_sent_log = db.Column(db.JSON, nullable=False, default=list)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    # JSON key -> column attribute
    API_FIELDS = {
        "id": "id",
        "storeName": "store_name",
        "employeeName": "employee_name",
        "orderDate": "order_date",
        "invoiceDate": "invoice_date",
        "productModel": "product_model",
        "serialNumber": "serial_number",
        "fob": "fob",
        "discount": "discount",
        "rebate": "rebate",
        "email": "email",
        "publicEmail": "public_email",
        "adminEmail": "admin_email",
        "adminName": "admin_name",
        "status": "status",
        "responseToken": "response_token",
        "tokenUsed": "token_used",
        "responseType": "response_type",
        "responseNote": "response_note",
        "responseTimestamp": "response_timestamp",
        "reminderCount": "reminder_count",
        "lastReminderSent": "last_reminder_sent",
        "emailSentLog": "email_sent_log",
        "createdAt": "created_at",
        "updatedAt": "updated_at",
    }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "storeName": self.store_name,
            "employeeName": self.employee_name,
            "orderDate": to_utc_z(self.order_date),
            "invoiceDate": to_utc_z(self.invoice_date),
            "productModel": self.product_model,
            "serialNumber": self.serial_number,
            "fob": self.fob,
            "discount": self.discount,
            "rebate": self.rebate,
            "email": self.email,
            "publicEmail": self.public_email,
            "adminEmail": self.admin_email,
            "adminName": self.admin_name,
            "status": self.status,
            "responseToken": self.response_token,
            "tokenUsed": bool(self.token_used),
            "responseType": self.response_type,
            "responseNote": self.response_note,
            "responseTimestamp": to_utc_z(self.response_timestamp),
            "reminderCount": self.reminder_count,
            "lastReminderSent": to_utc_z(self.last_reminder_sent),
            "emailSentLog": list(self.email_sent_log or []),
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }

    def to_public_dict(self) -> dict:
        """Allow-listed view for the unauthenticated confirmation page."""
        return {
            "storeName": self.store_name,
            "employeeName": self.employee_name,
            "productModel": self.product_model,
            "discount": self.discount,
            "serialNumber": self.serial_number,
            "fob": self.fob,
            "rebate": self.rebate,
            "orderDate": to_utc_z(self.order_date),
            "invoiceDate": to_utc_z(self.invoice_date),
            "status": self.status,
            "tokenUsed": bool(self.token_used),
            "publicEmail": self.public_email,
        }
