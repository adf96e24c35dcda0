# Overview: Admin routes for purchase requests; parses input and returns JSON responses.

# backend/purchase_portal/routes/purchase_requests.py
"""
Admin purchase request routes.

SECURITY: All routes require a verified identity token and the admin role.
Status never changes here; it only moves through the response link.
"""
from flask import Blueprint, current_app, g, request

from ..decorators import admin_only, require_auth

purchase_requests_bp = Blueprint("purchase_requests", __name__, url_prefix="/api/admin")


def _lifecycle():
    return current_app.extensions["lifecycle"]


@purchase_requests_bp.post("/purchase-requests")
@require_auth
@admin_only
def create_request():
    """Staff-initiated creation; the caller is captured as the request's admin."""
    payload = request.get_json(silent=True) or {}
    created = _lifecycle().create(
        payload,
        sender_email=g.identity.email or None,
        sender_name=g.identity.name or g.account.name or None,
    )
    return {"message": "Purchase Request created and sent successfully", "id": created.id}, 201


@purchase_requests_bp.get("/purchase-requests")
@require_auth
@admin_only
def list_requests():
    """
    List purchase requests, most recent first.

    Query params (all optional):
    - status: exact status match
    - store: case-insensitive substring of storeName
    - employee: case-insensitive substring of employeeName
    - startDate / endDate: inclusive createdAt bounds (ISO date or datetime)
    """
    requests = _lifecycle().list(
        status=request.args.get("status"),
        store=request.args.get("store"),
        employee=request.args.get("employee"),
        start_date=request.args.get("startDate"),
        end_date=request.args.get("endDate"),
    )
    return [r.to_dict() for r in requests]


@purchase_requests_bp.get("/purchase-requests/<request_id>")
@require_auth
@admin_only
def get_request(request_id: str):
    return _lifecycle().get(request_id).to_dict()


@purchase_requests_bp.put("/purchase-requests/<request_id>")
@require_auth
@admin_only
def update_request(request_id: str):
    payload = request.get_json(silent=True)
    _lifecycle().update(request_id, payload)
    return {"message": "Request updated successfully"}


@purchase_requests_bp.delete("/purchase-requests/<request_id>")
@require_auth
@admin_only
def delete_request(request_id: str):
    _lifecycle().delete(request_id)
    return {"message": "Request deleted successfully"}


@purchase_requests_bp.post("/test-reminder")
@require_auth
@admin_only
def test_reminder():
    """Run the reminder sweep now instead of waiting for the daily trigger."""
    summary = current_app.extensions["reminders"].run()
    current_app.logger.info("Manual reminder sweep by %s: %s", g.identity.uid, summary.to_dict())
    return {"message": "Reminder sweep completed", "summary": summary.to_dict()}
