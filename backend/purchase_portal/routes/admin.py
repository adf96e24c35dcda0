# Overview: Flask API routes for staff account and role management.

# backend/purchase_portal/routes/admin.py
"""
Staff administration routes.

SECURITY:
- Listing staff requires admin or representative
- Changing roles and deleting accounts requires admin
"""
from flask import Blueprint, current_app, g, request

from ..decorators import admin_only, admin_or_representative, require_auth

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


def _admission():
    return current_app.extensions["admission"]


@admin_bp.get("/staff")
@require_auth
@admin_or_representative
def list_staff():
    return _admission().list_staff()


@admin_bp.put("/users/<uid>/role")
@require_auth
@admin_only
def update_role(uid: str):
    """
    Body: {"role": "admin" | "staff" | "representative"}

    The affected user is emailed the old and new role when it changes.
    """
    payload = request.get_json(silent=True) or {}
    role = payload.get("role") if isinstance(payload, dict) else None

    message = _admission().update_role(
        uid,
        role,
        actor_uid=g.identity.uid,
        actor_email=g.identity.email,
    )
    return {"message": message}


@admin_bp.delete("/users/<uid>")
@require_auth
@admin_only
def delete_user(uid: str):
    _admission().delete_account(uid)
    current_app.logger.info("Account %s deleted by %s", uid, g.identity.uid)
    return {"message": "User deleted"}
