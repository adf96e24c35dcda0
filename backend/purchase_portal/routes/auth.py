# Overview: Flask API route for identity sync; runs the admission policy for the caller.

# backend/purchase_portal/routes/auth.py
from flask import Blueprint, current_app, g

from ..decorators import require_auth

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/sync")
@require_auth
def sync_route():
    """
    Create or refresh the caller's staff account.

    The first account ever synced becomes admin; later newcomers start as
    pending until promoted.
    """
    role = current_app.extensions["admission"].sync_user(g.identity)
    return {"message": "User synced", "role": role}
