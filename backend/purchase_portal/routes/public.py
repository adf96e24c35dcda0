# Overview: Unauthenticated routes: request submission, public view and the emailed response link.

# backend/purchase_portal/routes/public.py
"""
Public purchase request routes.

No identity token is required here. Access to an individual request is
granted by possession of its response token only, and the public view
exposes a restricted field set (no token, no admin identity, no log).
"""
from flask import Blueprint, current_app, request

public_bp = Blueprint("public", __name__, url_prefix="/api")


def _lifecycle():
    return current_app.extensions["lifecycle"]


@public_bp.route("/respond/<token>", methods=["GET", "POST"])
def respond(token: str):
    """
    Apply the response carried by an emailed link.

    Query params:
    - action: confirm | approve | reject | needinfo
    Body (optional JSON):
    - note: free text stored on the request
    """
    action = request.args.get("action")
    payload = request.get_json(silent=True) or {}
    note = payload.get("note") if isinstance(payload, dict) else None
    if note is not None and not isinstance(note, str):
        note = str(note)

    status = _lifecycle().apply_response(token, action, note)
    return {"message": "Response recorded successfully", "status": status.value}


@public_bp.get("/public/request/<token>")
def get_public_request(token: str):
    return _lifecycle().get_public_view(token)


@public_bp.post("/public/purchase-requests")
def create_public_request():
    payload = request.get_json(silent=True) or {}
    created = _lifecycle().create(payload)
    return {"message": "Purchase Request created and sent successfully", "id": created.id}, 201
