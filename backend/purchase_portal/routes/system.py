# backend/purchase_portal/routes/system.py
"""
Service banner and health endpoints.
"""

import time
from flask import Blueprint, current_app
from sqlalchemy import text

from .. import __version__
from ..extensions import db
from ..models import Product, PurchaseRequest, StaffAccount
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity and that every table answers a count.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        details = {
            "purchase_requests": db.session.query(PurchaseRequest).count(),
            "products": db.session.query(Product).count(),
            "staff_accounts": db.session.query(StaffAccount).count(),
        }
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": details,
        }
    except Exception:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


@system_bp.get("/")
def index():
    return {
        "message": "Staff Purchase Portal API",
        "version": __version__,
        "status": "healthy",
    }


@system_bp.get("/api/health")
def health():
    """
    Returns:
    - 200: database reachable
    - 503: database unreachable
    """
    database_health = check_database_health()
    healthy = database_health["status"] == "healthy"

    response = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": to_utc_z(utcnow()),
        "checks": {
            "database": database_health,
        }
    }
    return response, 200 if healthy else 503
