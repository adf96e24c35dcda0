# Overview: Flask API routes for the product catalog; parses input and returns JSON responses.

# backend/purchase_portal/routes/products.py
"""
Product catalog routes.

SECURITY:
- GET /api/products is public (the submission form reads it)
- Create and delete require the admin role
"""
from flask import Blueprint, current_app, request

from ..decorators import admin_only, require_auth
from ..services.products_service import (
    create_product,
    delete_product,
    list_products as list_products_service,
)

products_bp = Blueprint("products", __name__, url_prefix="/api")


@products_bp.get("/products")
def list_products():
    """All products, sorted by name."""
    return list_products_service()


@products_bp.post("/admin/products")
@require_auth
@admin_only
def create_product_route():
    payload = request.get_json(silent=True) or {}
    name = payload.get("name") if isinstance(payload, dict) else None

    created = create_product(name)
    current_app.logger.info("Product %r added", created["name"])
    return created, 201


@products_bp.delete("/admin/products/<product_id>")
@require_auth
@admin_only
def delete_product_route(product_id: str):
    delete_product(product_id)
    return {"message": "Product deleted successfully"}
