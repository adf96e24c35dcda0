"""
Product catalog tests.

Verifies:
- Public listing sorted by name
- Duplicate names rejected by exact, case-sensitive match
- Seeding is idempotent
"""

from purchase_portal.models import Product
from purchase_portal.extensions import db
from purchase_portal.services.products_service import DEFAULT_PRODUCT_NAMES, seed_products


class TestProductRoutes:

    def test_public_listing_sorted(self, client, admin_headers):
        for name in ("LYNX S - LE10 S", "ALPEX 4K A50E", "FALCON - FH25"):
            assert client.post("/api/admin/products", json={"name": name}, headers=admin_headers).status_code == 201

        resp = client.get("/api/products")

        assert resp.status_code == 200
        assert [p["name"] for p in resp.get_json()] == ["ALPEX 4K A50E", "FALCON - FH25", "LYNX S - LE10 S"]

    def test_create_returns_product(self, client, admin_headers):
        resp = client.post("/api/admin/products", json={"name": "EXPLORER"}, headers=admin_headers)

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["name"] == "EXPLORER"
        assert body["id"]
        assert body["createdAt"].endswith("Z")

    def test_duplicate_name(self, client, admin_headers):
        name = "STELLAR 3.0 - SX60L 3.0"
        client.post("/api/admin/products", json={"name": name}, headers=admin_headers)

        resp = client.post("/api/admin/products", json={"name": name}, headers=admin_headers)

        assert resp.status_code == 400
        assert resp.get_json() == {"error": "Product already exists", "reason": "conflict"}
        assert db.session.query(Product).filter_by(name=name).count() == 1

    def test_duplicate_check_is_case_sensitive(self, client, admin_headers):
        client.post("/api/admin/products", json={"name": "STELLAR 3.0 - SX60L 3.0"}, headers=admin_headers)

        resp = client.post("/api/admin/products", json={"name": "stellar 3.0 - sx60l 3.0"}, headers=admin_headers)

        assert resp.status_code == 201

    def test_name_required(self, client, admin_headers):
        for payload in ({}, {"name": ""}, {"name": "   "}, {"name": 42}):
            resp = client.post("/api/admin/products", json=payload, headers=admin_headers)
            assert resp.status_code == 400
            assert resp.get_json()["error"] == "Product name is required"

    def test_delete(self, client, admin_headers):
        created = client.post("/api/admin/products", json={"name": "EXPLORER"}, headers=admin_headers).get_json()

        resp = client.delete(f"/api/admin/products/{created['id']}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json() == {"message": "Product deleted successfully"}
        assert client.get("/api/products").get_json() == []

    def test_delete_missing(self, client, admin_headers):
        resp = client.delete("/api/admin/products/missing", headers=admin_headers)

        assert resp.status_code == 404
        assert resp.get_json()["error"] == "Product not found"

    def test_staff_cannot_create(self, client, staff_headers):
        resp = client.post("/api/admin/products", json={"name": "EXPLORER"}, headers=staff_headers)
        assert resp.status_code == 403


class TestSeeding:

    def test_seed_inserts_defaults_once(self, app):
        assert seed_products() == len(set(DEFAULT_PRODUCT_NAMES))
        assert seed_products() == 0
        assert db.session.query(Product).count() == len(set(DEFAULT_PRODUCT_NAMES))

    def test_seed_skips_existing(self, app):
        db.session.add(Product(name="EXPLORER"))
        db.session.commit()

        assert seed_products(["EXPLORER", "M15 SP5000"]) == 1

    def test_cli_seed(self, app):
        result = app.test_cli_runner().invoke(args=["products", "seed"])

        assert result.exit_code == 0
        assert "PASS Seeded" in result.output
        assert db.session.query(Product).count() == len(set(DEFAULT_PRODUCT_NAMES))
