"""
Admin HTTP surface tests.

Verifies:
- Missing or bad identity tokens return 401
- Non-admin roles are denied admin routes (403)
- Admins can create, list, edit and delete purchase requests
- Role management validates roles and notifies the affected user
"""

import pytest

from conftest import add_account, auth_headers, make_token, sample_payload

from purchase_portal.extensions import db
from purchase_portal.models import PurchaseRequest, StaffAccount


# =============================================================================
# UNAUTHENTICATED ACCESS - 401
# =============================================================================


class TestUnauthenticatedAccess:

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/admin/purchase-requests"),
            ("POST", "/api/admin/purchase-requests"),
            ("GET", "/api/admin/purchase-requests/abc"),
            ("PUT", "/api/admin/purchase-requests/abc"),
            ("DELETE", "/api/admin/purchase-requests/abc"),
            ("POST", "/api/admin/test-reminder"),
            ("POST", "/api/admin/products"),
            ("DELETE", "/api/admin/products/abc"),
            ("GET", "/api/admin/staff"),
            ("PUT", "/api/admin/users/abc/role"),
            ("DELETE", "/api/admin/users/abc"),
            ("POST", "/api/auth/sync"),
        ],
    )
    def test_requires_token(self, client, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert resp.get_json() == {"error": "Not authorized, no token", "reason": "unauthorized"}

    def test_bad_signature(self, client):
        token = make_token("admin-1", secret="not-the-secret")
        resp = client.get("/api/admin/purchase-requests", headers=auth_headers(token))

        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Not authorized, token failed"

    def test_garbage_token(self, client):
        resp = client.get("/api/admin/purchase-requests", headers=auth_headers("garbage"))
        assert resp.status_code == 401

    def test_expired_token(self, client):
        token = make_token("admin-1", exp=1)
        resp = client.get("/api/admin/purchase-requests", headers=auth_headers(token))
        assert resp.status_code == 401


# =============================================================================
# ROLE GATES - 403
# =============================================================================


class TestRoleGates:

    def test_staff_denied_admin_routes(self, client, staff_headers):
        resp = client.get("/api/admin/purchase-requests", headers=staff_headers)

        assert resp.status_code == 403
        assert resp.get_json() == {"error": "Require Admin Role", "reason": "forbidden"}

    def test_unknown_account_denied(self, client):
        headers = auth_headers(make_token("ghost", "ghost@example.com"))
        resp = client.get("/api/admin/purchase-requests", headers=headers)
        assert resp.status_code == 403

    def test_pending_denied_staff_list(self, client):
        add_account("newbie", "pending")
        headers = auth_headers(make_token("newbie"))

        resp = client.get("/api/admin/staff", headers=headers)

        assert resp.status_code == 403
        assert resp.get_json()["error"] == "Require Admin or Representative Role"

    def test_representative_can_list_staff(self, client, rep_headers):
        resp = client.get("/api/admin/staff", headers=rep_headers)
        assert resp.status_code == 200

    def test_representative_cannot_change_roles(self, client, rep_headers):
        resp = client.put("/api/admin/users/rep-1/role", json={"role": "admin"}, headers=rep_headers)
        assert resp.status_code == 403


# =============================================================================
# PURCHASE REQUESTS
# =============================================================================


class TestAdminPurchaseRequests:

    def test_create_captures_admin_identity(self, client, admin_headers, mailer):
        resp = client.post("/api/admin/purchase-requests", json=sample_payload(), headers=admin_headers)

        assert resp.status_code == 201
        req = db.session.get(PurchaseRequest, resp.get_json()["id"])
        assert req.admin_email == "boss@example.com"
        assert req.admin_name == "Boss Admin"
        assert "purchaseRequest" in mailer.templates()

    def test_get_by_id(self, client, admin_headers):
        created = client.post("/api/admin/purchase-requests", json=sample_payload(), headers=admin_headers).get_json()

        resp = client.get(f"/api/admin/purchase-requests/{created['id']}", headers=admin_headers)

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["id"] == created["id"]
        assert body["status"] == "Pending"
        assert body["tokenUsed"] is False
        assert body["reminderCount"] == 0
        assert body["emailSentLog"] == []
        assert len(body["responseToken"]) == 64

    def test_get_missing(self, client, admin_headers):
        resp = client.get("/api/admin/purchase-requests/missing", headers=admin_headers)

        assert resp.status_code == 404
        assert resp.get_json() == {"error": "Request not found", "reason": "not_found"}

    def test_list_filters_and_sorting(self, client, admin_headers, clock, lifecycle):
        a = lifecycle.create(sample_payload(storeName="North Branch", employeeName="Jane Doe"))
        clock.advance(days=1)
        b = lifecycle.create(sample_payload(storeName="South Branch", employeeName="John Roe"))
        clock.advance(days=1)
        c = lifecycle.create(sample_payload(storeName="North Outlet", employeeName="Alex Poe"))
        lifecycle.apply_response(a.response_token, "confirm")
        lifecycle.apply_response(c.response_token, "confirm")

        def ids(query):
            resp = client.get(f"/api/admin/purchase-requests{query}", headers=admin_headers)
            assert resp.status_code == 200
            return [r["id"] for r in resp.get_json()]

        assert ids("") == [c.id, b.id, a.id]
        assert ids("?status=Confirmed") == [c.id, a.id]
        assert ids("?status=Pending") == [b.id]
        assert ids("?store=NORTH") == [c.id, a.id]
        assert ids("?employee=roe") == [b.id]
        assert ids("?startDate=2026-03-03&endDate=2026-03-03") == [b.id]
        assert ids("?status=") == [c.id, b.id, a.id]

    def test_list_bad_date(self, client, admin_headers):
        resp = client.get("/api/admin/purchase-requests?startDate=soon", headers=admin_headers)
        assert resp.status_code == 400

    def test_update(self, client, admin_headers, lifecycle):
        req = lifecycle.create(sample_payload())

        resp = client.put(
            f"/api/admin/purchase-requests/{req.id}",
            json={"rebate": "$50", "id": "ignored", "createdAt": "2000-01-01T00:00:00Z"},
            headers=admin_headers,
        )

        assert resp.status_code == 200
        assert resp.get_json() == {"message": "Request updated successfully"}
        body = client.get(f"/api/admin/purchase-requests/{req.id}", headers=admin_headers).get_json()
        assert body["rebate"] == "$50"
        assert body["id"] == req.id
        assert body["createdAt"] == "2026-03-02T09:30:00Z"

    def test_update_cannot_change_status(self, client, admin_headers, lifecycle):
        req = lifecycle.create(sample_payload())

        resp = client.put(
            f"/api/admin/purchase-requests/{req.id}",
            json={"status": "Confirmed"},
            headers=admin_headers,
        )

        assert resp.status_code == 400
        body = client.get(f"/api/admin/purchase-requests/{req.id}", headers=admin_headers).get_json()
        assert body["status"] == "Pending"
        assert body["tokenUsed"] is False

    def test_delete(self, client, admin_headers, lifecycle):
        req = lifecycle.create(sample_payload())

        resp = client.delete(f"/api/admin/purchase-requests/{req.id}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json() == {"message": "Request deleted successfully"}

        assert client.get(f"/api/admin/purchase-requests/{req.id}", headers=admin_headers).status_code == 404
        assert client.delete(f"/api/admin/purchase-requests/{req.id}", headers=admin_headers).status_code == 404

    def test_manual_reminder_sweep(self, client, admin_headers, lifecycle, mailer):
        lifecycle.create(sample_payload())

        resp = client.post("/api/admin/test-reminder", headers=admin_headers)

        assert resp.status_code == 200
        assert resp.get_json()["summary"] == {"pending": 1, "sent": 1, "skipped": 0, "failed": 0}
        assert mailer.to("reminder") == ["sight@example.com"]


# =============================================================================
# STAFF AND ROLES
# =============================================================================


class TestStaffManagement:

    def test_list_staff(self, client, admin_headers):
        add_account("staff-9", "staff", email="nine@example.com", name="Nine")

        resp = client.get("/api/admin/staff", headers=admin_headers)

        assert resp.status_code == 200
        entries = {e["id"]: e for e in resp.get_json()}
        assert set(entries) == {"admin-1", "staff-9"}
        assert set(entries["staff-9"]) == {"id", "name", "email", "role", "lastLogin"}
        assert entries["staff-9"]["role"] == "staff"

    def test_invalid_role(self, client, admin_headers):
        add_account("staff-9", "staff")

        resp = client.put("/api/admin/users/staff-9/role", json={"role": "superuser"}, headers=admin_headers)

        assert resp.status_code == 400
        assert resp.get_json() == {"error": "Invalid role", "reason": "validation_error"}
        assert db.session.get(StaffAccount, "staff-9").role == "staff"

    def test_pending_is_not_assignable(self, client, admin_headers):
        add_account("staff-9", "staff")
        resp = client.put("/api/admin/users/staff-9/role", json={"role": "pending"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_unknown_user(self, client, admin_headers):
        resp = client.put("/api/admin/users/nobody/role", json={"role": "staff"}, headers=admin_headers)

        assert resp.status_code == 404
        assert resp.get_json()["error"] == "User not found"

    def test_promotion_notifies_user(self, client, admin_headers, mailer):
        add_account("newbie", "pending", email="newbie@example.com", name="Newbie")

        resp = client.put("/api/admin/users/newbie/role", json={"role": "staff"}, headers=admin_headers)

        assert resp.status_code == 200
        assert resp.get_json() == {"message": "Role updated to staff"}
        assert db.session.get(StaffAccount, "newbie").role == "staff"

        sent = [m for m in mailer.sent if m["template"] == "roleUpdated"]
        assert [m["to"] for m in sent] == ["newbie@example.com"]
        assert sent[0]["data"] == {
            "sender": "Boss Admin",
            "userName": "Newbie",
            "role": "staff",
            "oldRole": "pending",
        }

    def test_same_role_sends_nothing(self, client, admin_headers, mailer):
        add_account("staff-9", "staff")

        resp = client.put("/api/admin/users/staff-9/role", json={"role": "staff"}, headers=admin_headers)

        assert resp.status_code == 200
        assert mailer.to("roleUpdated") == []

    def test_delete_user(self, client, admin_headers):
        add_account("staff-9", "staff")

        resp = client.delete("/api/admin/users/staff-9", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json() == {"message": "User deleted"}
        assert db.session.get(StaffAccount, "staff-9") is None

        assert client.delete("/api/admin/users/staff-9", headers=admin_headers).status_code == 404
