"""
Authorization tests.

Verifies:
- Unauthenticated requests return 401
- Staff of one subsidiary cannot reach another subsidiary (403)
- MHC-only endpoints reject subsidiary roles (403)
- mhc_admin can reach every subsidiary
- Sessions come from the cookie or a Bearer header and end on logout
"""

import pytest

from subsidiary_hub.models import InventoryItem
from conftest import TEST_PASSWORD, auth_headers, get_auth_token


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a session."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/user"),
            ("POST", "/api/register"),
            ("GET", "/api/subsidiaries"),
            ("POST", "/api/subsidiaries"),
            ("GET", "/api/subsidiaries/1"),
            ("PATCH", "/api/subsidiaries/1"),
            ("GET", "/api/subsidiaries/1/inventory"),
            ("POST", "/api/subsidiaries/1/inventory"),
            ("GET", "/api/subsidiaries/1/sales"),
            ("POST", "/api/subsidiaries/1/sales"),
            ("GET", "/api/subsidiaries/1/users"),
            ("GET", "/api/sales"),
            ("GET", "/api/users"),
            ("GET", "/api/inventory/total"),
            ("GET", "/api/activity-logs"),
            ("GET", "/api/reports/sales"),
            ("GET", "/api/subsidiaries/1/reports/sales"),
            ("GET", "/api/config/database"),
            ("POST", "/api/config/database"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert resp.json == {"message": "Unauthorized"}

    def test_garbage_token_rejected(self, client, db_session):
        resp = client.get("/api/user", headers=auth_headers("not-a-real-token"))
        assert resp.status_code == 401


# =============================================================================
# SUBSIDIARY SCOPING (403)
# =============================================================================


class TestSubsidiaryScoping:
    """Non-MHC users are confined to their own subsidiary."""

    def test_staff_cannot_list_other_subsidiary_inventory(self, client, sub_b, item_b, staff_a_headers):
        resp = client.get(f"/api/subsidiaries/{sub_b.id}/inventory", headers=staff_a_headers)
        assert resp.status_code == 403
        assert resp.json["message"] == "Forbidden"

    def test_staff_cannot_create_in_other_subsidiary(self, client, db_session, sub_b, staff_a_headers):
        resp = client.post(
            f"/api/subsidiaries/{sub_b.id}/inventory",
            json={
                "sku": "X-1", "name": "Intruder", "category": "Misc",
                "costPrice": 1, "salePrice": 2, "quantity": 1,
            },
            headers=staff_a_headers,
        )
        assert resp.status_code == 403

        # The handler never ran
        assert db_session.query(InventoryItem).filter_by(sku="X-1").count() == 0

    def test_staff_cannot_read_other_subsidiary_record(self, client, sub_b, staff_a_headers):
        resp = client.get(f"/api/subsidiaries/{sub_b.id}", headers=staff_a_headers)
        assert resp.status_code == 403

    def test_staff_can_read_own_subsidiary(self, client, sub_a, item_a, staff_a_headers):
        resp = client.get(f"/api/subsidiaries/{sub_a.id}/inventory", headers=staff_a_headers)
        assert resp.status_code == 200
        assert [i["sku"] for i in resp.json] == ["ALPHA-001"]

    def test_mhc_admin_reaches_any_subsidiary(self, client, sub_a, sub_b, item_a, item_b, mhc_headers):
        for subsidiary, sku in ((sub_a, "ALPHA-001"), (sub_b, "BETA-001")):
            resp = client.get(f"/api/subsidiaries/{subsidiary.id}/inventory", headers=mhc_headers)
            assert resp.status_code == 200
            assert [i["sku"] for i in resp.json] == [sku]


# =============================================================================
# MHC-ONLY ENDPOINTS (403)
# =============================================================================


class TestMhcOnlyEndpoints:

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/subsidiaries"),
            ("POST", "/api/subsidiaries"),
            ("GET", "/api/sales"),
            ("GET", "/api/users"),
            ("GET", "/api/inventory/total"),
            ("GET", "/api/reports/sales"),
            ("GET", "/api/config/database"),
            ("POST", "/api/register"),
        ],
    )
    def test_subsidiary_admin_forbidden(self, client, admin_a_headers, method, path):
        resp = getattr(client, method.lower())(path, headers=admin_a_headers)
        assert resp.status_code == 403, f"{method} {path} returned {resp.status_code}"

    def test_mhc_admin_lists_subsidiaries(self, client, sub_a, sub_b, mhc_headers):
        resp = client.get("/api/subsidiaries", headers=mhc_headers)
        assert resp.status_code == 200
        assert {s["taxId"] for s in resp.json} == {"TAX-A-001", "TAX-B-001"}


# =============================================================================
# SESSIONS
# =============================================================================


class TestSessions:

    def test_login_sets_cookie_and_current_user(self, client, staff_a):
        resp = client.post("/api/login", json={"username": "staff_a", "password": TEST_PASSWORD})
        assert resp.status_code == 200
        assert resp.json["user"]["username"] == "staff_a"
        assert "password" not in resp.json["user"]
        assert "hub_session=" in resp.headers["Set-Cookie"]
        assert "HttpOnly" in resp.headers["Set-Cookie"]

        # The cookie alone authenticates
        me = client.get("/api/user")
        assert me.status_code == 200
        assert me.json["role"] == "staff"
        assert me.json["subsidiaryId"] == staff_a.subsidiary_id

    def test_login_wrong_password(self, client, staff_a):
        resp = client.post("/api/login", json={"username": "staff_a", "password": "wrong-pass"})
        assert resp.status_code == 401
        assert resp.json["message"] == "Invalid username or password"

    def test_login_unknown_user(self, client, db_session):
        resp = client.post("/api/login", json={"username": "ghost", "password": TEST_PASSWORD})
        assert resp.status_code == 401

    def test_login_missing_fields(self, client, db_session):
        resp = client.post("/api/login", json={"username": "staff_a"})
        assert resp.status_code == 400

    def test_login_non_object_body(self, client, db_session):
        resp = client.post("/api/login", json=["admin", "admin123"])
        assert resp.status_code == 400
        assert resp.json == {"message": "Invalid JSON payload"}

    @pytest.mark.parametrize(
        "body",
        [
            {"username": 42, "password": TEST_PASSWORD},
            {"username": "staff_a", "password": ["secret"]},
            {"username": "   ", "password": TEST_PASSWORD},
        ],
    )
    def test_login_non_string_credentials(self, client, staff_a, body):
        resp = client.post("/api/login", json=body)
        assert resp.status_code == 400
        assert resp.json["message"] == "Username and password are required"

    @pytest.mark.parametrize(
        "method,path",
        [
            ("POST", "/api/register"),
            ("POST", "/api/subsidiaries"),
            ("POST", "/api/config/database"),
        ],
    )
    def test_non_object_body_on_mhc_endpoints(self, client, mhc_headers, method, path):
        resp = getattr(client, method.lower())(path, json="mysql", headers=mhc_headers)
        assert resp.status_code == 400
        assert resp.json == {"message": "Invalid JSON payload"}

    def test_logout_revokes_token(self, app, client, staff_a):
        token = get_auth_token(app, "staff_a")
        headers = auth_headers(token)
        assert client.get("/api/user", headers=headers).status_code == 200

        assert client.post("/api/logout", headers=headers).status_code == 200
        assert client.get("/api/user", headers=headers).status_code == 401

    def test_password_change_revokes_sessions(self, app, client, admin_a, staff_a, admin_a_headers):
        staff_headers = auth_headers(get_auth_token(app, "staff_a"))
        assert client.get("/api/user", headers=staff_headers).status_code == 200

        resp = client.patch(
            f"/api/subsidiaries/{staff_a.subsidiary_id}/users/{staff_a.id}",
            json={"password": "another-secret"},
            headers=admin_a_headers,
        )
        assert resp.status_code == 200

        assert client.get("/api/user", headers=staff_headers).status_code == 401
        assert get_auth_token(app, "staff_a", "another-secret") is not None
