# Overview: Pytest coverage for subsidiary management; create, list, update, logo upload and audit entries.

import io

from subsidiary_hub.models import ActivityLog


ACME = {
    "name": "Acme",
    "taxId": "T1",
    "email": "a@x.io",
    "phoneNumber": "5551234567",
    "city": "Porto",
}


class TestCreateSubsidiary:

    def test_create_then_list_then_deactivate(self, client, mhc_headers):
        resp = client.post("/api/subsidiaries", json=ACME, headers=mhc_headers)
        assert resp.status_code == 201
        created = resp.json
        assert created["id"]
        assert created["name"] == "Acme"
        assert created["status"] is True
        assert created["logo"] is None

        listed = client.get("/api/subsidiaries", headers=mhc_headers)
        assert listed.status_code == 200
        assert created["id"] in [s["id"] for s in listed.json]

        patched = client.patch(
            f"/api/subsidiaries/{created['id']}", json={"status": False}, headers=mhc_headers
        )
        assert patched.status_code == 200
        assert patched.json["status"] is False
        assert patched.json["taxId"] == "T1"

    def test_create_records_activity(self, client, db_session, mhc_admin, mhc_headers):
        resp = client.post("/api/subsidiaries", json=ACME, headers=mhc_headers)
        assert resp.status_code == 201

        log = db_session.query(ActivityLog).filter_by(action="CREATE_SUBSIDIARY").one()
        assert log.user_id == mhc_admin.id
        assert log.subsidiary_id == resp.json["id"]
        assert log.details == "Created subsidiary: Acme"

    def test_duplicate_tax_id_conflict(self, client, db_session, mhc_headers):
        assert client.post("/api/subsidiaries", json=ACME, headers=mhc_headers).status_code == 201

        resp = client.post(
            "/api/subsidiaries", json={**ACME, "name": "Acme Two"}, headers=mhc_headers
        )
        assert resp.status_code == 409
        assert resp.json["message"] == "A subsidiary with this tax ID already exists"
        assert db_session.query(ActivityLog).filter_by(action="CREATE_SUBSIDIARY").count() == 1

    def test_missing_required_fields(self, client, mhc_headers):
        resp = client.post("/api/subsidiaries", json={"name": "Acme"}, headers=mhc_headers)
        assert resp.status_code == 400
        assert resp.json["message"].startswith("Missing required fields")

    def test_invalid_email(self, client, mhc_headers):
        resp = client.post(
            "/api/subsidiaries", json={**ACME, "email": "not-an-email"}, headers=mhc_headers
        )
        assert resp.status_code == 400
        assert resp.json["message"] == "Invalid email format"

    def test_unknown_field_rejected(self, client, mhc_headers):
        resp = client.post("/api/subsidiaries", json={**ACME, "id": 99}, headers=mhc_headers)
        assert resp.status_code == 400


class TestLogoUpload:

    def test_multipart_with_png_logo(self, app, client, mhc_headers):
        data = {
            "name": "Logo Co",
            "taxId": "T-LOGO",
            "email": "logo@x.io",
            "phoneNumber": "5551234567",
            "logo": (io.BytesIO(b"\x89PNG\r\n\x1a\nfake"), "brand.png", "image/png"),
        }
        resp = client.post(
            "/api/subsidiaries", data=data, headers=mhc_headers, content_type="multipart/form-data"
        )
        assert resp.status_code == 201
        logo = resp.json["logo"]
        assert logo.startswith("/uploads/")
        assert logo.endswith(".png")

        served = client.get(logo)
        assert served.status_code == 200
        assert served.data.startswith(b"\x89PNG")

        # Also reachable without the /uploads/ prefix
        assert client.get(logo[len("/uploads"):]).status_code == 200

    def test_rejects_non_image_logo(self, client, mhc_headers):
        data = {
            "name": "Logo Co",
            "taxId": "T-LOGO",
            "email": "logo@x.io",
            "phoneNumber": "5551234567",
            "logo": (io.BytesIO(b"MZ"), "payload.exe", "application/octet-stream"),
        }
        resp = client.post(
            "/api/subsidiaries", data=data, headers=mhc_headers, content_type="multipart/form-data"
        )
        assert resp.status_code == 400
        assert resp.json["message"] == "Invalid file type. Only JPEG and PNG are allowed."


class TestGetAndUpdate:

    def test_member_reads_own_subsidiary(self, client, sub_a, staff_a_headers):
        resp = client.get(f"/api/subsidiaries/{sub_a.id}", headers=staff_a_headers)
        assert resp.status_code == 200
        assert resp.json["name"] == "Alpha Retail"

    def test_unknown_subsidiary(self, client, mhc_headers):
        assert client.get("/api/subsidiaries/9999", headers=mhc_headers).status_code == 404
        resp = client.patch("/api/subsidiaries/9999", json={"city": "Faro"}, headers=mhc_headers)
        assert resp.status_code == 404
        assert resp.json["message"] == "Subsidiary not found"

    def test_update_logs_activity(self, client, db_session, sub_a, mhc_headers):
        resp = client.patch(f"/api/subsidiaries/{sub_a.id}", json={"city": "Faro"}, headers=mhc_headers)
        assert resp.status_code == 200
        assert resp.json["city"] == "Faro"
        assert db_session.query(ActivityLog).filter_by(
            action="UPDATE_SUBSIDIARY", subsidiary_id=sub_a.id
        ).count() == 1
