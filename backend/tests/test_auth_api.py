"""
Token authority HTTP tests.

Verifies:
- Admin-code gate on issue / rotate / install URL
- Consume status codes: 200 once, then 409; 404 unknown; 410 expired
- /api/auth/public never exposes the admin code
"""

from datetime import timedelta

import pytest

from qrfactory.extensions import db
from qrfactory.models import AuthToken
from qrfactory.time_utils import utcnow


def _issue(client, admin_code, token_type="login", **extra):
    return client.post("/api/auth/issue", json={"admin_code": admin_code, "type": token_type, **extra})


class TestIssue:

    @pytest.mark.tokens
    def test_issue_returns_token_and_link(self, client, admin_code):
        resp = _issue(client, admin_code, ttl_minutes=5)
        assert resp.status_code == 201
        data = resp.get_json()
        assert data["ok"] is True
        assert data["type"] == "login"
        assert data["ttl_minutes"] == 5
        assert data["url"] == f"http://localhost/auth.html?token={data['token']}"

    def test_wrong_admin_code_is_forbidden(self, client):
        resp = _issue(client, "WRONG-CODE")
        assert resp.status_code == 403
        body = resp.get_json()
        assert body["kind"] == "Forbidden"
        assert "WRONG-CODE" not in body["error"]

    def test_unknown_type_is_bad_request(self, client, admin_code):
        resp = _issue(client, admin_code, "reboot")
        assert resp.status_code == 400
        assert resp.get_json()["kind"] == "InvalidArgument"

    def test_ttl_is_clamped(self, client, admin_code):
        assert _issue(client, admin_code, ttl_minutes=0).get_json()["ttl_minutes"] == 1
        assert _issue(client, admin_code, ttl_minutes=100000).get_json()["ttl_minutes"] == 1440


class TestConsume:

    @pytest.mark.tokens
    def test_consume_once_then_conflict(self, client, admin_code):
        token = _issue(client, admin_code, "logout").get_json()["token"]

        first = client.post("/api/auth/consume", json={"token": token, "device_id": "tab-1"})
        assert first.status_code == 200
        assert first.get_json() == {"ok": True, "action": "logout"}

        second = client.post("/api/auth/consume", json={"token": token, "device_id": "tab-2"})
        assert second.status_code == 409
        assert second.get_json()["kind"] == "Conflict"

    def test_unknown_token(self, client):
        resp = client.post("/api/auth/consume", json={"token": "nope", "device_id": "tab-1"})
        assert resp.status_code == 404

    def test_missing_token(self, client):
        resp = client.post("/api/auth/consume", json={"device_id": "tab-1"})
        assert resp.status_code == 400

    def test_expired_token_is_gone(self, client, app, admin_code):
        token = _issue(client, admin_code).get_json()["token"]
        with app.app_context():
            row = db.session.query(AuthToken).filter_by(token=token).one()
            row.expires_at = utcnow() - timedelta(minutes=1)
            db.session.commit()

        resp = client.post("/api/auth/consume", json={"token": token, "device_id": "tab-1"})
        assert resp.status_code == 410
        assert resp.get_json()["kind"] == "Gone"


class TestAdminSettings:

    def test_public_info(self, client, admin_code):
        data = client.get("/api/auth/public").get_json()
        assert data == {"has_admin_code": True, "app_install_url": "https://example.com/install"}
        assert admin_code not in str(data)

    def test_rotate_admin_code(self, client, admin_code):
        resp = client.post("/api/auth/setAdminCode", json={"admin_code": admin_code, "new_admin_code": "ROTATED-1"})
        assert resp.get_json() == {"ok": True}

        assert _issue(client, admin_code).status_code == 403
        assert _issue(client, "ROTATED-1").status_code == 201

    def test_rotate_with_wrong_code(self, client, admin_code):
        resp = client.post("/api/auth/setAdminCode", json={"admin_code": "bad", "new_admin_code": "ROTATED-1"})
        assert resp.status_code == 403
        assert _issue(client, admin_code).status_code == 201

    def test_rotate_to_short_code(self, client, admin_code):
        resp = client.post("/api/auth/setAdminCode", json={"admin_code": admin_code, "new_admin_code": "123"})
        assert resp.status_code == 400

    def test_set_install_url(self, client, admin_code):
        resp = client.post("/api/auth/setInstallUrl", json={"admin_code": admin_code, "url": "https://get.example.com"})
        assert resp.get_json() == {"ok": True, "app_install_url": "https://get.example.com"}
        assert client.get("/api/auth/public").get_json()["app_install_url"] == "https://get.example.com"

    def test_set_install_url_requires_admin_code(self, client):
        resp = client.post("/api/auth/setInstallUrl", json={"admin_code": "", "url": "https://x.example.com"})
        assert resp.status_code == 403


class TestSystem:

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["ok"] is True
        assert data["checks"]["database"]["status"] == "healthy"

    def test_version(self, client):
        data = client.get("/version").get_json()
        assert "api_version" in data
        assert data["server_time"].endswith("Z")

    def test_unknown_route_is_json_not_found(self, client):
        resp = client.get("/api/nothing-here")
        assert resp.status_code == 404
        assert resp.get_json()["kind"] == "NotFound"


    def test_wrong_method_is_invalid_argument(self, client):
        resp = client.get("/api/auth/consume")
        assert resp.status_code == 405
        assert resp.get_json()["kind"] == "InvalidArgument"

    def test_aborted_server_error_is_storage_failure(self, app, client):
        from flask import abort

        @app.get("/boom")
        def boom():
            abort(503)

        resp = client.get("/boom")
        assert resp.status_code == 503
        assert resp.get_json()["kind"] == "StorageFailure"
