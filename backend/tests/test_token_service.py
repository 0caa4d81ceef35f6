import os
import tempfile
import threading
import unittest
from datetime import timedelta

from qrfactory import create_app
from qrfactory.errors import Conflict, Forbidden, Gone, InvalidArgument, NotFound
from qrfactory.extensions import db
from qrfactory.models import AuditEntry, AuthToken
from qrfactory.services import get_services
from qrfactory.services.settings_service import ADMIN_CODE, APP_INSTALL_URL
from qrfactory.services.token_service import clamp_ttl, redact_token
from qrfactory.time_utils import utcnow


class TokenAuthorityTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        db_path = os.path.join(self.tmpdir.name, "tokens.db")
        self.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
            "AUTO_CREATE_DB": True,
            "PUBLIC_BASE_URL": "",
            "DEFAULT_INSTALL_URL": "https://example.com/install",
        })
        self.ctx = self.app.app_context()
        self.ctx.push()
        self.services = get_services()
        self.tokens = self.services.tokens
        self.admin_code = self.services.settings.get(ADMIN_CODE)

    def tearDown(self):
        db.session.remove()
        self.ctx.pop()
        with self.app.app_context():
            db.engine.dispose()
        self.tmpdir.cleanup()

    def _issue(self, token_type="login", ttl=None):
        return self.tokens.issue(self.admin_code, token_type, ttl, actor="admin", request_base="http://localhost/")

    def test_startup_generates_admin_code_and_install_url(self):
        self.assertEqual(len(self.admin_code), 8)
        self.assertTrue(self.admin_code.isalnum())
        self.assertEqual(self.services.settings.get(APP_INSTALL_URL), "https://example.com/install")

    def test_issue_with_wrong_admin_code_is_forbidden(self):
        with self.assertRaises(Forbidden):
            self.tokens.issue("WRONG-CODE", "login")
        self.assertEqual(db.session.query(AuthToken).count(), 0)

    def test_admin_code_checked_before_type(self):
        with self.assertRaises(Forbidden):
            self.tokens.issue("WRONG-CODE", "shutdown")

    def test_issue_rejects_unknown_type(self):
        with self.assertRaises(InvalidArgument):
            self.tokens.issue(self.admin_code, "shutdown")

    def test_issue_returns_link_and_defaults(self):
        issued = self._issue("Logout")
        self.assertEqual(issued["type"], "logout")
        self.assertEqual(issued["ttl_minutes"], 10)
        self.assertTrue(issued["expires_at"].endswith("Z"))
        self.assertEqual(issued["path"], f"/auth.html?token={issued['token']}")
        self.assertEqual(issued["url"], f"http://localhost/auth.html?token={issued['token']}")

        row = db.session.query(AuthToken).filter_by(token=issued["token"]).one()
        self.assertIsNone(row.used_at)
        self.assertEqual(row.created_by, "admin")

    def test_tokens_are_unique(self):
        seen = {self._issue()["token"] for _ in range(20)}
        self.assertEqual(len(seen), 20)

    def test_ttl_is_clamped(self):
        self.assertEqual(clamp_ttl(None), 10)
        self.assertEqual(clamp_ttl(""), 10)
        self.assertEqual(clamp_ttl("abc"), 10)
        self.assertEqual(clamp_ttl(0), 1)
        self.assertEqual(clamp_ttl(-5), 1)
        self.assertEqual(clamp_ttl(99999), 1440)
        self.assertEqual(clamp_ttl("30"), 30)
        self.assertEqual(self._issue(ttl=5000)["ttl_minutes"], 1440)

    def test_consume_once_then_conflict(self):
        issued = self._issue("login")
        result = self.tokens.consume(issued["token"], "device-7")
        self.assertEqual(result, {"ok": True, "action": "login"})

        row = db.session.query(AuthToken).filter_by(token=issued["token"]).one()
        self.assertIsNotNone(row.used_at)
        self.assertEqual(row.used_by, "device-7")

        with self.assertRaises(Conflict):
            self.tokens.consume(issued["token"], "device-8")
        db.session.refresh(row)
        self.assertEqual(row.used_by, "device-7")

    def test_consume_expired_token_is_gone(self):
        issued = self._issue()
        row = db.session.query(AuthToken).filter_by(token=issued["token"]).one()
        row.expires_at = utcnow() - timedelta(seconds=1)
        db.session.commit()

        with self.assertRaises(Gone):
            self.tokens.consume(issued["token"], "device-1")
        db.session.refresh(row)
        self.assertIsNone(row.used_at)

    def test_consume_unknown_token_is_not_found(self):
        with self.assertRaises(NotFound):
            self.tokens.consume("does-not-exist", "device-1")

    def test_consume_requires_token(self):
        with self.assertRaises(InvalidArgument):
            self.tokens.consume("  ", "device-1")

    def test_audit_entries_never_hold_full_token(self):
        issued = self._issue()
        self.tokens.consume(issued["token"], "device-1")

        entries = db.session.query(AuditEntry).filter(
            AuditEntry.action.in_(["ISSUE_TOKEN", "CONSUME_TOKEN"])
        ).all()
        self.assertEqual(len(entries), 2)
        for entry in entries:
            self.assertEqual(entry.code, redact_token(issued["token"]))
            self.assertNotIn(issued["token"], str(entry.detail))

    def test_rotate_with_wrong_code_keeps_old_code(self):
        with self.assertRaises(Forbidden):
            self.tokens.rotate_admin_code("WRONG-CODE", "NEWCODE123")
        self.assertEqual(self.services.settings.get(ADMIN_CODE), self.admin_code)

    def test_rotate_rejects_short_code(self):
        with self.assertRaises(InvalidArgument):
            self.tokens.rotate_admin_code(self.admin_code, "abc")
        self.assertEqual(self.services.settings.get(ADMIN_CODE), self.admin_code)

    def test_rotated_code_with_padding_still_opens_the_gate(self):
        self.tokens.rotate_admin_code(self.admin_code, "secret99 ")
        self.assertEqual(self.services.settings.get(ADMIN_CODE), "secret99")

        self.assertTrue(self.tokens.issue("secret99 ", "login")["token"])
        self.assertTrue(self.tokens.issue("secret99", "login")["token"])

    def test_rotate_length_check_ignores_padding(self):
        with self.assertRaises(InvalidArgument):
            self.tokens.rotate_admin_code(self.admin_code, "  abc   ")

    def test_rotate_switches_the_gate(self):
        self.tokens.rotate_admin_code(self.admin_code, "NEWCODE123", actor="admin")
        with self.assertRaises(Forbidden):
            self.tokens.issue(self.admin_code, "login")
        issued = self.tokens.issue("NEWCODE123", "login")
        self.assertTrue(issued["token"])

        entry = db.session.query(AuditEntry).filter_by(action="ROTATE_ADMIN_CODE").one()
        self.assertNotIn("NEWCODE123", str(entry.detail))

    def test_set_install_url(self):
        url = self.tokens.set_install_url(self.admin_code, " https://apps.example.com/qr ")
        self.assertEqual(url, "https://apps.example.com/qr")
        self.assertEqual(self.tokens.public_info()["app_install_url"], "https://apps.example.com/qr")

        with self.assertRaises(InvalidArgument):
            self.tokens.set_install_url(self.admin_code, "")
        with self.assertRaises(Forbidden):
            self.tokens.set_install_url("nope", "https://evil.example.com")

    def test_public_info_hides_admin_code(self):
        info = self.tokens.public_info()
        self.assertEqual(info, {
            "has_admin_code": True,
            "app_install_url": "https://example.com/install",
        })


class TokenConcurrencyTests(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        db_path = os.path.join(self.tmpdir.name, "concurrency.db")
        self.app = create_app({
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
            "AUTO_CREATE_DB": True,
        })
        with self.app.app_context():
            services = get_services()
            admin_code = services.settings.get(ADMIN_CODE)
            self.token = services.tokens.issue(admin_code, "login")["token"]

    def tearDown(self):
        with self.app.app_context():
            db.session.remove()
            db.engine.dispose()
        self.tmpdir.cleanup()

    def test_concurrent_consume_succeeds_exactly_once(self):
        results = []
        lock = threading.Lock()

        def worker(device):
            with self.app.app_context():
                try:
                    get_services().tokens.consume(self.token, device)
                    with lock:
                        results.append("ok")
                except Exception as exc:
                    with lock:
                        results.append(exc)
                finally:
                    db.session.remove()

        threads = [threading.Thread(target=worker, args=(f"device-{i}",)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(results.count("ok"), 1)
        failures = [r for r in results if r != "ok"]
        self.assertEqual(len(failures), 7)
        for failure in failures:
            self.assertIsInstance(failure, Conflict)

        with self.app.app_context():
            row = db.session.query(AuthToken).filter_by(token=self.token).one()
            self.assertIsNotNone(row.used_at)


if __name__ == "__main__":
    unittest.main()
