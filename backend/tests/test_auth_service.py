# Overview: Pytest coverage for password hashing, default admin bootstrap and both session stores.

import threading

import pytest

from subsidiary_hub.extensions import db
from subsidiary_hub.models import User
from subsidiary_hub.services import auth_service
from subsidiary_hub.services.auth_service import hash_password, verify_password
from subsidiary_hub.services.session_service import (
    DatabaseSessionStore,
    MemorySessionStore,
    hash_token,
)


class TestPasswordHashing:

    def test_hash_format_and_verify(self, app):
        stored = hash_password("correct horse")
        hashed, _, salt = stored.rpartition(".")
        assert len(bytes.fromhex(salt)) == auth_service.SALT_BYTES
        assert len(bytes.fromhex(hashed)) == auth_service.DERIVED_KEY_BYTES

        assert verify_password("correct horse", stored)
        assert not verify_password("battery staple", stored)

    def test_fresh_salt_per_hash(self, app):
        assert hash_password("same-password") != hash_password("same-password")

    def test_fixed_salt_is_reproducible(self, app):
        salt = bytes(range(16))
        assert hash_password("pw-123456", salt=salt) == hash_password("pw-123456", salt=salt)

    @pytest.mark.parametrize("stored", ["", "no-separator", "zz.zz", ".abcd", "abcd."])
    def test_malformed_stored_value(self, app, stored):
        assert verify_password("anything", stored) is False

    def test_empty_password(self, app):
        assert verify_password("", hash_password("not-empty")) is False


class TestDefaultAdmin:

    def test_created_once(self, db_session):
        assert auth_service.ensure_default_admin() is True
        assert auth_service.ensure_default_admin() is False

        admins = db_session.query(User).filter_by(username="admin").all()
        assert len(admins) == 1
        assert admins[0].role == "mhc_admin"
        assert admins[0].subsidiary_id is None
        assert verify_password("admin123", admins[0].password)

    def test_default_admin_can_log_in(self, client, db_session):
        auth_service.ensure_default_admin()
        resp = client.post("/api/login", json={"username": "admin", "password": "admin123"})
        assert resp.status_code == 200
        assert resp.json["user"]["role"] == "mhc_admin"


class TestDefaultAdminSchedule:

    @pytest.fixture
    def bootstrap_on(self, app, monkeypatch):
        monkeypatch.setitem(app.config, "BOOTSTRAP_DEFAULT_ADMIN", True)
        return app

    def _admin_count(self, session):
        session.expire_all()
        return session.query(User).filter_by(username="admin").count()

    def test_zero_delay_runs_inline(self, bootstrap_on, db_session, monkeypatch):
        monkeypatch.setitem(bootstrap_on.config, "DEFAULT_ADMIN_DELAY_SECONDS", 0)

        assert auth_service.schedule_default_admin(bootstrap_on) is None
        assert self._admin_count(db_session) == 1

    def test_positive_delay_starts_daemon_timer(self, bootstrap_on, db_session, monkeypatch):
        monkeypatch.setitem(bootstrap_on.config, "DEFAULT_ADMIN_DELAY_SECONDS", 60)

        timer = auth_service.schedule_default_admin(bootstrap_on)
        try:
            assert isinstance(timer, threading.Timer)
            assert timer.daemon
            assert timer.is_alive()
            assert self._admin_count(db_session) == 0
        finally:
            timer.cancel()

    def test_disabled(self, app, db_session):
        assert auth_service.schedule_default_admin(app) is None
        assert self._admin_count(db_session) == 0

    def test_skipped_when_database_not_ready(self, bootstrap_on, db_session, monkeypatch):
        monkeypatch.setitem(bootstrap_on.config, "DEFAULT_ADMIN_DELAY_SECONDS", 0)
        monkeypatch.setattr(bootstrap_on.extensions["database_state"], "ready", False)

        assert auth_service.schedule_default_admin(bootstrap_on) is None
        assert self._admin_count(db_session) == 0


@pytest.fixture(params=[DatabaseSessionStore, MemorySessionStore])
def store(request, db_session):
    return request.param()


class TestSessionStores:

    def test_create_validate_revoke(self, store, staff_a):
        token, expires_at = store.create(staff_a.id)
        assert len(token) == 64

        context = store.validate(token)
        assert context.user.id == staff_a.id
        assert context.token_hash == hash_token(token)
        assert context.expires_at == expires_at

        assert store.revoke(token) is True
        assert store.validate(token) is None
        assert store.revoke(token) is False

    def test_unknown_token(self, store, staff_a):
        assert store.validate("0" * 64) is None

    def test_revoke_user_ends_every_session(self, store, staff_a, staff_b):
        first, _ = store.create(staff_a.id)
        second, _ = store.create(staff_a.id)
        other, _ = store.create(staff_b.id)

        assert store.revoke_user(staff_a.id, "test") == 2
        if isinstance(store, DatabaseSessionStore):
            db.session.commit()

        assert store.validate(first) is None
        assert store.validate(second) is None
        assert store.validate(other).user.id == staff_b.id
