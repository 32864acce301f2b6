# Overview: Service-layer operations for session; encapsulates session storage and validation.

"""
Session Token Management Service

Sessions are server-side records keyed by the SHA-256 of a random token.
The plaintext token travels in an HttpOnly cookie (or an Authorization:
Bearer header for API clients) and is never stored.

Two stores share one interface, picked by SESSION_STORE:
- "database": session_tokens table, survives restarts
- "memory": in-process dict, for single-process deployments and
  development

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- 24-hour absolute timeout (SESSION_ABSOLUTE_TIMEOUT)
- 8-hour idle timeout (SESSION_IDLE_TIMEOUT)
- Revocable on logout and when a user is deleted
"""

from __future__ import annotations

import hashlib
import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User
from ..persistence import execute_query, get_adapter
from ..time_utils import utcnow


# Configuration constants
SESSION_ABSOLUTE_TIMEOUT = timedelta(hours=24)  # Maximum session length
SESSION_IDLE_TIMEOUT = timedelta(hours=8)        # Activity timeout


@dataclass
class SessionContext:
    """Validated session: the user plus the session timestamps."""
    user: User
    token_hash: str
    expires_at: datetime


def generate_token() -> str:
    """
    Generate cryptographically secure random token.

    Returns 64-character hex string (32 bytes of entropy).
    """
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    Hash token for storage using SHA-256.

    Tokens are already high-entropy, so a fast hash is sufficient.
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


class DatabaseSessionStore:
    name = "database"

    def create(self, user_id: int) -> tuple[str, datetime]:
        plaintext_token = generate_token()
        now = utcnow()
        expires_at = now + SESSION_ABSOLUTE_TIMEOUT

        def _op():
            get_adapter().insert_row(SessionToken, {
                "user_id": user_id,
                "token_hash": hash_token(plaintext_token),
                "created_at": now,
                "last_used_at": now,
                "expires_at": expires_at,
                "is_revoked": False,
            })
            db.session.commit()

        execute_query(_op, "Create session")
        return plaintext_token, expires_at

    def validate(self, token: str) -> SessionContext | None:
        token_hash = hash_token(token)

        def _op():
            now = utcnow()
            session = db.session.query(SessionToken).filter_by(
                token_hash=token_hash,
                is_revoked=False,
            ).first()
            if not session:
                return None

            if session.expires_at < now:
                return None

            if now - session.last_used_at > SESSION_IDLE_TIMEOUT:
                _revoke(session, now, "Idle timeout")
                db.session.commit()
                return None

            user = db.session.get(User, session.user_id)
            if not user:
                _revoke(session, now, "User deleted")
                db.session.commit()
                return None

            session.last_used_at = now
            db.session.commit()
            return SessionContext(user=user, token_hash=token_hash, expires_at=session.expires_at)

        return execute_query(_op, "Validate session")

    def revoke(self, token: str, reason: str = "User logout") -> bool:
        token_hash = hash_token(token)

        def _op():
            session = db.session.query(SessionToken).filter_by(
                token_hash=token_hash,
                is_revoked=False,
            ).first()
            if not session:
                return False
            _revoke(session, utcnow(), reason)
            db.session.commit()
            return True

        return execute_query(_op, "Revoke session")

    def revoke_user(self, user_id: int, reason: str) -> int:
        """Revoke every open session of a user. Caller commits."""
        now = utcnow()
        sessions = db.session.query(SessionToken).filter_by(user_id=user_id, is_revoked=False).all()
        for session in sessions:
            _revoke(session, now, reason)
        return len(sessions)

    def purge_user(self, user_id: int) -> None:
        """Delete a user's session rows ahead of the user row. Caller commits."""
        db.session.query(SessionToken).filter_by(user_id=user_id).delete()


def _revoke(session: SessionToken, now: datetime, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = now
    session.revoked_reason = reason


@dataclass
class _MemoryEntry:
    user_id: int
    created_at: datetime
    last_used_at: datetime
    expires_at: datetime


class MemorySessionStore:
    """In-process session store; contents are lost on restart."""
    name = "memory"

    def __init__(self):
        self._entries: dict[str, _MemoryEntry] = {}
        self._lock = threading.Lock()

    def create(self, user_id: int) -> tuple[str, datetime]:
        plaintext_token = generate_token()
        now = utcnow()
        entry = _MemoryEntry(
            user_id=user_id,
            created_at=now,
            last_used_at=now,
            expires_at=now + SESSION_ABSOLUTE_TIMEOUT,
        )
        with self._lock:
            self._prune(now)
            self._entries[hash_token(plaintext_token)] = entry
        return plaintext_token, entry.expires_at

    def validate(self, token: str) -> SessionContext | None:
        token_hash = hash_token(token)
        now = utcnow()
        with self._lock:
            entry = self._entries.get(token_hash)
            if not entry:
                return None
            if entry.expires_at < now or now - entry.last_used_at > SESSION_IDLE_TIMEOUT:
                del self._entries[token_hash]
                return None
            entry.last_used_at = now
            user_id = entry.user_id

        user = execute_query(lambda: db.session.get(User, user_id), "Load session user")
        if not user:
            self.revoke(token)
            return None
        return SessionContext(user=user, token_hash=token_hash, expires_at=entry.expires_at)

    def revoke(self, token: str, reason: str = "User logout") -> bool:
        with self._lock:
            return self._entries.pop(hash_token(token), None) is not None

    def revoke_user(self, user_id: int, reason: str) -> int:
        with self._lock:
            doomed = [h for h, e in self._entries.items() if e.user_id == user_id]
            for token_hash in doomed:
                del self._entries[token_hash]
        return len(doomed)

    def purge_user(self, user_id: int) -> None:
        self.revoke_user(user_id, "User deleted")

    def _prune(self, now: datetime) -> None:
        expired = [h for h, e in self._entries.items() if e.expires_at < now]
        for token_hash in expired:
            del self._entries[token_hash]


STORE_KEY = "session_store"


def init_session_store(app) -> None:
    kind = app.config.get("SESSION_STORE", "database")
    if kind == "memory":
        app.extensions[STORE_KEY] = MemorySessionStore()
    elif kind == "database":
        app.extensions[STORE_KEY] = DatabaseSessionStore()
    else:
        raise ValueError(f"Unsupported SESSION_STORE: {kind}")


def get_store():
    return current_app.extensions[STORE_KEY]


def create_session(user_id: int) -> tuple[str, datetime]:
    """Returns (plaintext_token, expires_at)."""
    return get_store().create(user_id)


def validate_session(token: str) -> SessionContext | None:
    return get_store().validate(token)


def revoke_session(token: str, reason: str = "User logout") -> bool:
    return get_store().revoke(token, reason)


def revoke_all_user_sessions(user_id: int, reason: str = "Revoke all sessions") -> int:
    return get_store().revoke_user(user_id, reason)
