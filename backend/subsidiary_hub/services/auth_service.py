# Overview: Service-layer operations for auth; password hashing, login and default admin bootstrap.

"""
Authentication Service

Passwords are stored as "<hex derived key>.<hex salt>":
- a fresh 16-byte random salt per password
- bcrypt-pbkdf (bcrypt.kdf) as the slow key derivation function
- verification re-derives with the stored salt and compares in constant
  time (hmac.compare_digest)

The default admin ("admin", role mhc_admin, no subsidiary) is created on
startup when missing. Creation is idempotent.
"""

from __future__ import annotations

import hmac
import logging
import secrets
import threading

import bcrypt
from flask import Flask, current_app, has_app_context
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import User
from ..permissions import Role
from ..persistence import execute_query, get_adapter


logger = logging.getLogger(__name__)

SALT_BYTES = 16
DERIVED_KEY_BYTES = 32
DEFAULT_KDF_ROUNDS = 64
SEPARATOR = "."

DEFAULT_ADMIN_USERNAME = "admin"
DEFAULT_ADMIN_PASSWORD = "admin123"

MIN_PASSWORD_LENGTH = 6


class PasswordValidationError(Exception):
    """Raised when password doesn't meet requirements."""
    pass


def validate_password(password) -> None:
    if not isinstance(password, str) or not password:
        raise PasswordValidationError("Password is required")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")


def _kdf_rounds() -> int:
    if has_app_context():
        return int(current_app.config.get("PASSWORD_KDF_ROUNDS", DEFAULT_KDF_ROUNDS))
    return DEFAULT_KDF_ROUNDS


def _derive(password: str, salt: bytes, rounds: int) -> bytes:
    # Rounds below bcrypt's warning threshold are only configured by the test suite
    return bcrypt.kdf(
        password=password.encode("utf-8"),
        salt=salt,
        desired_key_bytes=DERIVED_KEY_BYTES,
        rounds=rounds,
        ignore_few_rounds=True,
    )


def hash_password(password: str, salt: bytes | None = None) -> str:
    """
    Derive a storable hash for password.

    salt is normally generated here; passing one is only useful to
    reproduce a known hash.
    """
    if salt is None:
        salt = secrets.token_bytes(SALT_BYTES)
    derived = _derive(password, salt, _kdf_rounds())
    return f"{derived.hex()}{SEPARATOR}{salt.hex()}"


def verify_password(password: str, stored: str) -> bool:
    """
    Verify password against a stored "<hash>.<salt>" value.

    Returns False for malformed stored values instead of raising.
    """
    if not password or not stored or SEPARATOR not in stored:
        return False

    hashed_hex, _, salt_hex = stored.rpartition(SEPARATOR)
    try:
        expected = bytes.fromhex(hashed_hex)
        salt = bytes.fromhex(salt_hex)
    except ValueError:
        return False
    if not expected or not salt:
        return False

    derived = _derive(password, salt, _kdf_rounds())
    return hmac.compare_digest(derived, expected)


def authenticate(username: str, password: str) -> User | None:
    """
    Return the User when username/password match, None otherwise.

    Unknown usernames still pay for one key derivation so response time
    does not reveal which usernames exist.
    """
    user = execute_query(
        lambda: db.session.query(User).filter_by(username=username).first(),
        "Load user",
    )
    if not user:
        verify_password(password, _DUMMY_HASH)
        return None
    if verify_password(password, user.password):
        return user
    return None


# Fixed decoy for the unknown-user path
_DUMMY_HASH = "00" * DERIVED_KEY_BYTES + SEPARATOR + "00" * SALT_BYTES


def ensure_default_admin() -> bool:
    """
    Create the default admin if no user named "admin" exists.

    Returns True when the user was created. Safe to call repeatedly and
    concurrently: a lost race on the unique username is treated as "exists".
    """
    def _op():
        existing = db.session.query(User).filter_by(username=DEFAULT_ADMIN_USERNAME).first()
        if existing:
            return False

        try:
            get_adapter().insert_row(User, {
                "username": DEFAULT_ADMIN_USERNAME,
                "password": hash_password(DEFAULT_ADMIN_PASSWORD),
                "role": Role.MHC_ADMIN.value,
                "subsidiary_id": None,
            })
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            return False

        logger.info("Default admin user created successfully")
        return True

    return execute_query(_op, "Ensure default admin")


def schedule_default_admin(app: Flask) -> threading.Timer | None:
    """
    Run ensure_default_admin once the app is up.

    DEFAULT_ADMIN_DELAY_SECONDS <= 0 runs inline; otherwise a daemon timer
    fires after the delay. Skipped when the database never became ready.
    """
    if not app.config.get("BOOTSTRAP_DEFAULT_ADMIN", True):
        return None

    state = app.extensions["database_state"]
    if not state.ready:
        app.logger.warning("Skipping default admin bootstrap: database not ready")
        return None

    def _run():
        with app.app_context():
            try:
                ensure_default_admin()
            except Exception:
                app.logger.exception("Error ensuring default admin")

    delay = float(app.config.get("DEFAULT_ADMIN_DELAY_SECONDS", 0))
    if delay <= 0:
        _run()
        return None

    timer = threading.Timer(delay, _run)
    timer.daemon = True
    timer.start()
    return timer
