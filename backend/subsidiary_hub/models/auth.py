from __future__ import annotations

from ..extensions import db


class User(db.Model):
    """
    User accounts for authentication and attribution.

    Roles: mhc_admin (subsidiary_id is NULL), subsidiary_admin and staff
    (subsidiary_id always set). Usernames are globally unique.
    """
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False, unique=True, index=True)

    # "<hex kdf hash>.<hex salt>", see auth_service.hash_password
    password = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(32), nullable=False)
    subsidiary_id = db.Column(db.Integer, db.ForeignKey("subsidiaries.id"), nullable=True, index=True)

    subsidiary = db.relationship("Subsidiary", backref=db.backref("users", lazy=True))

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r} role={self.role}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "role": self.role,
            "subsidiaryId": self.subsidiary_id,
        }


class SessionToken(db.Model):
    """
    Server-side session record for the database session store.

    Only the SHA-256 of the cookie token is stored.
    """
    __tablename__ = "session_tokens"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime, nullable=False)
    last_used_at = db.Column(db.DateTime, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False)
    revoked_at = db.Column(db.DateTime, nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    user = db.relationship("User")
