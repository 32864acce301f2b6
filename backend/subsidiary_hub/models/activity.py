from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class ActivityLog(db.Model):
    """
    Append-only audit trail of mutating actions.

    subsidiary_id is NULL for MHC-level actions. Rows are never updated or
    deleted.
    """
    __tablename__ = "activity_logs"

    id = db.Column(db.Integer, primary_key=True)
    subsidiary_id = db.Column(db.Integer, db.ForeignKey("subsidiaries.id"), nullable=True, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    action = db.Column(db.String(64), nullable=False)
    details = db.Column(db.Text, nullable=True)
    timestamp = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "subsidiaryId": self.subsidiary_id,
            "userId": self.user_id,
            "action": self.action,
            "details": self.details,
            "timestamp": to_utc_z(self.timestamp),
        }
