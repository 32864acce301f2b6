# Overview: Service-layer operations for the activity log; append-only audit trail.

"""
Activity log invariants:

- Append-only: rows are inserted, never updated or deleted.
- Entries for a mutation are written in the same DB transaction as the
  mutation they describe (callers commit).
- subsidiary_id is None for MHC-level actions.
"""

from __future__ import annotations

from ..extensions import db
from ..models import ActivityLog
from ..persistence import execute_query, get_adapter
from ..time_utils import utcnow


CREATE_SUBSIDIARY = "CREATE_SUBSIDIARY"
UPDATE_SUBSIDIARY = "UPDATE_SUBSIDIARY"
CREATE_INVENTORY = "CREATE_INVENTORY"
UPDATE_INVENTORY = "UPDATE_INVENTORY"
DELETE_INVENTORY = "DELETE_INVENTORY"
CREATE_SALE = "CREATE_SALE"
CREATE_USER = "CREATE_USER"
UPDATE_USER = "UPDATE_USER"
DELETE_USER = "DELETE_USER"
UPDATE_DATABASE_CONFIG = "UPDATE_DATABASE_CONFIG"


def record_activity(
    *,
    user_id: int,
    action: str,
    details: str | None = None,
    subsidiary_id: int | None = None,
    commit: bool = False,
) -> ActivityLog:
    log = get_adapter().insert_row(ActivityLog, {
        "user_id": user_id,
        "action": action,
        "details": details,
        "subsidiary_id": subsidiary_id,
        "timestamp": utcnow(),
    })
    if commit:
        db.session.commit()
    return log


def list_activity_logs(subsidiary_id: int | None = None) -> list[ActivityLog]:
    def _op():
        query = db.session.query(ActivityLog)
        if subsidiary_id is not None:
            query = query.filter(ActivityLog.subsidiary_id == subsidiary_id)
        return query.order_by(ActivityLog.timestamp.desc(), ActivityLog.id.desc()).all()

    return execute_query(_op, "List activity logs")
