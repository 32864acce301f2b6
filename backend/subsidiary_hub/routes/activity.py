# Overview: Flask API routes for the activity log; read-only, scoped by role.

from flask import Blueprint, g, jsonify

from ..decorators import require_auth
from ..permissions import Action, role_allows
from ..services.activity_service import list_activity_logs

activity_bp = Blueprint("activity", __name__, url_prefix="/api")


@activity_bp.get("/activity-logs")
@require_auth
def activity_logs():
    """mhc_admin sees every entry; everyone else only their subsidiary's."""
    if role_allows(g.role, Action.VIEW_ALL_ACTIVITY):
        logs = list_activity_logs()
    elif g.subsidiary_id is None:
        logs = []
    else:
        logs = list_activity_logs(subsidiary_id=g.subsidiary_id)
    return jsonify([log.to_dict() for log in logs]), 200
