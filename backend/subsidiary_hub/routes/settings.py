# Overview: Flask API routes for settings; database engine configuration for MHC admins.

from flask import Blueprint, current_app, g, jsonify

from ..decorators import get_json_object, require_mhc_admin, require_permission
from ..permissions import Action
from ..persistence import DatabaseConfigError
from ..services import db_config_service

settings_bp = Blueprint("settings", __name__, url_prefix="/api/config")


@settings_bp.get("/database")
@require_mhc_admin
@require_permission(Action.MANAGE_DATABASE_CONFIG)
def get_database_config():
    """Configured engine plus per-engine host/port/database/user. Passwords are never returned."""
    try:
        return jsonify(db_config_service.get_database_config()), 200
    except (DatabaseConfigError, OSError) as e:
        current_app.logger.exception("Failed to read database configuration")
        return jsonify({"message": "Failed to read database configuration", "error": str(e)}), 500


@settings_bp.post("/database")
@require_mhc_admin
@require_permission(Action.MANAGE_DATABASE_CONFIG)
def update_database_config():
    """
    Persist a new engine selection.

    Body: {"engine": "postgresql"|"mysql"|"sqlite", "postgresql": {...}, "mysql": {...}}
    Takes effect after a restart.
    """
    payload = get_json_object()

    try:
        result = db_config_service.update_database_config(payload, actor_id=g.current_user.id)
    except DatabaseConfigError as e:
        return jsonify({"message": str(e)}), 400
    except OSError as e:
        current_app.logger.exception("Failed to update database configuration")
        return jsonify({"message": "Failed to update database configuration", "error": str(e)}), 500

    current_app.logger.info("Database configuration updated to engine: %s", result["engine"])
    return jsonify(result), 200
