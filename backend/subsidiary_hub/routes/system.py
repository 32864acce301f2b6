# Overview: System routes; health check and uploaded logo files.

"""
System health and static upload endpoints.

Uploaded logos are recorded as "/uploads/<file>". They are served both at
that path and at "/<file>" (clients may strip the /uploads/ prefix).
"""

import time

from flask import Blueprint, abort, current_app, send_from_directory
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..persistence import get_state
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity with a trivial query.

    Returns dict with status and details.
    """
    state = get_state()
    if not state.ready:
        return {
            "status": "unhealthy",
            "engine": state.engine,
            "error": state.last_error or "Database connection not initialized",
        }

    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "engine": state.engine,
            "latency_ms": round(elapsed_ms, 2),
        }
    except SQLAlchemyError:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "engine": state.engine,
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: database reachable
    - 503: database not initialized or unreachable
    """
    database_health = check_database_health()
    healthy = database_health["status"] == "healthy"

    response = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": to_utc_z(utcnow()),
        "checks": {"database": database_health},
    }
    return response, 200 if healthy else 503


@system_bp.get("/uploads/<path:filename>")
def uploaded_file(filename: str):
    return send_from_directory(current_app.config["UPLOAD_FOLDER"], filename)


@system_bp.get("/<path:filename>")
def uploaded_file_root(filename: str):
    if filename.startswith("api/"):
        abort(404)
    return send_from_directory(current_app.config["UPLOAD_FOLDER"], filename)
