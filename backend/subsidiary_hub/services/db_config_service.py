# Overview: Service-layer operations for the database configuration file exposed to MHC admins.

"""
Database configuration API backing store.

Reads and writes the structured db.config.json through DatabaseSettings.
Changes only take effect after a restart: the engine adapter is chosen
once, at startup.
"""

from __future__ import annotations

from ..persistence import (
    DatabaseConfigError,
    execute_query,
    get_state,
    load_database_settings,
    merge_settings_document,
    read_settings_document,
    save_settings_document,
    settings_from_dict,
)
from . import activity_service


RESTART_NOTE = "Server restart required for changes to take effect"


def get_database_config() -> dict:
    """Configured engine and per-engine connection values, without passwords."""
    state = get_state()
    settings = load_database_settings(state.config_path)
    data = settings.public_dict()
    data["active"] = state.to_dict()
    return data


def update_database_config(payload, *, actor_id: int) -> dict:
    """
    Validate and persist a new engine selection plus optional per-engine
    fields. Fields left out keep their current values; fields the file
    never set keep following the environment.

    Raises:
        DatabaseConfigError: invalid engine or field values
    """
    if not isinstance(payload, dict) or not payload.get("engine"):
        raise DatabaseConfigError("engine is required")

    state = get_state()
    document = merge_settings_document(read_settings_document(state.config_path), payload)
    updated = settings_from_dict(document)
    save_settings_document(state.config_path, document)

    execute_query(
        lambda: activity_service.record_activity(
            user_id=actor_id,
            action=activity_service.UPDATE_DATABASE_CONFIG,
            details=f"Database engine set to {updated.engine.value}",
            commit=True,
        ),
        "Record database config change",
    )

    return {
        "message": "Database configuration updated successfully",
        "note": RESTART_NOTE,
        "engine": updated.engine.value,
    }
