"""
Database startup sequence and the uniform query helper.

init_database() runs inside create_app(): it picks the engine adapter once,
binds Flask-SQLAlchemy and probes the connection with a bounded, fixed
backoff retry. Failure leaves the app running but not ready; the app
refuses /api requests with 503 until a restart with a working
configuration. Services reach the adapter through get_adapter().
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass

from flask import Flask, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from .adapters import EngineAdapter, adapter_for
from .settings import DatabaseConfigError, DatabaseSettings, load_database_settings, parse_engine


logger = logging.getLogger(__name__)

STATE_KEY = "database_state"


class StorageError(Exception):
    """Raised when a database operation fails."""
    pass


class DatabaseNotReadyError(StorageError):
    """Raised when the connection was never established."""
    pass


@dataclass
class DatabaseState:
    adapter: EngineAdapter | None = None
    settings: DatabaseSettings | None = None
    config_path: str | None = None
    ready: bool = False
    last_error: str | None = None

    @property
    def engine(self) -> str | None:
        return self.adapter.kind.value if self.adapter else None

    def to_dict(self) -> dict:
        return {
            "engine": self.engine,
            "ready": self.ready,
            "error": self.last_error,
        }


def database_config_path(app: Flask) -> str:
    return app.config.get("DB_CONFIG_PATH") or os.path.join(app.instance_path, "db.config.json")


def connect_with_retry(attempts: int, backoff_seconds: float) -> None:
    """
    Probe the bound engine with SELECT 1.

    Retries a fixed number of times with a fixed sleep between attempts and
    re-raises the last error when every attempt fails.
    """
    last_exc = None
    for attempt in range(1, attempts + 1):
        try:
            with db.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info("Database connection test successful")
            return
        except SQLAlchemyError as exc:
            last_exc = exc
            remaining = attempts - attempt
            if remaining <= 0:
                break
            logger.warning(
                "Connection attempt failed, retrying... (%d attempts remaining)", remaining
            )
            time.sleep(backoff_seconds)
    if last_exc:
        raise last_exc


def init_database(app: Flask) -> DatabaseState:
    state = DatabaseState(config_path=database_config_path(app))
    app.extensions[STATE_KEY] = state

    try:
        settings = load_database_settings(state.config_path)
        if app.config.get("DB_ENGINE"):
            settings = settings.with_engine(parse_engine(app.config["DB_ENGINE"]))
        state.settings = settings
        state.adapter = adapter_for(settings.engine)
        logger.info("Using database engine: %s", settings.engine.value)

        if not app.config.get("SQLALCHEMY_DATABASE_URI"):
            app.config["SQLALCHEMY_DATABASE_URI"] = state.adapter.build_uri(
                settings, database_url=os.environ.get("DATABASE_URL")
            )
            app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", state.adapter.engine_options())
    except DatabaseConfigError as exc:
        state.last_error = str(exc)
        logger.error("Failed to create database connection: %s", exc)
        return state

    db.init_app(app)

    with app.app_context():
        try:
            connect_with_retry(
                attempts=app.config["DB_CONNECT_ATTEMPTS"],
                backoff_seconds=app.config["DB_CONNECT_BACKOFF_SECONDS"],
            )
        except SQLAlchemyError as exc:
            state.last_error = str(exc)
            logger.error("Failed to initialize database: %s", exc)
            return state

    state.ready = True
    logger.info("Database connection established successfully")
    return state


def get_state() -> DatabaseState:
    return current_app.extensions[STATE_KEY]


def get_adapter() -> EngineAdapter:
    state = get_state()
    if state.adapter is None:
        raise DatabaseNotReadyError("Database connection not initialized")
    return state.adapter


def execute_query(operation, description: str = "Database operation"):
    """
    Run a storage operation with uniform error propagation.

    - refuses to run before the connection is established
    - on any failure rolls back the session and logs once
    - SQLAlchemy errors are rethrown as StorageError, domain errors as-is
    """
    if not get_state().ready:
        raise DatabaseNotReadyError("Database connection not initialized")

    try:
        return operation()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("%s failed", description)
        raise StorageError(f"{description} failed") from exc
    except Exception:
        db.session.rollback()
        logger.debug("%s aborted", description, exc_info=True)
        raise
