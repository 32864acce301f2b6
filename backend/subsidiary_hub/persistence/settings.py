"""
Typed database configuration record.

The active engine and per-engine connection defaults live in a JSON file
(db.config.json). The file is read and written as a whole document; the
settings API and CLI edit it through DatabaseSettings, never by patching
text.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, replace
from enum import Enum


logger = logging.getLogger(__name__)


class EngineKind(str, Enum):
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    SQLITE = "sqlite"


class DatabaseConfigError(Exception):
    """Raised when the database configuration is invalid or incomplete."""
    pass


@dataclass(frozen=True)
class EngineSettings:
    host: str | None = None
    port: int | None = None
    database: str | None = None
    user: str | None = None
    password: str | None = None

    def public_dict(self) -> dict:
        """Settings without the password, for API responses."""
        return {
            "host": self.host,
            "port": self.port,
            "database": self.database,
            "user": self.user,
        }


def _env_port(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise DatabaseConfigError(f"{name} must be an integer")


def default_postgresql_settings() -> EngineSettings:
    return EngineSettings(
        host=os.environ.get("PGHOST", "localhost"),
        port=_env_port("PGPORT", 5432),
        database=os.environ.get("PGDATABASE", "postgres"),
        user=os.environ.get("PGUSER", "postgres"),
        password=os.environ.get("PGPASSWORD", ""),
    )


def default_mysql_settings() -> EngineSettings:
    return EngineSettings(
        host=os.environ.get("MYSQL_HOST", "localhost"),
        port=_env_port("MYSQL_PORT", 3306),
        database=os.environ.get("MYSQL_DATABASE", "subsidiary_management"),
        user=os.environ.get("MYSQL_USER", "root"),
        password=os.environ.get("MYSQL_PASSWORD", ""),
    )


def default_sqlite_settings() -> EngineSettings:
    return EngineSettings(database="subsidiary_hub.sqlite3")


@dataclass(frozen=True)
class DatabaseSettings:
    engine: EngineKind = EngineKind.POSTGRESQL
    postgresql: EngineSettings = field(default_factory=default_postgresql_settings)
    mysql: EngineSettings = field(default_factory=default_mysql_settings)
    sqlite: EngineSettings = field(default_factory=default_sqlite_settings)

    def for_engine(self, kind: EngineKind | None = None) -> EngineSettings:
        return getattr(self, (kind or self.engine).value)

    def with_engine(self, kind: EngineKind) -> "DatabaseSettings":
        return replace(self, engine=kind)

    def with_engine_settings(self, kind: EngineKind, **changes) -> "DatabaseSettings":
        current = self.for_engine(kind)
        return replace(self, **{kind.value: replace(current, **changes)})

    def public_dict(self) -> dict:
        return {
            "engine": self.engine.value,
            "postgresql": self.postgresql.public_dict(),
            "mysql": self.mysql.public_dict(),
            "sqlite": self.sqlite.public_dict(),
        }


def parse_engine(value) -> EngineKind:
    try:
        return EngineKind(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(f"'{k.value}'" for k in EngineKind)
        raise DatabaseConfigError(f"Invalid database engine. Must be one of {allowed}")


def _coerce_engine_settings(raw, defaults: EngineSettings, section: str) -> EngineSettings:
    if raw is None:
        return defaults
    if not isinstance(raw, dict):
        raise DatabaseConfigError(f"'{section}' must be an object")

    unknown = set(raw) - {"host", "port", "database", "user", "password"}
    if unknown:
        raise DatabaseConfigError(f"Unknown fields in '{section}': {', '.join(sorted(unknown))}")

    changes = {}
    for key in ("host", "database", "user", "password"):
        if key in raw and raw[key] is not None:
            changes[key] = str(raw[key])
    if "port" in raw and raw["port"] is not None:
        try:
            changes["port"] = int(raw["port"])
        except (TypeError, ValueError):
            raise DatabaseConfigError(f"'{section}.port' must be an integer")
        if not 0 < changes["port"] < 65536:
            raise DatabaseConfigError(f"'{section}.port' is out of range")

    return replace(defaults, **changes)


def settings_from_dict(data: dict, base: DatabaseSettings | None = None) -> DatabaseSettings:
    """Build settings from a parsed document, filling gaps from base (or defaults)."""
    if not isinstance(data, dict):
        raise DatabaseConfigError("Database configuration must be an object")

    base = base or DatabaseSettings()
    engine = parse_engine(data["engine"]) if data.get("engine") is not None else base.engine

    return DatabaseSettings(
        engine=engine,
        postgresql=_coerce_engine_settings(data.get("postgresql"), base.postgresql, "postgresql"),
        mysql=_coerce_engine_settings(data.get("mysql"), base.mysql, "mysql"),
        sqlite=_coerce_engine_settings(data.get("sqlite"), base.sqlite, "sqlite"),
    )


def read_settings_document(path: str) -> dict:
    """The stored document as written, or {} when the file does not exist."""
    if not os.path.exists(path):
        return {}

    with open(path, "r", encoding="utf-8") as fh:
        try:
            document = json.load(fh)
        except json.JSONDecodeError as exc:
            raise DatabaseConfigError(f"Database config {path} is not valid JSON: {exc}")

    if not isinstance(document, dict):
        raise DatabaseConfigError(f"Database config {path} must hold a JSON object")
    return document


def load_database_settings(path: str) -> DatabaseSettings:
    """
    Load settings from path. A missing file yields defaults
    (PostgreSQL, connection values from the environment). Fields the file
    leaves out also fall back to the environment.
    """
    if not os.path.exists(path):
        logger.info("Database config %s not found, using defaults", path)
    return settings_from_dict(read_settings_document(path))


def _stored_section(raw, section: str) -> dict:
    values = asdict(_coerce_engine_settings(raw, EngineSettings(), section))
    return {key: value for key, value in values.items() if value is not None}


def merge_settings_document(document: dict, changes: dict) -> dict:
    """
    Overlay changes onto a stored document.

    Only keys already in the document or sent in changes are kept, so
    environment defaults (passwords included) never reach the file.
    """
    if not isinstance(changes, dict):
        raise DatabaseConfigError("Database configuration must be an object")

    merged = {}
    engine = changes.get("engine") if changes.get("engine") is not None else document.get("engine")
    if engine is not None:
        merged["engine"] = parse_engine(engine).value

    for kind in EngineKind:
        section = _stored_section(document.get(kind.value), kind.value)
        section.update(_stored_section(changes.get(kind.value), kind.value))
        if section:
            merged[kind.value] = section
    return merged


def save_settings_document(path: str, document: dict) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    tmp_path = f"{path}.tmp"
    with open(tmp_path, "w", encoding="utf-8") as fh:
        json.dump(document, fh, indent=2)
        fh.write("\n")
    os.replace(tmp_path, path)
