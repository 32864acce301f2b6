# Overview: Persistence package; engine adapters, typed database settings and startup sequence.

from .settings import (
    DatabaseConfigError,
    DatabaseSettings,
    EngineKind,
    EngineSettings,
    load_database_settings,
    merge_settings_document,
    read_settings_document,
    save_settings_document,
    settings_from_dict,
    parse_engine,
)
from .adapters import EngineAdapter, MySQLAdapter, PostgresAdapter, SQLiteAdapter, adapter_for
from .connection import (
    DatabaseNotReadyError,
    DatabaseState,
    StorageError,
    execute_query,
    get_adapter,
    get_state,
    init_database,
)

__all__ = [
    "DatabaseConfigError",
    "DatabaseSettings",
    "EngineKind",
    "EngineSettings",
    "load_database_settings",
    "merge_settings_document",
    "read_settings_document",
    "save_settings_document",
    "settings_from_dict",
    "parse_engine",
    "EngineAdapter",
    "MySQLAdapter",
    "PostgresAdapter",
    "SQLiteAdapter",
    "adapter_for",
    "DatabaseNotReadyError",
    "DatabaseState",
    "StorageError",
    "execute_query",
    "get_adapter",
    "get_state",
    "init_database",
]
