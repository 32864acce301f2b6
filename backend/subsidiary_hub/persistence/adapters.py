"""
Engine adapters.

One adapter per relational engine, selected once at startup. The storage
services never branch on the engine themselves; they call the adapter for
the few statements whose form differs between engines:

- PostgreSQL and SQLite support INSERT/UPDATE ... RETURNING, so a write
  and the read-back of the written row is one statement.
- MySQL has no RETURNING; the adapter writes, then selects the row by its
  primary key inside the same transaction.
"""

from __future__ import annotations

from urllib.parse import quote_plus

from sqlalchemy import insert, update

from ..extensions import db
from .settings import DatabaseConfigError, DatabaseSettings, EngineKind


class EngineAdapter:
    kind: EngineKind
    supports_returning: bool = False

    def is_engine(self, kind: EngineKind | str) -> bool:
        return self.kind == EngineKind(kind)

    def build_uri(self, settings: DatabaseSettings, database_url: str | None = None) -> str:
        raise NotImplementedError

    def engine_options(self) -> dict:
        return {"pool_pre_ping": True}

    def insert_row(self, model, values: dict):
        """Insert one row and return it as a mapped instance."""
        raise NotImplementedError

    def update_row(self, model, row_id: int, values: dict):
        """Update one row by primary key; return the updated instance or None."""
        raise NotImplementedError

    def lock_for_update(self, query):
        """
        Apply row-level locking for critical operations.

        SQLite has no row locks; its writes already serialize on the file.
        """
        if self.is_engine(EngineKind.SQLITE):
            return query
        return query.with_for_update()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} kind={self.kind.value}>"


class ReturningAdapter(EngineAdapter):
    """Engines with INSERT/UPDATE ... RETURNING."""
    supports_returning = True

    def insert_row(self, model, values: dict):
        stmt = insert(model).values(**values).returning(model)
        return db.session.scalars(stmt).one()

    def update_row(self, model, row_id: int, values: dict):
        if not values:
            return db.session.get(model, row_id)
        stmt = (
            update(model)
            .where(model.id == row_id)
            .values(**values)
            .returning(model)
            .execution_options(populate_existing=True)
        )
        return db.session.scalars(stmt).one_or_none()


class FetchAfterWriteAdapter(EngineAdapter):
    """Engines without RETURNING: write, then read back by primary key."""
    supports_returning = False

    def insert_row(self, model, values: dict):
        result = db.session.execute(insert(model.__table__).values(**values))
        row_id = result.inserted_primary_key[0]
        return db.session.get(model, row_id, populate_existing=True)

    def update_row(self, model, row_id: int, values: dict):
        if values:
            db.session.execute(
                update(model.__table__).where(model.__table__.c.id == row_id).values(**values)
            )
        return db.session.get(model, row_id, populate_existing=True)


class PostgresAdapter(ReturningAdapter):
    kind = EngineKind.POSTGRESQL

    def build_uri(self, settings: DatabaseSettings, database_url: str | None = None) -> str:
        if database_url:
            # Some hosts still hand out the legacy "postgres://" scheme
            if database_url.startswith("postgres://"):
                database_url = "postgresql://" + database_url[len("postgres://"):]
            return database_url

        pg = settings.postgresql
        if not pg.host or not pg.database:
            raise DatabaseConfigError(
                "DATABASE_URL or postgresql host/database must be set for PostgreSQL connection."
            )
        credentials = quote_plus(pg.user or "postgres")
        if pg.password:
            credentials += ":" + quote_plus(pg.password)
        return f"postgresql+psycopg2://{credentials}@{pg.host}:{pg.port or 5432}/{pg.database}"

    def engine_options(self) -> dict:
        return {"pool_pre_ping": True, "pool_size": 10, "max_overflow": 5}


class MySQLAdapter(FetchAfterWriteAdapter):
    kind = EngineKind.MYSQL

    def build_uri(self, settings: DatabaseSettings, database_url: str | None = None) -> str:
        if database_url and database_url.startswith("mysql"):
            return database_url

        my = settings.mysql
        if not my.host or not my.database:
            raise DatabaseConfigError("mysql host/database must be set for MySQL connection.")
        credentials = quote_plus(my.user or "root")
        if my.password:
            credentials += ":" + quote_plus(my.password)
        return f"mysql+pymysql://{credentials}@{my.host}:{my.port or 3306}/{my.database}?charset=utf8mb4"

    def engine_options(self) -> dict:
        # Connection limit of 10 with keep-alive style recycling
        return {"pool_pre_ping": True, "pool_size": 10, "max_overflow": 0, "pool_recycle": 280}


class SQLiteAdapter(ReturningAdapter):
    """Local development and test engine."""
    kind = EngineKind.SQLITE

    def build_uri(self, settings: DatabaseSettings, database_url: str | None = None) -> str:
        if database_url and database_url.startswith("sqlite"):
            return database_url
        path = settings.sqlite.database
        if not path:
            raise DatabaseConfigError("sqlite database path must be set for SQLite connection.")
        if path == ":memory:":
            return "sqlite://"
        return f"sqlite:///{path}"

    def engine_options(self) -> dict:
        return {}


_ADAPTERS = {
    EngineKind.POSTGRESQL: PostgresAdapter,
    EngineKind.MYSQL: MySQLAdapter,
    EngineKind.SQLITE: SQLiteAdapter,
}


def adapter_for(kind: EngineKind | str) -> EngineAdapter:
    kind = EngineKind(kind)
    return _ADAPTERS[kind]()
