"""Engine and schema helpers for the slug store"""

from __future__ import annotations

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from slugkeeper.crud import tables  # noqa: F401  registers the slugs table on SQLModel.metadata


def _enable_sqlite_transactions(engine: Engine) -> None:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINTs nest inside a real transaction.

    pysqlite defers BEGIN until the first DML statement, which breaks begin_nested().
    """
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def make_engine(db_url: str, isolation_level: str | None = None) -> Engine:
    """Create an engine; isolation_level is ignored for SQLite, which is serializable already."""
    kwargs = {}
    if db_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
    elif isolation_level:
        kwargs["isolation_level"] = isolation_level
    engine = create_engine(db_url, echo=False, **kwargs)
    if engine.dialect.name == "sqlite":
        _enable_sqlite_transactions(engine)
    return engine


def init_db(engine: Engine) -> None:
    SQLModel.metadata.create_all(engine)
