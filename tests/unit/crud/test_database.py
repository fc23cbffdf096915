"""Unit tests for crud/database.py"""

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, select

from slugkeeper.crud.database import init_db, make_engine
from slugkeeper.crud.tables import Slug


SQLITE_MEM = "sqlite://"


def test_make_engine_returns_engine():
    """make_engine returns an SQLAlchemy Engine instance."""
    assert isinstance(make_engine(SQLITE_MEM), Engine)


def test_make_engine_sqlite_ignores_isolation_level():
    """SQLite engines keep the BEGIN hook instead of a driver isolation level."""
    engine = make_engine(SQLITE_MEM, isolation_level="SERIALIZABLE")
    init_db(engine)
    with Session(engine) as session:
        with session.begin_nested():
            session.add(Slug(owner_type="User", owner_id=1, slug="kept"))
        session.commit()
        assert session.exec(select(Slug.slug)).all() == ["kept"]


def test_init_db_creates_tables():
    """init_db creates the slugs table."""
    engine = make_engine(SQLITE_MEM)
    init_db(engine)
    assert "slugs" in SQLModel.metadata.tables


def test_savepoint_rollback_keeps_outer_work(session):
    """Rolling back a nested transaction leaves earlier work in the session intact."""
    session.add(Slug(owner_type="User", owner_id=1, slug="kept"))
    session.flush()
    nested = session.begin_nested()
    session.add(Slug(owner_type="User", owner_id=2, slug="dropped"))
    session.flush()
    nested.rollback()
    assert session.exec(select(Slug.slug)).all() == ["kept"]
