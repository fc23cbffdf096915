"""Root test configuration: shared database fixtures and cleanup of runtime artifacts"""

from pathlib import Path

import pytest
from sqlmodel import SQLModel, Session

from slugkeeper.core.models import OwnerRef
from slugkeeper.crud.database import make_engine


_PROJECT_ROOT = Path(__file__).parent.parent

_CLEANUP_FILES = ["slugkeeper.db", "test.db"]


@pytest.fixture(scope="session", autouse=True)
def cleanup_artifacts():
    """Remove DB files created during the test session."""
    yield
    for name in _CLEANUP_FILES:
        p = _PROJECT_ROOT / name
        if p.exists():
            p.unlink()


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine with all tables created."""
    engine = make_engine("sqlite://")
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    """Fresh session per test; changes are not committed."""
    with Session(engine) as s:
        yield s


@pytest.fixture(name="ref")
def ref_fixture():
    """Reference to a User owner with id 1."""
    return OwnerRef("User", 1)
