"""
Pytest configuration and shared fixtures.
"""

import pytest
from typing import Any, Dict, List

from jobly.database import Company, SqlAlchemyStore, get_session, init_database
from jobly.logger import StructuredLogger, reset_logger
from jobly.repositories import JobRepository


class RecordingStore:
    """Store double that records every call and returns canned rows."""

    def __init__(self, rows: List[Dict[str, Any]] = None):
        self.rows = rows or []
        self.calls = []

    def execute(self, query, values=()):
        self.calls.append((query, list(values)))
        return list(self.rows)


@pytest.fixture(autouse=True)
def isolated_logger(monkeypatch):
    """Keep the global logger and its env settings out of the way."""
    monkeypatch.delenv("JOBLY_LOG_DIR", raising=False)
    monkeypatch.delenv("JOBLY_LOG_LEVEL", raising=False)
    monkeypatch.delenv("JOBLY_DATABASE_URL", raising=False)
    reset_logger()
    yield
    reset_logger()


@pytest.fixture
def logger() -> StructuredLogger:
    return StructuredLogger(name="jobly.test", level="DEBUG", enable_console=False)


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'test.db'}"


@pytest.fixture
def engine(db_url):
    """Initialized database with two companies."""
    engine = init_database(db_url)
    session = get_session(engine)
    session.add_all([
        Company(handle="c1", name="C1", description="Desc1", num_employees=1),
        Company(handle="c2", name="C2", description="Desc2", num_employees=2),
    ])
    session.commit()
    session.close()
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine, logger) -> SqlAlchemyStore:
    return SqlAlchemyStore(engine, logger=logger)


@pytest.fixture
def repo(store, logger) -> JobRepository:
    return JobRepository(store, logger=logger)


@pytest.fixture
def seeded_repo(repo) -> JobRepository:
    """Repository with three jobs: two with equity, one without."""
    repo.create("j1", salary=100, equity=0.1, company_handle="c1")
    repo.create("j2", salary=200, equity=0.2, company_handle="c1")
    repo.create("j3", salary=300, equity=0, company_handle="c2")
    return repo


@pytest.fixture
def recording_store() -> RecordingStore:
    return RecordingStore()
