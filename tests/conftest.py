"""Shared test fixtures and configuration."""

from datetime import datetime, timezone
import logging

import pytest

from page_index.adapters.database import IndexDatabase
from page_index.config import Settings
from page_index.service_layer.indexing import IndexingService
from page_index.service_layer.unit_of_work import SqliteUnitOfWork


SETTINGS_ENV = (
    "DATABASE_PATH",
    "BUSY_TIMEOUT_MS",
    "FRESHNESS_DAYS",
    "MAX_WORD_LENGTH",
    "NORMALIZER",
    "REINDEX_POLICY",
    "LOG_LEVEL",
    "LOG_JSON",
    "TRACE_CONSOLE",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep the developer's environment out of Settings."""
    for key in SETTINGS_ENV:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "index.sqlite"


@pytest.fixture
def settings(db_path):
    return Settings(database_path=str(db_path), log_json=False)


@pytest.fixture
def database(db_path):
    db = IndexDatabase(db_path, busy_timeout_ms=1000)
    db.create_schema()
    return db


@pytest.fixture
def uow_factory(database):
    return lambda: SqliteUnitOfWork(database)


@pytest.fixture
def read_uow_factory(database):
    return lambda: SqliteUnitOfWork(database, write=False)


@pytest.fixture
def service(uow_factory, read_uow_factory, settings):
    return IndexingService(uow_factory, settings, read_uow_factory=read_uow_factory)


@pytest.fixture
def fixed_now():
    return datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """configure_logging swaps root handlers; put pytest's back afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
