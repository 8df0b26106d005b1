"""Composition root: wire settings, database and service together."""

from __future__ import annotations

import logging

from page_index.adapters.database import IndexDatabase
from page_index.config import Settings
from page_index.service_layer.indexing import IndexingService
from page_index.service_layer.unit_of_work import SqliteUnitOfWork


logger = logging.getLogger(__name__)


def build_database(settings: Settings) -> IndexDatabase:
    return IndexDatabase(settings.database_path, busy_timeout_ms=settings.busy_timeout_ms)


def bootstrap(settings: Settings | None = None, *, create_schema: bool = True) -> IndexingService:
    """Return an IndexingService backed by the configured SQLite database.

    Schema creation is idempotent; pass ``create_schema=False`` when the
    schema is managed elsewhere.
    """
    settings = settings or Settings()
    database = build_database(settings)
    if create_schema:
        database.create_schema()
    logger.debug("Index database ready at %s", database.db_path)
    return IndexingService(
        lambda: SqliteUnitOfWork(database),
        settings,
        read_uow_factory=lambda: SqliteUnitOfWork(database, write=False),
    )
