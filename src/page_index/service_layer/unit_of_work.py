"""Unit of Work for the SQLite index."""

from abc import ABC, abstractmethod
import logging
import sqlite3

from page_index.adapters.database import IndexDatabase
from page_index.adapters.repository import AbstractIndexStore
from page_index.adapters.sqlite_store import SqliteIndexStore
from page_index.domain.errors import StorageUnavailableError


logger = logging.getLogger(__name__)


class AbstractUnitOfWork(ABC):
    """Abstract Unit of Work."""

    store: AbstractIndexStore

    def __enter__(self):
        """Enter transaction context."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit transaction context - rollback unless explicitly committed."""
        if not getattr(self, "_committed", False):
            self.rollback()

    @abstractmethod
    def commit(self):
        """Commit the transaction."""
        raise NotImplementedError

    @abstractmethod
    def rollback(self):
        """Rollback the transaction."""
        raise NotImplementedError


class SqliteUnitOfWork(AbstractUnitOfWork):
    """One SQLite transaction spanning every write of a use case.

    A writing unit of work starts with ``BEGIN IMMEDIATE`` so concurrent
    writers queue on the database lock (bounded by ``busy_timeout``) instead
    of interleaving. With ``write=False`` the transaction is deferred and only
    takes a WAL read snapshot, so readers never wait behind an indexing call.
    Anything not committed is rolled back on exit, including when the block
    raises.
    """

    def __init__(self, database: IndexDatabase, *, write: bool = True) -> None:
        self.database = database
        self.write = write
        self._conn: sqlite3.Connection | None = None
        self._committed = False

    def __enter__(self):
        self._conn = self.database.connect()
        try:
            self._conn.execute("BEGIN IMMEDIATE" if self.write else "BEGIN DEFERRED")
        except sqlite3.Error as exc:
            self._conn.close()
            self._conn = None
            raise StorageUnavailableError(f"Unable to start transaction on {self.database.db_path}: {exc}") from exc
        self.store = SqliteIndexStore(self._conn)
        self._committed = False
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            super().__exit__(exc_type, exc_val, exc_tb)
        finally:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def commit(self):
        if self._conn is None:
            raise StorageUnavailableError("Unit of work is not active")
        try:
            self._conn.commit()
        except sqlite3.Error as exc:
            raise StorageUnavailableError(f"Commit failed on {self.database.db_path}: {exc}") from exc
        self._committed = True

    def rollback(self):
        if self._conn is None:
            return
        try:
            self._conn.rollback()
        except sqlite3.Error as exc:
            logger.warning("Rollback failed on %s: %s", self.database.db_path, exc)
        self._committed = False
