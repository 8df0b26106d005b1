"""SQLite database handle: connection setup and schema bootstrap."""

from __future__ import annotations

import logging
from pathlib import Path
import sqlite3

from page_index.domain.errors import StorageUnavailableError


logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS pages (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    url TEXT NOT NULL UNIQUE,
    title TEXT,
    created_at TEXT,
    updated_at TEXT
);
CREATE TABLE IF NOT EXISTS words (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    stem TEXT NOT NULL UNIQUE
);
CREATE TABLE IF NOT EXISTS locations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    position INTEGER NOT NULL CHECK (position >= 0),
    word_id INTEGER NOT NULL REFERENCES words (id),
    page_id INTEGER NOT NULL REFERENCES pages (id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_locations_page ON locations (page_id);
CREATE INDEX IF NOT EXISTS idx_locations_word ON locations (word_id);
"""

DROP_SQL = """
DROP TABLE IF EXISTS locations;
DROP TABLE IF EXISTS words;
DROP TABLE IF EXISTS pages;
"""


def apply_write_pragmas(
    conn: sqlite3.Connection,
    *,
    cache_size_kb: int = -16384,
    busy_timeout_ms: int | None = 30000,
    temp_store: str = "MEMORY",
) -> None:
    """Apply write-oriented PRAGMAs; WAL lets readers proceed during indexing."""
    if busy_timeout_ms is not None:
        conn.execute(f"PRAGMA busy_timeout = {int(busy_timeout_ms)}")
    conn.execute("PRAGMA journal_mode = WAL")
    conn.execute("PRAGMA synchronous = NORMAL")
    conn.execute(f"PRAGMA cache_size = {int(cache_size_kb)}")
    conn.execute(f"PRAGMA temp_store = {temp_store}")
    conn.execute("PRAGMA foreign_keys = ON")


class IndexDatabase:
    """Owns the SQLite file holding the pages, words and locations tables."""

    def __init__(self, db_path: str | Path, *, busy_timeout_ms: int = 30000) -> None:
        self.db_path = Path(db_path).expanduser()
        self.busy_timeout_ms = busy_timeout_ms

    def connect(self) -> sqlite3.Connection:
        """Open a configured connection; failures surface as StorageUnavailableError."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path, cached_statements=0)
            apply_write_pragmas(conn, busy_timeout_ms=self.busy_timeout_ms)
        except (sqlite3.Error, OSError) as exc:
            logger.error("Unable to open index database at %s: %s", self.db_path, exc)
            raise StorageUnavailableError(f"Unable to open index database at {self.db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        return conn

    def create_schema(self) -> None:
        """Create the index tables if they do not exist yet."""
        self._run_script(SCHEMA_SQL)

    def reset(self) -> None:
        """Destroy and recreate the schema, discarding every indexed page."""
        logger.warning("Resetting index schema at %s", self.db_path)
        self._run_script(DROP_SQL + SCHEMA_SQL)

    def _run_script(self, script: str) -> None:
        conn = self.connect()
        try:
            conn.executescript(script)
            conn.commit()
        except sqlite3.Error as exc:
            raise StorageUnavailableError(f"Schema update failed for {self.db_path}: {exc}") from exc
        finally:
            conn.close()

    def __repr__(self) -> str:
        return f"IndexDatabase({str(self.db_path)!r})"
