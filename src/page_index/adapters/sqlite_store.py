"""SQLite-backed index store.

The store is bound to one connection owned by a unit of work; it never
commits, never retries and performs no caching across calls. Uniqueness of
``pages.url`` and ``words.stem`` is enforced by the schema, not by the store.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
import logging
import sqlite3

from pydantic import ValidationError

from page_index.adapters.repository import AbstractIndexStore
from page_index.domain.errors import InvalidInputError, StorageUnavailableError
from page_index.domain.model import IndexCounts, Location, Page, Resolved, Word


logger = logging.getLogger(__name__)

_PAGE_COLUMNS = "id, url, title, created_at, updated_at"


def _encode_timestamp(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _decode_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _row_to_page(row: sqlite3.Row) -> Page:
    return Page(
        id=row["id"],
        url=row["url"],
        title=row["title"],
        created_at=_decode_timestamp(row["created_at"]),
        updated_at=_decode_timestamp(row["updated_at"]),
    )


def _row_to_location(row: sqlite3.Row) -> Location:
    return Location(id=row["id"], position=row["position"], word_id=row["word_id"], page_id=row["page_id"])


@contextmanager
def _invalid_entity(kind: str, key: object) -> Iterator[None]:
    """Translate model validation failures into InvalidInputError."""
    try:
        yield
    except ValidationError as exc:
        raise InvalidInputError(f"Invalid {kind} {key!r}: {exc.errors()[0]['msg']}") from exc


@contextmanager
def _storage_errors(action: str) -> Iterator[None]:
    """Translate sqlite3 failures into StorageUnavailableError and unbindable text into InvalidInputError."""
    try:
        yield
    except sqlite3.Error as exc:
        logger.debug("SQLite failure while trying to %s: %s", action, exc)
        raise StorageUnavailableError(f"Failed to {action}: {exc}") from exc
    except UnicodeEncodeError as exc:
        raise InvalidInputError(f"Cannot {action}: text is not valid UTF-8") from exc


class SqliteIndexStore(AbstractIndexStore):
    """Index store over the ``pages``, ``words`` and ``locations`` tables."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def resolve_page(self, url: str) -> Resolved[Page]:
        page = self.get_page(url)
        if page is not None:
            return Resolved.existing(page)
        with _invalid_entity("page url", url):
            return Resolved.new(Page(url=url))

    def resolve_word(self, stem: str) -> Resolved[Word]:
        with _storage_errors(f"look up word {stem!r}"):
            row = self.conn.execute("SELECT id, stem FROM words WHERE stem = ?", (stem,)).fetchone()
        if row is not None:
            return Resolved.existing(Word(id=row["id"], stem=row["stem"]))
        with _invalid_entity("stem", stem):
            return Resolved.new(Word(stem=stem))

    def get_page(self, url: str) -> Page | None:
        with _storage_errors(f"look up page {url!r}"):
            row = self.conn.execute(f"SELECT {_PAGE_COLUMNS} FROM pages WHERE url = ?", (url,)).fetchone()
        return _row_to_page(row) if row is not None else None

    def save_page(self, page: Page) -> Page:
        params = (
            page.url,
            page.title,
            _encode_timestamp(page.created_at),
            _encode_timestamp(page.updated_at),
        )
        with _storage_errors(f"save page {page.url!r}"):
            if page.id is None:
                cursor = self.conn.execute(
                    "INSERT INTO pages (url, title, created_at, updated_at) VALUES (?, ?, ?, ?)",
                    params,
                )
                page.id = cursor.lastrowid
            else:
                self.conn.execute(
                    "UPDATE pages SET url = ?, title = ?, created_at = ?, updated_at = ? WHERE id = ?",
                    (*params, page.id),
                )
        return page

    def save_word(self, word: Word) -> Word:
        if word.id is not None:
            return word
        with _storage_errors(f"save word {word.stem!r}"):
            # Another writer may have inserted the same stem since it was resolved.
            self.conn.execute("INSERT INTO words (stem) VALUES (?) ON CONFLICT (stem) DO NOTHING", (word.stem,))
            row = self.conn.execute("SELECT id FROM words WHERE stem = ?", (word.stem,)).fetchone()
        if row is None:
            raise StorageUnavailableError(f"Word {word.stem!r} vanished after insert")
        word.id = row["id"]
        return word

    def record_occurrence(self, word: Word, page: Page, position: int) -> Location:
        if isinstance(position, bool) or not isinstance(position, int) or position < 0:
            raise InvalidInputError(f"Position must be a non-negative integer, got {position!r}")
        if page.id is None:
            raise InvalidInputError(f"Page {page.url!r} must be saved before recording occurrences")
        if word.id is None:
            self.save_word(word)
        with _storage_errors(f"record {word.stem!r} at {position} in {page.url!r}"):
            cursor = self.conn.execute(
                "INSERT INTO locations (position, word_id, page_id) VALUES (?, ?, ?)",
                (position, word.id, page.id),
            )
        return Location(id=cursor.lastrowid, position=position, word_id=word.id, page_id=page.id)

    def delete_locations_for_page(self, page: Page) -> int:
        if page.id is None:
            return 0
        with _storage_errors(f"delete locations of {page.url!r}"):
            cursor = self.conn.execute("DELETE FROM locations WHERE page_id = ?", (page.id,))
        return cursor.rowcount

    def locations_for_page(self, page: Page) -> list[Location]:
        if page.id is None:
            return []
        with _storage_errors(f"list locations of {page.url!r}"):
            rows = self.conn.execute(
                "SELECT id, position, word_id, page_id FROM locations WHERE page_id = ? ORDER BY id",
                (page.id,),
            ).fetchall()
        return [_row_to_location(row) for row in rows]

    def pages_for_word(self, word: Word) -> list[Page]:
        if word.id is None:
            return []
        with _storage_errors(f"list pages containing {word.stem!r}"):
            rows = self.conn.execute(
                f"SELECT {_PAGE_COLUMNS} FROM pages WHERE id IN "
                "(SELECT DISTINCT page_id FROM locations WHERE word_id = ?) ORDER BY id",
                (word.id,),
            ).fetchall()
        return [_row_to_page(row) for row in rows]

    def counts(self) -> IndexCounts:
        with _storage_errors("count index rows"):
            row = self.conn.execute(
                "SELECT (SELECT COUNT(*) FROM pages), (SELECT COUNT(*) FROM words), (SELECT COUNT(*) FROM locations)"
            ).fetchone()
        return IndexCounts(pages=row[0], words=row[1], locations=row[2])
