"""Tests for the index_page use case against a real SQLite file."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import patch

import pytest

from page_index.adapters.sqlite_store import SqliteIndexStore
from page_index.config import Settings
from page_index.domain import InvalidInputError, Page, StorageUnavailableError
from page_index.service_layer.indexing import IndexingService


pytestmark = pytest.mark.unit


class _Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **delta):
        self.now += timedelta(**delta)


def _snapshot(database):
    """Return (counts, {stem: [(page_url, position), ...]}) straight from the tables."""
    conn = database.connect()
    try:
        store = SqliteIndexStore(conn)
        counts = store.counts()
        rows = conn.execute(
            "SELECT w.stem, p.url, l.position FROM locations l "
            "JOIN words w ON w.id = l.word_id JOIN pages p ON p.id = l.page_id ORDER BY l.id"
        ).fetchall()
    finally:
        conn.close()
    occurrences: dict[str, list[tuple[str, int]]] = {}
    for stem, url, position in rows:
        occurrences.setdefault(stem, []).append((url, position))
    return counts, occurrences


class TestIndexPage:
    def test_sentence_creates_page_words_and_locations(self, service, database):
        page = service.index_page("http://a.test", "The cat sat on the mat")

        counts, occurrences = _snapshot(database)
        assert page.id is not None
        assert (counts.pages, counts.words, counts.locations) == (1, 3, 3)
        assert occurrences == {
            "cat": [("http://a.test", 0)],
            "sat": [("http://a.test", 1)],
            "mat": [("http://a.test", 2)],
        }

    def test_new_page_is_stamped_and_fresh(self, service):
        page = service.index_page("http://a.test", "cat")

        assert page.created_at is not None
        assert page.updated_at == page.created_at
        tracker = service.tracker()
        assert tracker.is_fresh(page) is True
        assert tracker.age(page) == pytest.approx(0.0, abs=1.0)

    def test_reindex_keeps_page_and_appends_locations(self, service, database):
        first = service.index_page("http://a.test", "The cat sat on the mat")
        second = service.index_page("http://a.test", "dog sat")

        counts, occurrences = _snapshot(database)
        assert first.id == second.id
        assert counts.pages == 1
        assert counts.locations == 5
        assert occurrences["sat"] == [("http://a.test", 1), ("http://a.test", 1)]
        assert occurrences["dog"] == [("http://a.test", 0)]

    def test_reindex_refreshes_updated_at_only(self, database, settings, uow_factory, fixed_now):
        clock = _Clock(fixed_now)
        service = IndexingService(uow_factory, settings, clock=clock)

        first = service.index_page("http://a.test", "cat")
        clock.advance(days=3)
        second = service.index_page("http://a.test", "cat")

        assert second.created_at == first.created_at == fixed_now
        assert second.updated_at == fixed_now + timedelta(days=3)

    def test_replace_policy_drops_previous_locations(self, database, uow_factory, db_path):
        settings = Settings(database_path=str(db_path), reindex_policy="replace")
        service = IndexingService(uow_factory, settings)

        service.index_page("http://a.test", "The cat sat on the mat")
        service.index_page("http://a.test", "dog sat")

        counts, occurrences = _snapshot(database)
        assert counts.locations == 2
        assert occurrences == {"dog": [("http://a.test", 0)], "sat": [("http://a.test", 1)]}
        # Words are never deleted
        assert counts.words == 4

    def test_words_are_shared_across_pages(self, service, database):
        service.index_page("http://a.test", "cat sat")
        service.index_page("http://b.test", "black cat")

        counts, occurrences = _snapshot(database)
        assert counts.words == 3
        assert occurrences["cat"] == [("http://a.test", 0), ("http://b.test", 1)]

    def test_repeated_stem_within_one_page(self, service, database):
        service.index_page("http://a.test", "cats chase cats")

        _, occurrences = _snapshot(database)
        assert occurrences["cat"] == [("http://a.test", 0), ("http://a.test", 2)]

    def test_title_is_stored_and_kept_on_reindex_without_title(self, service, uow_factory):
        service.index_page("http://a.test", "cat", title="Cats")
        service.index_page("http://a.test", "cat")

        with uow_factory() as uow:
            assert uow.store.get_page("http://a.test").title == "Cats"

    def test_long_title_is_truncated(self, service):
        page = service.index_page("http://a.test", "cat", title="t" * 400)
        assert len(page.title) == 255

    def test_text_with_only_stopwords_still_indexes_page(self, service, database):
        page = service.index_page("http://a.test", "the and of")

        counts, _ = _snapshot(database)
        assert page.id is not None
        assert (counts.pages, counts.words, counts.locations) == (1, 0, 0)


class TestInvalidInput:
    @pytest.mark.parametrize("url", ["", "   ", None])
    def test_empty_url_rejected_before_any_write(self, service, database, url):
        with pytest.raises(InvalidInputError):
            service.index_page(url, "cat")
        assert _snapshot(database)[0].pages == 0

    def test_non_text_rejected_before_any_write(self, service, database):
        with pytest.raises(InvalidInputError):
            service.index_page("http://a.test", b"cat")
        assert _snapshot(database)[0].pages == 0

    @pytest.mark.parametrize(
        ("url", "title"),
        [
            ("http://a.test/\udcff", None),
            ("http://a.test", "caf\udce9"),
        ],
    )
    def test_text_that_is_not_utf8_rejected_before_any_write(self, service, database, url, title):
        with pytest.raises(InvalidInputError, match="not valid UTF-8"):
            service.index_page(url, "cat", title=title)
        assert _snapshot(database)[0].pages == 0

    def test_non_text_title_rejected(self, service, database):
        with pytest.raises(InvalidInputError, match="title"):
            service.index_page("http://a.test", "cat", title=42)
        assert _snapshot(database)[0].pages == 0

    def test_freshness_of_undecodable_url_is_invalid_input(self, service):
        with pytest.raises(InvalidInputError):
            service.freshness("http://a.test/\udcff")


class TestFailureRollsBack:
    def test_storage_failure_mid_page_leaves_no_rows(self, service, database):
        original = SqliteIndexStore.record_occurrence
        calls = {"count": 0}

        def flaky(self, word, page, position):
            calls["count"] += 1
            if calls["count"] == 3:
                raise StorageUnavailableError("disk went away")
            return original(self, word, page, position)

        with patch.object(SqliteIndexStore, "record_occurrence", autospec=True, side_effect=flaky):
            with pytest.raises(StorageUnavailableError, match="disk went away"):
                service.index_page("http://a.test", "The cat sat on the mat")

        counts, _ = _snapshot(database)
        assert (counts.pages, counts.words, counts.locations) == (0, 0, 0)

    def test_failed_reindex_keeps_previous_state(self, service, database):
        service.index_page("http://a.test", "cat sat")

        with patch.object(SqliteIndexStore, "record_occurrence", side_effect=StorageUnavailableError("boom")):
            with pytest.raises(StorageUnavailableError):
                service.index_page("http://a.test", "dog")

        counts, occurrences = _snapshot(database)
        assert (counts.pages, counts.words, counts.locations) == (1, 2, 2)
        assert "dog" not in occurrences

    def test_retry_after_failure_succeeds(self, service, database):
        with patch.object(SqliteIndexStore, "record_occurrence", side_effect=StorageUnavailableError("boom")):
            with pytest.raises(StorageUnavailableError):
                service.index_page("http://a.test", "cat")

        page = service.index_page("http://a.test", "cat")

        counts, _ = _snapshot(database)
        assert page.id is not None
        assert (counts.pages, counts.words, counts.locations) == (1, 1, 1)


class TestFreshnessReport:
    def test_unknown_url(self, service):
        report = service.freshness("http://nowhere.test")
        assert report.indexed is False
        assert report.is_fresh is False
        assert report.age_minutes is None

    def test_recently_indexed_url(self, service):
        service.index_page("http://a.test", "cat")

        report = service.freshness("http://a.test")

        assert report.indexed is True
        assert report.is_fresh is True
        assert report.age_minutes == pytest.approx(0.0, abs=1.0)

    def test_stale_url(self, database, settings, uow_factory, fixed_now):
        clock = _Clock(fixed_now)
        service = IndexingService(uow_factory, settings, clock=clock)
        service.index_page("http://a.test", "cat")
        clock.advance(days=7, minutes=1)

        report = service.freshness("http://a.test")

        assert report.is_fresh is False
        assert report.age_minutes == pytest.approx(10081.0)
        assert report.to_dict()["url"] == "http://a.test"

    def test_age_and_verdict_share_one_clock_reading(self, database, settings, uow_factory, fixed_now):
        clock = _Clock(fixed_now)
        service = IndexingService(uow_factory, settings, clock=clock)
        service.index_page("http://a.test", "cat")
        clock.advance(days=7)
        # Every later reading lands one minute further on
        readings = iter(range(10))
        service._clock = lambda: clock.now + timedelta(minutes=next(readings))

        report = service.freshness("http://a.test")

        assert report.age_minutes == pytest.approx(10080.0)
        assert report.is_fresh is True


class TestReadsDuringIndexing:
    def test_reads_do_not_wait_for_an_open_write_transaction(self, service, uow_factory):
        service.index_page("http://a.test", "cat sat")

        with uow_factory() as writer:
            writer.store.save_page(Page(url="http://b.test"))

            report = service.freshness("http://a.test")
            counts = service.counts()

        assert report.indexed is True
        # The uncommitted page is invisible to readers
        assert counts.pages == 1

    def test_counts_reflect_committed_rows(self, service):
        service.index_page("http://a.test", "The cat sat on the mat")

        counts = service.counts()

        assert (counts.pages, counts.words, counts.locations) == (1, 3, 3)
