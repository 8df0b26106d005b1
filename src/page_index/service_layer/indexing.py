"""Service layer - the index_page use case.

Following Cosmic Python Chapter 4: Service Layer
- Orchestrates the normalizer, the index store and the freshness tracker
- Uses a Unit of Work so one call is one transaction
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import logging

from page_index.analysis.analyzers import WordNormalizer, get_normalizer
from page_index.config import Settings
from page_index.domain.errors import InvalidInputError, PageIndexError
from page_index.domain.model import MAX_TITLE_LENGTH, IndexCounts, Page, Word
from page_index.observability.context import get_trace_context, set_trace_context
from page_index.observability.metrics import (
    INDEX_ERRORS,
    INDEX_LATENCY,
    LOCATIONS_RECORDED,
    PAGES_INDEXED,
    WORDS_CREATED,
    track_latency,
)
from page_index.observability.tracing import create_span
from page_index.service_layer.freshness import FreshnessTracker, utcnow
from page_index.service_layer.unit_of_work import AbstractUnitOfWork


logger = logging.getLogger(__name__)


def _require_encodable(value: str, field: str) -> None:
    """SQLite stores UTF-8; lone surrogates (e.g. from undecodable argv bytes) cannot be bound."""
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise InvalidInputError(f"{field} is not valid UTF-8 text: {exc.reason} at position {exc.start}") from exc


@dataclass(frozen=True, slots=True)
class FreshnessReport:
    """Answer to "should the crawler fetch this url again?"."""

    url: str
    indexed: bool
    age_minutes: float | None
    is_fresh: bool

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "indexed": self.indexed,
            "age_minutes": self.age_minutes,
            "is_fresh": self.is_fresh,
        }


class IndexingService:
    """Turns (url, text, title) into index entries inside one transaction."""

    def __init__(
        self,
        uow_factory: Callable[[], AbstractUnitOfWork],
        settings: Settings | None = None,
        *,
        read_uow_factory: Callable[[], AbstractUnitOfWork] | None = None,
        normalizer: WordNormalizer | None = None,
        clock=utcnow,
    ) -> None:
        self.uow_factory = uow_factory
        self.read_uow_factory = read_uow_factory or uow_factory
        self.settings = settings or Settings()
        self.normalizer = normalizer or get_normalizer(
            self.settings.normalizer, max_word_length=self.settings.max_word_length
        )
        self._clock = clock

    def tracker(self, uow: AbstractUnitOfWork | None = None) -> FreshnessTracker:
        return FreshnessTracker(
            uow.store if uow is not None else None,
            policy_minutes=self.settings.freshness_policy_minutes,
            clock=self._clock,
        )

    def index_page(self, url: str, raw_text: str, title: str | None = None) -> Page:
        """Index one page and return it as persisted.

        Either every row of the call is committed or none is: any error rolls
        the transaction back and propagates unchanged.

        Raises:
            InvalidInputError: url is empty, text is not a string, or url or
                title cannot be encoded as UTF-8.
            StorageUnavailableError: the database rejected a read or write.
        """
        if not isinstance(url, str) or not url.strip():
            raise InvalidInputError("url must be a non-empty string")
        if not isinstance(raw_text, str):
            raise InvalidInputError(f"Cannot index {type(raw_text).__name__} text for {url!r}; expected str")
        _require_encodable(url, "url")
        if title is not None:
            if not isinstance(title, str):
                raise InvalidInputError(f"title must be a string, got {type(title).__name__}")
            _require_encodable(title, "title")

        ctx = get_trace_context()
        set_trace_context(ctx["trace_id"], ctx["span_id"], page_url=url)

        try:
            with track_latency(INDEX_LATENCY), create_span("index.page", attributes={"page.url": url}) as span:
                page, created, occurrences, new_words = self._index_in_transaction(url, raw_text, title)
                span.set_attribute("index.occurrences", occurrences)
                span.set_attribute("index.new_words", new_words)
        except PageIndexError as exc:
            INDEX_ERRORS.labels(error_type=type(exc).__name__).inc()
            logger.error("Indexing %s failed: %s", url, exc, exc_info=True)
            raise

        PAGES_INDEXED.labels(outcome="created" if created else "existing").inc()
        LOCATIONS_RECORDED.inc(occurrences)
        WORDS_CREATED.inc(new_words)
        logger.info(
            "Indexed %s (%d occurrences, %d new words, %s page)",
            url,
            occurrences,
            new_words,
            "new" if created else "existing",
        )
        return page

    def _index_in_transaction(self, url: str, raw_text: str, title: str | None) -> tuple[Page, bool, int, int]:
        with self.uow_factory() as uow:
            store = uow.store
            resolved = store.resolve_page(url)
            page = resolved.entity
            if title is not None:
                page.title = title[:MAX_TITLE_LENGTH]
            page = self.tracker(uow).refresh(page)

            if not resolved.created and self.settings.replaces_on_reindex():
                removed = store.delete_locations_for_page(page)
                logger.debug("Removed %d stale occurrences of %s before re-indexing", removed, url)

            words: dict[str, Word] = {}
            new_words = 0
            occurrences = 0
            for position, stem in enumerate(self.normalizer(raw_text)):
                word = words.get(stem)
                if word is None:
                    resolved_word = store.resolve_word(stem)
                    word = resolved_word.entity
                    if resolved_word.created:
                        new_words += 1
                    words[stem] = word
                store.record_occurrence(word, page, position)
                occurrences += 1

            uow.commit()
        return page, resolved.created, occurrences, new_words

    def freshness(self, url: str) -> FreshnessReport:
        """Report whether ``url`` is indexed and still within the freshness policy."""
        if not isinstance(url, str):
            raise InvalidInputError("url must be a string")
        _require_encodable(url, "url")
        with self.read_uow_factory() as uow:
            page = uow.store.get_page(url)
        if page is None or page.updated_at is None:
            return FreshnessReport(url=url, indexed=page is not None, age_minutes=None, is_fresh=False)
        tracker = self.tracker()
        # One clock reading so age_minutes and is_fresh always agree
        now = self._clock()
        return FreshnessReport(
            url=url,
            indexed=True,
            age_minutes=tracker.age(page, now=now),
            is_fresh=tracker.is_fresh(page, now=now),
        )

    def counts(self) -> IndexCounts:
        """Row counts of the pages, words and locations tables."""
        with self.read_uow_factory() as uow:
            return uow.store.counts()
