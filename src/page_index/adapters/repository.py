"""Abstract index store for the Page, Word and Location entities."""

from abc import ABC, abstractmethod

from page_index.domain.model import IndexCounts, Location, Page, Resolved, Word


class AbstractIndexStore(ABC):
    """Repository over the inverted index.

    Resolve calls never raise on a miss: they hand back a transient entity
    tagged ``CREATED`` that becomes persistent once saved.
    """

    @abstractmethod
    def resolve_page(self, url: str) -> Resolved[Page]:
        """Return the stored page for ``url`` or a new unsaved one."""
        raise NotImplementedError

    @abstractmethod
    def resolve_word(self, stem: str) -> Resolved[Word]:
        """Return the stored word for ``stem`` or a new unsaved one."""
        raise NotImplementedError

    @abstractmethod
    def get_page(self, url: str) -> Page | None:
        raise NotImplementedError

    @abstractmethod
    def save_page(self, page: Page) -> Page:
        """Insert or update a page, returning it with its id set."""
        raise NotImplementedError

    @abstractmethod
    def save_word(self, word: Word) -> Word:
        """Persist a word if needed, returning it with its id set."""
        raise NotImplementedError

    @abstractmethod
    def record_occurrence(self, word: Word, page: Page, position: int) -> Location:
        """Store one occurrence of ``word`` in ``page`` at ``position``."""
        raise NotImplementedError

    @abstractmethod
    def delete_locations_for_page(self, page: Page) -> int:
        """Remove every occurrence recorded for ``page``; return the count."""
        raise NotImplementedError

    @abstractmethod
    def locations_for_page(self, page: Page) -> list[Location]:
        raise NotImplementedError

    @abstractmethod
    def pages_for_word(self, word: Word) -> list[Page]:
        raise NotImplementedError

    @abstractmethod
    def counts(self) -> IndexCounts:
        raise NotImplementedError
