"""Domain model - entities of the inverted index.

Following Cosmic Python principles:
- Domain model has NO dependencies on infrastructure
- Entities have identity (database id) and a natural key (url, stem)
- Uses Pydantic dataclasses for validation at construction

Page and Word are independent; Location is the join record carrying the
token position of one occurrence of a word within a page.
"""

from __future__ import annotations

from dataclasses import dataclass as plain_dataclass
from datetime import datetime
from enum import Enum
from typing import Generic, TypeVar

from pydantic import Field
from pydantic.dataclasses import dataclass


MAX_TITLE_LENGTH = 255
MAX_STEM_LENGTH = 50

T = TypeVar("T")


@dataclass
class Page:
    """A crawled page, unique by url.

    ``id`` and both timestamps stay ``None`` until the page is first saved.
    """

    url: str = Field(min_length=1)
    title: str | None = Field(default=None, max_length=MAX_TITLE_LENGTH)
    id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_persisted(self) -> bool:
        return self.id is not None

    def __eq__(self, other: object) -> bool:
        """Pages are equal if they have the same url (natural key)."""
        if not isinstance(other, Page):
            return False
        return self.url == other.url

    def __hash__(self) -> int:
        return hash(self.url)


@dataclass
class Word:
    """A normalized stem, unique across the whole index."""

    stem: str = Field(min_length=1, max_length=MAX_STEM_LENGTH)
    id: int | None = None

    @property
    def is_persisted(self) -> bool:
        return self.id is not None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Word):
            return False
        return self.stem == other.stem

    def __hash__(self) -> int:
        return hash(self.stem)


@dataclass(frozen=True)
class Location:
    """One occurrence of a word at a token position within a page."""

    position: int = Field(ge=0)
    word_id: int = Field(ge=1)
    page_id: int = Field(ge=1)
    id: int | None = None


class ResolveOutcome(str, Enum):
    """Whether a resolve call found a stored entity or built a new one."""

    EXISTING = "existing"
    CREATED = "created"


@plain_dataclass(frozen=True, slots=True)
class Resolved(Generic[T]):
    """Tagged result of a lookup-or-create call."""

    entity: T
    outcome: ResolveOutcome

    @property
    def created(self) -> bool:
        return self.outcome is ResolveOutcome.CREATED

    @classmethod
    def existing(cls, entity: T) -> Resolved[T]:
        return cls(entity=entity, outcome=ResolveOutcome.EXISTING)

    @classmethod
    def new(cls, entity: T) -> Resolved[T]:
        return cls(entity=entity, outcome=ResolveOutcome.CREATED)


@dataclass(frozen=True)
class IndexCounts:
    """Row counts for the three index tables."""

    pages: int = Field(default=0, ge=0)
    words: int = Field(default=0, ge=0)
    locations: int = Field(default=0, ge=0)
