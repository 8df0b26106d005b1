"""Text normalization for the page index.

Raw page text becomes a stream of word stems through a composable
tokenizer/filter pipeline: punctuation is stripped, the remainder is split on
whitespace, tokens are lowercased, stopwords and oversized tokens are dropped
and the survivors are Porter-stemmed. Positions are renumbered after
filtering, so a stem's position is its index in the surviving sequence.
"""

from __future__ import annotations

from collections.abc import Callable, Collection, Iterable, Iterator, MutableMapping, Sequence
from dataclasses import dataclass, field
import re
from typing import Any, Protocol

from nltk.stem.porter import PorterStemmer

from page_index.analysis.stopwords import STOPWORDS
from page_index.domain.errors import InvalidInputError


DEFAULT_MAX_WORD_LENGTH = 50

_PUNCTUATION = re.compile(r"[^\w\s]", re.UNICODE)


@dataclass
class Token:
    """Represents a token emitted by the tokenizer."""

    text: str
    position: int
    attributes: MutableMapping[str, Any] = field(default_factory=dict)

    def copy_with(self, **updates: Any) -> Token:
        data = {
            "text": self.text,
            "position": self.position,
            "attributes": dict(self.attributes),
        }
        data.update(updates)
        return Token(**data)


class Tokenizer(Protocol):
    """Protocol implemented by tokenizers."""

    def __call__(self, text: str) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class TokenFilter(Protocol):
    """Protocol implemented by token filters."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class PunctuationStripTokenizer:
    """Removes non-word, non-space characters, then splits on whitespace.

    "don't" becomes "dont" rather than two tokens; a token made only of
    punctuation disappears entirely.
    """

    def __call__(self, text: str) -> Iterator[Token]:
        stripped = _PUNCTUATION.sub("", text)
        for position, raw in enumerate(stripped.split()):
            yield Token(text=raw, position=position)


class LowercaseFilter:
    """Filter that lowercases token text."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if token.text.islower():
                yield token
            else:
                yield token.copy_with(text=token.text.lower())


class StopFilter:
    """Removes tokens that exactly match an entry of the stopword table."""

    def __init__(self, stopwords: Collection[str] | None = None) -> None:
        self.stopwords = frozenset(stopwords) if stopwords is not None else STOPWORDS

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if token.text not in self.stopwords:
                yield token


class MaxLengthFilter:
    """Drops tokens longer than ``max_length`` characters."""

    def __init__(self, max_length: int = DEFAULT_MAX_WORD_LENGTH) -> None:
        if max_length < 1:
            raise ValueError("max_length must be positive")
        self.max_length = max_length

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if len(token.text) <= self.max_length:
                yield token


class PorterStemFilter:
    """Reduces inflected forms to their Porter stem ("running" -> "run")."""

    def __init__(self) -> None:
        self._stemmer = PorterStemmer()

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            stem = self._stemmer.stem(token.text)
            yield token.copy_with(text=stem, attributes={**token.attributes, "surface": token.text})


class WordNormalizer:
    """Tokenizer plus filters, renumbering positions after filtering."""

    def __init__(self, tokenizer: Tokenizer, filters: Sequence[TokenFilter] | None = None) -> None:
        self.tokenizer = tokenizer
        self.filters = list(filters or [])

    def tokens(self, text: str) -> Iterator[Token]:
        """Return a one-shot iterator of surviving tokens."""
        if not isinstance(text, str):
            raise InvalidInputError(f"Cannot normalize {type(text).__name__}; expected str")
        return self._run(text)

    def _run(self, text: str) -> Iterator[Token]:
        stream: Iterable[Token] = self.tokenizer(text)
        for token_filter in self.filters:
            stream = token_filter(stream)
        for position, token in enumerate(stream):
            token.position = position
            yield token

    def __call__(self, text: str) -> Iterator[str]:
        return (token.text for token in self.tokens(text))


def build_normalizer(
    *,
    stopwords: Collection[str] | None = None,
    max_word_length: int = DEFAULT_MAX_WORD_LENGTH,
    apply_stemming: bool = True,
) -> WordNormalizer:
    """Assemble the standard normalization pipeline."""

    filters: list[TokenFilter] = [LowercaseFilter(), StopFilter(stopwords), MaxLengthFilter(max_word_length)]
    if apply_stemming:
        filters.append(PorterStemFilter())
    return WordNormalizer(PunctuationStripTokenizer(), filters)


_NORMALIZER_FACTORIES: dict[str, Callable[[int], WordNormalizer]] = {
    "default": lambda max_len: build_normalizer(max_word_length=max_len),
    "english": lambda max_len: build_normalizer(max_word_length=max_len),
    "english-nostem": lambda max_len: build_normalizer(max_word_length=max_len, apply_stemming=False),
}

_DEFAULT_NORMALIZER = build_normalizer()


def get_normalizer(name: str | None = None, *, max_word_length: int = DEFAULT_MAX_WORD_LENGTH) -> WordNormalizer:
    """Return normalizer by name, defaulting to the stemming English pipeline."""

    if name is None and max_word_length == DEFAULT_MAX_WORD_LENGTH:
        return _DEFAULT_NORMALIZER
    normalized = (name or "default").lower()
    if normalized not in _NORMALIZER_FACTORIES:
        msg = f"Unknown normalizer '{name}'. Available: {sorted(_NORMALIZER_FACTORIES)}"
        raise ValueError(msg)
    return _NORMALIZER_FACTORIES[normalized](max_word_length)


def normalize(text: str) -> Iterator[str]:
    """Turn raw text into its ordered sequence of word stems.

    The result is a generator and can be consumed once. Raises
    ``InvalidInputError`` immediately for non-``str`` input.
    """

    return _DEFAULT_NORMALIZER(text)
