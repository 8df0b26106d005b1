"""Text normalization: tokenize, filter stopwords and long tokens, stem."""

from page_index.analysis.analyzers import (
    DEFAULT_MAX_WORD_LENGTH,
    LowercaseFilter,
    MaxLengthFilter,
    PorterStemFilter,
    PunctuationStripTokenizer,
    StopFilter,
    Token,
    WordNormalizer,
    build_normalizer,
    get_normalizer,
    normalize,
)
from page_index.analysis.stopwords import STOPWORDS


__all__ = [
    "DEFAULT_MAX_WORD_LENGTH",
    "STOPWORDS",
    "LowercaseFilter",
    "MaxLengthFilter",
    "PorterStemFilter",
    "PunctuationStripTokenizer",
    "StopFilter",
    "Token",
    "WordNormalizer",
    "build_normalizer",
    "get_normalizer",
    "normalize",
]
