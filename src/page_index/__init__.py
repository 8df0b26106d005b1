"""Inverted index over crawled pages with a re-crawl freshness policy."""

from page_index.analysis import normalize
from page_index.bootstrap import bootstrap
from page_index.config import Settings
from page_index.domain import (
    FreshnessPreconditionError,
    InvalidInputError,
    Location,
    Page,
    PageIndexError,
    Resolved,
    ResolveOutcome,
    StorageUnavailableError,
    Word,
)
from page_index.service_layer import FreshnessReport, FreshnessTracker, IndexingService


__version__ = "0.1.0"

__all__ = [
    "FreshnessPreconditionError",
    "FreshnessReport",
    "FreshnessTracker",
    "IndexingService",
    "InvalidInputError",
    "Location",
    "Page",
    "PageIndexError",
    "ResolveOutcome",
    "Resolved",
    "Settings",
    "StorageUnavailableError",
    "Word",
    "bootstrap",
    "normalize",
]
