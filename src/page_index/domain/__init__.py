"""Domain layer - pure index entities with no infrastructure dependencies.

This layer contains:
- Entities: Page and Word (identity + natural key), Location (join record)
- Value objects: Resolved results and IndexCounts
- The error taxonomy raised by every other layer
"""

from page_index.domain.errors import (
    FreshnessPreconditionError,
    InvalidInputError,
    PageIndexError,
    StorageUnavailableError,
)
from page_index.domain.model import IndexCounts, Location, Page, Resolved, ResolveOutcome, Word


__all__ = [
    "FreshnessPreconditionError",
    "IndexCounts",
    "InvalidInputError",
    "Location",
    "Page",
    "PageIndexError",
    "ResolveOutcome",
    "Resolved",
    "StorageUnavailableError",
    "Word",
]
