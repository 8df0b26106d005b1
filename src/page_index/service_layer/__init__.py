"""Service layer - use cases over the index."""

from page_index.service_layer.freshness import FreshnessTracker
from page_index.service_layer.indexing import FreshnessReport, IndexingService
from page_index.service_layer.unit_of_work import AbstractUnitOfWork, SqliteUnitOfWork


__all__ = [
    "AbstractUnitOfWork",
    "FreshnessReport",
    "FreshnessTracker",
    "IndexingService",
    "SqliteUnitOfWork",
]
