"""Prometheus metrics for the indexing pipeline."""

from __future__ import annotations

from contextlib import contextmanager
import time
from typing import TYPE_CHECKING

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram, generate_latest


if TYPE_CHECKING:
    from collections.abc import Generator


PAGES_INDEXED = Counter(
    "pages_indexed_total",
    "Pages indexed, by whether the page was new or already known",
    ["outcome"],
)

LOCATIONS_RECORDED = Counter(
    "locations_recorded_total",
    "Word occurrences written to the index",
)

WORDS_CREATED = Counter(
    "words_created_total",
    "Distinct stems added to the index",
)

INDEX_ERRORS = Counter(
    "index_errors_total",
    "Failed index_page calls",
    ["error_type"],
)

INDEX_LATENCY = Histogram(
    "index_page_latency_seconds",
    "Time spent indexing one page, including commit",
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)


@contextmanager
def track_latency(histogram: Histogram) -> Generator[None, None, None]:
    """Observe the wall time of the block on ``histogram``."""
    start = time.perf_counter()
    try:
        yield
    finally:
        histogram.observe(time.perf_counter() - start)


def get_metrics(registry: CollectorRegistry = REGISTRY) -> bytes:
    """Render metrics in Prometheus text exposition format."""
    return generate_latest(registry)
