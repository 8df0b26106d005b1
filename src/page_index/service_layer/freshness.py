"""Freshness policy deciding when a page is due for re-crawling.

Staleness is computed on demand from ``Page.updated_at`` rather than stored,
so changing the policy never requires rewriting stored rows.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
import logging

from page_index.adapters.repository import AbstractIndexStore
from page_index.domain.errors import FreshnessPreconditionError
from page_index.domain.model import Page


logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60
DEFAULT_FRESHNESS_DAYS = 7
DEFAULT_POLICY_MINUTES = DEFAULT_FRESHNESS_DAYS * MINUTES_PER_DAY


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FreshnessTracker:
    """Stamps pages on re-index and reports their age in minutes."""

    def __init__(
        self,
        store: AbstractIndexStore | None = None,
        *,
        policy_minutes: float = DEFAULT_POLICY_MINUTES,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if policy_minutes < 0:
            raise ValueError("policy_minutes must not be negative")
        self.store = store
        self.policy_minutes = policy_minutes
        self._clock = clock

    def refresh(self, page: Page) -> Page:
        """Set ``updated_at`` (and ``created_at`` for new pages) to now and persist."""
        if self.store is None:
            raise RuntimeError("FreshnessTracker.refresh requires an index store")
        now = self._clock()
        if page.created_at is None:
            page.created_at = now
        page.updated_at = now
        return self.store.save_page(page)

    def age(self, page: Page, *, now: datetime | None = None) -> float:
        """Minutes elapsed since the page was last refreshed.

        Raises:
            FreshnessPreconditionError: the page has never been refreshed.
        """
        if page.updated_at is None:
            raise FreshnessPreconditionError(f"Page {page.url!r} has never been refreshed")
        moment = now or self._clock()
        return (moment - page.updated_at).total_seconds() / 60

    def is_fresh(self, page: Page, *, now: datetime | None = None) -> bool:
        """True while the page's age is within the policy, boundary included.

        A page that was never refreshed counts as infinitely stale.
        """
        if page.updated_at is None:
            return False
        return self.age(page, now=now) <= self.policy_minutes
