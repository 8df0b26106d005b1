"""Error taxonomy shared by the normalizer, the index store and the services."""


class PageIndexError(Exception):
    """Base error for the page index."""


class InvalidInputError(PageIndexError, ValueError):
    """Raised before any write when input cannot be indexed."""


class StorageUnavailableError(PageIndexError, RuntimeError):
    """Persistence layer could not be reached or rejected a write.

    Covers connection failures as well as constraint violations. The store
    never retries; callers may retry the whole operation.
    """


class FreshnessPreconditionError(PageIndexError, LookupError):
    """Freshness was computed for a page that was never refreshed."""
