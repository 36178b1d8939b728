"""
Exception types raised by the catalog sync and read paths.
"""
from typing import Optional


class CatalogError(Exception):
    """Base class for catalog errors."""
    pass


class SourceUnavailable(CatalogError):
    """The spreadsheet could not be reached or authenticated."""
    pass


class CategoryNotFound(CatalogError):
    """The spreadsheet has no tab with the requested name."""

    def __init__(self, category: str) -> None:
        super().__init__(f"Category not found in source: {category}")
        self.category = category


class StoreUnavailable(CatalogError):
    """A read against the catalog store failed."""
    pass


class StoreWriteFailed(CatalogError):
    """
    The store rejected or could not complete a write.

    ``chunks_committed`` counts the upsert chunks already committed
    before the failure, so partial application stays visible.
    """

    def __init__(self, message: str, chunks_committed: int = 0) -> None:
        super().__init__(message)
        self.chunks_committed = chunks_committed


class ReadUnavailable(CatalogError):
    """Both the store and the source read paths failed."""

    def __init__(self, message: str, store_error: Optional[str] = None) -> None:
        super().__init__(message)
        self.store_error = store_error


class SyncInProgress(CatalogError):
    """Another sync run holds the sync lock."""
    pass


class NotificationFailed(CatalogError):
    """The order notification could not be delivered."""
    pass
