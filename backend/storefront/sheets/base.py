"""
Base class for catalog sources.
"""
from abc import ABC, abstractmethod
from typing import List

from storefront.schemas import CatalogItem


class BaseCatalogSource(ABC):
    """
    Read-only view of an external, tab-organized product catalog.

    Implementations raise ``SourceUnavailable`` for transport or auth
    failures and ``CategoryNotFound`` for a missing tab.
    """

    def __init__(self, source_name: str) -> None:
        self.source_name = source_name

    @abstractmethod
    async def list_categories(self) -> List[str]:
        """Return category (tab) names in source order."""
        pass

    @abstractmethod
    async def fetch_category(self, category: str) -> List[CatalogItem]:
        """Return the normalized items of one category; empty tabs give ``[]``."""
        pass

    async def close(self) -> None:
        """Release any held resources."""
        pass
