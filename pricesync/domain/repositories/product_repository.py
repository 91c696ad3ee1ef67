"""
Product Repository Interface.
Defines specific data access operations for Products.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Protocol

from pricesync.domain.repositories.base import BaseRepository
from pricesync.domain.models.product import Product
from pricesync.domain.schemas.product import ProductFilter
from pricesync.domain.schemas.sync import PullFilters, PullOptions


@dataclass(frozen=True)
class SaveOptions:
    """Per-call switches for ``ProductRepository.save``.

    skip_sync_hook: do not mark the product pending nor dispatch a push.
    sale_price_explicit: treat sale_price as the driving input even if it
        did not change (imports carry the remote sale price verbatim).
    """
    skip_sync_hook: bool = False
    sale_price_explicit: bool = False

    @classmethod
    def internal(cls) -> "SaveOptions":
        """Writes owned by the sync engine itself."""
        return cls(skip_sync_hook=True)


class PushDispatcher(Protocol):
    """At-least-once deferred push. Implementations live in pricesync.scheduler."""

    def enqueue_push(self, product_id: int) -> None:
        ...


class ProductRepository(BaseRepository[Product]):
    """Interface for Product-specific operations."""

    def get_by_sku(self, sku: str) -> Optional[Product]:
        """Get a product by its unique SKU."""
        ...

    def get_many(self, ids: Iterable[int]) -> List[Product]:
        """Get products by ID, ordered by ID."""
        ...

    def save(self, product: Product, options: SaveOptions = SaveOptions()) -> Product:
        """Apply pricing, run the sync hook and persist."""
        ...

    def get_with_filters(self, filters: ProductFilter) -> Dict[str, Any]:
        """Get products with filtering and pagination."""
        ...

    def search_catalog(self, filters: PullFilters, options: PullOptions) -> List[Product]:
        """Products matching pull filters, newest first."""
        ...

    def count_by(self, field: str) -> Dict[str, int]:
        """Row counts grouped by a sync-state column."""
        ...
