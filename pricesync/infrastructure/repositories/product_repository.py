"""
SQLAlchemy Implementation of Product Repository.
"""

from typing import Any, Dict, Iterable, List, Optional

import structlog
from sqlalchemy import func, inspect
from sqlalchemy.orm import Session

from pricesync.config import get_settings
from pricesync.domain.models.product import Product, SYNC_FIELDS
from pricesync.domain.pricing import apply_pricing
from pricesync.domain.repositories.product_repository import (
    ProductRepository,
    PushDispatcher,
    SaveOptions,
)
from pricesync.domain.schemas.product import ProductFilter
from pricesync.domain.schemas.sync import PullFilters, PullOptions
from pricesync.domain.sync_state import (
    OriginSystem,
    SyncDirection,
    SyncEvent,
    SyncStatus,
    transition,
)
from pricesync.infrastructure.repositories.base_repository import SQLAlchemyRepository

settings = get_settings()
logger = structlog.get_logger(__name__)

PRICING_INPUTS = ("cost_price", "markup_percent", "currency")


def _changed(product: Product, field: str) -> bool:
    """True when ``field`` holds a value different from the stored one."""
    return inspect(product).attrs[field].history.has_changes()


class SQLAlchemyProductRepository(SQLAlchemyRepository[Product], ProductRepository):
    """Product repository implementation using SQLAlchemy.

    ``save`` is the single write path for products: it keeps pricing
    consistent and, unless the caller opts out via SaveOptions, flags the
    product pending and hands it to the push dispatcher.
    """

    def __init__(
        self,
        db: Session,
        model=Product,
        dispatcher: Optional[PushDispatcher] = None,
        default_currency: Optional[str] = None,
    ):
        super().__init__(db, model)
        self.dispatcher = dispatcher
        self.default_currency = (default_currency or settings.ODOO_CURRENCY).upper()

    def get_by_sku(self, sku: str) -> Optional[Product]:
        return self.db.query(Product).filter(Product.sku == sku).first()

    def get_many(self, ids: Iterable[int]) -> List[Product]:
        ids = list(ids)
        if not ids:
            return []
        return self.db.query(Product).filter(Product.id.in_(ids)).order_by(Product.id).all()

    def save(self, product: Product, options: SaveOptions = SaveOptions()) -> Product:
        state = inspect(product)
        is_new = state.transient or state.pending

        sale_price_explicit = options.sale_price_explicit or _changed(product, "sale_price")
        inputs_changed = is_new or any(_changed(product, field) for field in PRICING_INPUTS)

        apply_pricing(
            product,
            sale_price_explicit=sale_price_explicit,
            inputs_changed=inputs_changed,
            default_currency=self.default_currency,
        )

        if not product.origin_system:
            product.origin_system = OriginSystem.LOCAL.value
        if not product.last_sync_status:
            product.last_sync_status = SyncStatus.NEVER.value

        sync_required = not options.skip_sync_hook and any(_changed(product, field) for field in SYNC_FIELDS)

        if sync_required:
            product.last_sync_status = transition(product.last_sync_status, SyncEvent.LOCAL_EDIT).value
            product.last_sync_direction = SyncDirection.PUSH.value
            product.last_sync_message = "Awaiting push to Odoo."

        self.db.add(product)
        self.db.commit()

        if sync_required and self.dispatcher is not None:
            logger.info("Product push scheduled", product_id=product.id, sku=product.sku)
            self.dispatcher.enqueue_push(product.id)
            # an inline push has already written a newer sync state
            self.db.refresh(product)

        return product

    def get_with_filters(self, filters: ProductFilter) -> Dict[str, Any]:
        """Get products with filtering and pagination."""
        query = self.db.query(Product)

        if filters.sku:
            query = query.filter(Product.sku.ilike(f"%{filters.sku.strip()}%"))
        if filters.cost_min is not None:
            query = query.filter(Product.cost_price >= filters.cost_min)
        if filters.cost_max is not None:
            query = query.filter(Product.cost_price <= filters.cost_max)
        if filters.status:
            query = query.filter(Product.last_sync_status == filters.status)
        if filters.origin_system:
            query = query.filter(Product.origin_system == filters.origin_system)

        return self._paginate(query.order_by(Product.sku), filters.page, filters.page_size)

    def search_catalog(self, filters: PullFilters, options: PullOptions) -> List[Product]:
        """Products matching pull filters, ordered like an Odoo search_read."""
        query = self.db.query(Product)

        if filters.skus:
            query = query.filter(Product.sku.in_(filters.skus))
        if filters.updated_after:
            query = query.filter(Product.updated_at >= filters.updated_after)
        if filters.updated_before:
            query = query.filter(Product.updated_at <= filters.updated_before)

        query = query.order_by(Product.updated_at.desc(), Product.sku)

        if options.offset:
            query = query.offset(options.offset)
        if options.limit:
            query = query.limit(options.limit)

        return query.all()

    def count_by(self, field: str) -> Dict[str, int]:
        column = getattr(Product, field)
        rows = self.db.query(column, func.count(Product.id)).group_by(column).all()
        return {value: count for value, count in rows}
