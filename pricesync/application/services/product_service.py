"""Product service — local catalog edits, listing and sync overview."""

from decimal import Decimal
from typing import Iterable

import structlog

from pricesync.core.exceptions import BusinessRuleViolationException, EntityNotFoundException
from pricesync.domain.models.product import Product
from pricesync.domain.pricing import to_money
from pricesync.domain.repositories.product_repository import ProductRepository, SaveOptions
from pricesync.domain.schemas.product import (
    ProductCreate,
    ProductFilter,
    ProductUpdate,
    SyncOverview,
)
from pricesync.domain.sync_state import OriginSystem, SyncStatus

logger = structlog.get_logger(__name__)


def get_product(repo: ProductRepository, product_id: int) -> Product:
    product = repo.get_by_id(product_id)
    if product is None:
        raise EntityNotFoundException(f"Product {product_id} not found.", details={"product_id": product_id})
    return product


def create_product(repo: ProductRepository, data: ProductCreate) -> Product:
    """Create a local product. An explicit sale price drives the markup."""
    if repo.get_by_sku(data.sku) is not None:
        raise BusinessRuleViolationException(f"SKU {data.sku} already exists.", details={"sku": data.sku})

    product = Product(
        sku=data.sku,
        name=data.name or data.sku,
        cost_price=data.cost_price,
        markup_percent=data.markup_percent,
        currency=data.currency,
    )
    if data.sale_price is not None:
        product.sale_price = data.sale_price

    product = repo.save(product, SaveOptions(sale_price_explicit=data.sale_price is not None))
    logger.info("Product created", product_id=product.id, sku=product.sku)
    return product


def update_product(repo: ProductRepository, product: Product, data: ProductUpdate) -> Product:
    """Apply the fields the caller actually sent."""
    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if value is None and field != "name":
            continue
        setattr(product, field, value)

    product = repo.save(product)
    logger.info("Product updated", product_id=product.id, fields=sorted(changes))
    return product


def apply_cost_change(repo: ProductRepository, products: Iterable[Product], percentage: float) -> list[Product]:
    """Raise or lower cost by ``percentage`` on each product, never below zero."""
    factor = 1 + Decimal(str(percentage)) / 100
    updated = []

    for product in products:
        new_cost = to_money(to_money(product.cost_price) * factor)
        product.cost_price = max(new_cost, Decimal("0.00"))
        updated.append(repo.save(product))

    logger.info("Bulk cost change applied", count=len(updated), percentage=percentage)
    return updated


def list_products(repo: ProductRepository, filters: ProductFilter) -> dict:
    """Get products with filtering and pagination."""
    return repo.get_with_filters(filters)


def get_sync_overview(repo: ProductRepository) -> SyncOverview:
    """Product counts per sync status and per origin system."""
    by_status = {status.value: 0 for status in SyncStatus}
    by_status.update(repo.count_by("last_sync_status"))

    by_origin = {origin.value: 0 for origin in OriginSystem}
    by_origin.update(repo.count_by("origin_system"))

    return SyncOverview(
        total_products=sum(by_status.values()),
        by_status=by_status,
        by_origin=by_origin,
    )
