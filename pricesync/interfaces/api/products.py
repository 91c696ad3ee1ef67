"""Products API routes — catalog listing, local edits, bulk cost change, sync overview."""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from pricesync.application.services.product_service import (
    apply_cost_change,
    create_product,
    get_product,
    get_sync_overview,
    list_products,
    update_product,
)
from pricesync.core.exceptions import EntityNotFoundException
from pricesync.domain.repositories.product_repository import ProductRepository
from pricesync.domain.schemas.product import (
    BulkCostChange,
    ProductCreate,
    ProductFilter,
    ProductRead,
    ProductUpdate,
    SyncOverview,
)
from pricesync.interfaces.deps import get_product_repository

router = APIRouter(prefix="/api/products", tags=["Products"])


@router.get("")
def list_products_route(
    sku: Optional[str] = None,
    cost_min: Optional[Decimal] = None,
    cost_max: Optional[Decimal] = None,
    status: Optional[str] = None,
    origin_system: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    repo: ProductRepository = Depends(get_product_repository),
):
    filters = ProductFilter(
        sku=sku,
        cost_min=cost_min,
        cost_max=cost_max,
        status=status,
        origin_system=origin_system,
        page=page,
        page_size=page_size,
    )
    result = list_products(repo, filters)
    result["items"] = [ProductRead.model_validate(p) for p in result["items"]]
    return result


@router.get("/sync-overview", response_model=SyncOverview)
def sync_overview(repo: ProductRepository = Depends(get_product_repository)):
    return get_sync_overview(repo)


@router.get("/{product_id}", response_model=ProductRead)
def read_product(product_id: int, repo: ProductRepository = Depends(get_product_repository)):
    return get_product(repo, product_id)


@router.post("", response_model=ProductRead, status_code=status.HTTP_201_CREATED)
def create_product_route(body: ProductCreate, repo: ProductRepository = Depends(get_product_repository)):
    """Create a product. The push to Odoo is scheduled by the save."""
    return create_product(repo, body)


@router.patch("/{product_id}", response_model=ProductRead)
def update_product_route(
    product_id: int,
    body: ProductUpdate,
    repo: ProductRepository = Depends(get_product_repository),
):
    product = get_product(repo, product_id)
    return update_product(repo, product, body)


@router.post("/bulk-cost")
def bulk_cost_change(body: BulkCostChange, repo: ProductRepository = Depends(get_product_repository)):
    """Raise or lower cost by a percentage on the selected products.

    Each changed product goes back to pending and gets its own push.
    """
    products = repo.get_many(body.product_ids)
    if not products:
        raise EntityNotFoundException("None of the selected products exist.", details={"product_ids": body.product_ids})

    updated = apply_cost_change(repo, products, body.percentage)
    return {
        "message": f"Cost updated on {len(updated)} product(s); Odoo sync queued.",
        "updated": len(updated),
        "items": [ProductRead.model_validate(p) for p in updated],
    }
