"""Sync API routes — manual push, pull from Odoo, and the sync log."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from pricesync.application.services.product_service import get_product
from pricesync.application.services.sync_service import OdooSyncService
from pricesync.core.exceptions import EntityNotFoundException, OdooError, OdooRequestError
from pricesync.domain.repositories.product_repository import ProductRepository
from pricesync.domain.repositories.sync_log_repository import SyncLogRepository
from pricesync.domain.schemas.product import ProductRead
from pricesync.domain.schemas.sync import (
    PullRequest,
    PullSummary,
    PushRequest,
    PushSummary,
    SyncLogFilter,
    SyncLogRead,
)
from pricesync.interfaces.deps import (
    get_product_repository,
    get_sync_log_repository,
    get_sync_service,
)

router = APIRouter(prefix="/api/sync", tags=["Sync"])


@router.post("/push", response_model=PushSummary)
def push_products(
    body: PushRequest,
    repo: ProductRepository = Depends(get_product_repository),
    service: OdooSyncService = Depends(get_sync_service),
):
    """Push the selected products now, one after the other."""
    products = repo.get_many(body.product_ids)
    if not products:
        raise EntityNotFoundException("None of the selected products exist.", details={"product_ids": body.product_ids})
    return service.push_products(products)


@router.post("/push/{product_id}")
def push_product(
    product_id: int,
    repo: ProductRepository = Depends(get_product_repository),
    service: OdooSyncService = Depends(get_sync_service),
):
    product = get_product(repo, product_id)
    try:
        response = service.push(product)
    except OdooError:
        raise
    except Exception as e:
        raise OdooRequestError(str(e), details={"product_id": product_id}) from e

    return {
        "ok": response.is_success,
        "message": response.message,
        "response": response.response,
        "product": ProductRead.model_validate(product),
    }


@router.post("/pull", response_model=PullSummary)
def pull_products(
    body: Optional[PullRequest] = None,
    service: OdooSyncService = Depends(get_sync_service),
):
    """Import products from Odoo. Per-record problems end up in ``errors``."""
    body = body or PullRequest()
    return service.pull_products(body.filters, body.options)


@router.get("/logs")
def list_sync_logs(
    sku: Optional[str] = None,
    product_id: Optional[int] = None,
    status: Optional[str] = None,
    direction: Optional[str] = None,
    operation: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    logs: SyncLogRepository = Depends(get_sync_log_repository),
):
    filters = SyncLogFilter(
        sku=sku,
        product_id=product_id,
        status=status,
        direction=direction,
        operation=operation,
        page=page,
        page_size=page_size,
    )
    result = logs.get_with_filters(filters)
    result["items"] = [SyncLogRead.model_validate(entry) for entry in result["items"]]
    return result
