"""
API Dependencies.
"""

from typing import Iterator

from fastapi import Depends
from sqlalchemy.orm import Session

from pricesync.application.services.sync_service import OdooSyncService
from pricesync.config import get_settings
from pricesync.domain.models.product import Product
from pricesync.domain.models.sync_log import SyncLog
from pricesync.domain.repositories.product_repository import ProductRepository, PushDispatcher
from pricesync.domain.repositories.sync_log_repository import SyncLogRepository
from pricesync.infrastructure.database import get_db
from pricesync.infrastructure.odoo import OdooClient, build_odoo_client
from pricesync.infrastructure.repositories.product_repository import SQLAlchemyProductRepository
from pricesync.infrastructure.repositories.sync_log_repository import SQLAlchemySyncLogRepository
from pricesync.scheduler.jobs import get_push_dispatcher

settings = get_settings()


def get_dispatcher() -> PushDispatcher:
    """Get the configured push dispatcher."""
    return get_push_dispatcher()


def get_product_repository(
    db: Session = Depends(get_db),
    dispatcher: PushDispatcher = Depends(get_dispatcher),
) -> ProductRepository:
    """Get product repository instance; local saves schedule pushes."""
    return SQLAlchemyProductRepository(db, Product, dispatcher=dispatcher)


def get_sync_log_repository(db: Session = Depends(get_db)) -> SyncLogRepository:
    """Get sync log repository instance."""
    return SQLAlchemySyncLogRepository(db, SyncLog)


def get_odoo_client(repo: ProductRepository = Depends(get_product_repository)) -> Iterator[OdooClient]:
    """Odoo client for one request; its connection pool is closed afterwards."""
    client = build_odoo_client(settings, catalog=repo)
    try:
        yield client
    finally:
        client.close()


def get_sync_service(
    client: OdooClient = Depends(get_odoo_client),
    repo: ProductRepository = Depends(get_product_repository),
    logs: SyncLogRepository = Depends(get_sync_log_repository),
) -> OdooSyncService:
    return OdooSyncService(client=client, products=repo, logs=logs, default_currency=settings.ODOO_CURRENCY)
