"""Sync service — push local prices to Odoo and import Odoo products locally."""

from datetime import datetime, timezone
from typing import Any, Iterable, Optional

import structlog
from sqlalchemy.orm import Session

from pricesync.config import get_settings
from pricesync.core.exceptions import BusinessRuleViolationException
from pricesync.domain.models.product import Product
from pricesync.domain.models.sync_log import SyncLog
from pricesync.domain.pricing import compute_markup_from_sale, normalize_currency, to_money
from pricesync.domain.repositories.product_repository import (
    ProductRepository,
    PushDispatcher,
    SaveOptions,
)
from pricesync.domain.repositories.sync_log_repository import SyncLogRepository
from pricesync.domain.schemas.sync import (
    OdooResponse,
    PullError,
    PullFilters,
    PullOptions,
    PullSummary,
    PushResult,
    PushSummary,
    RemoteRecord,
)
from pricesync.domain.sync_state import (
    LogStatus,
    OriginSystem,
    SyncDirection,
    SyncEvent,
    SyncOperation,
    transition,
)
from pricesync.infrastructure.odoo.base import OdooClient

settings = get_settings()
logger = structlog.get_logger(__name__)

DIFF_FIELDS = ("name", "cost_price", "markup_percent", "currency", "sale_price")
NUMERIC_DIFF_FIELDS = ("cost_price", "markup_percent", "sale_price")

IMPORT_OUTCOMES = {
    SyncOperation.IMPORT_CREATE: ("created", "Product created from Odoo."),
    SyncOperation.IMPORT_UPDATE: ("updated", "Product updated from Odoo."),
    SyncOperation.IMPORT_TOUCH: ("unchanged", "Product already up to date."),
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


class OdooSyncService:
    """Orchestrates both sync directions and records every attempt in the sync log.

    Product state writes made here go through ``SaveOptions.internal()`` so
    they never schedule another push.
    """

    def __init__(
        self,
        client: OdooClient,
        products: ProductRepository,
        logs: SyncLogRepository,
        default_currency: Optional[str] = None,
    ):
        self.client = client
        self.products = products
        self.logs = logs
        self.default_currency = (default_currency or settings.ODOO_CURRENCY).upper()

    # ------------------------------------------------------------------ push

    def push_by_id(self, product_id: int) -> Optional[OdooResponse]:
        """Push a product by id. A vanished product is logged, not raised."""
        product = self.products.get_by_id(product_id)
        if product is None:
            logger.warning("Product not found for sync", product_id=product_id)
            self.logs.create(
                product_id=None,
                sku=f"missing-{product_id}",
                status=LogStatus.FAILED.value,
                direction=SyncDirection.PUSH.value,
                operation=SyncOperation.COST_UPDATE.value,
                payload={"product_id": product_id},
                message="Product not found for sync.",
            )
            return None

        return self.push(product)

    def push(self, product: Product) -> OdooResponse:
        """Send cost and sale price to Odoo.

        A rejection from Odoo (``ok=False``) is recorded and returned. An
        exception is recorded and re-raised so the dispatcher can retry.
        """
        request = {
            "sku": product.sku,
            "cost_price": float(product.cost_price or 0),
            "sale_price": float(product.sale_price or 0),
            "markup_percent": float(product.markup_percent or 0),
            "currency": product.currency,
        }

        self._mark_state(
            product,
            SyncEvent.PUSH_STARTED,
            last_sync_direction=SyncDirection.PUSH.value,
            last_sync_message="Pushing product to Odoo...",
        )

        try:
            response = self.client.update_product_cost(
                product.sku,
                request["cost_price"],
                request["sale_price"],
                product.currency,
            )
        except Exception as exc:
            message = str(exc)
            self.logs.create(
                product_id=product.id,
                sku=product.sku,
                status=LogStatus.FAILED.value,
                direction=SyncDirection.PUSH.value,
                operation=SyncOperation.COST_UPDATE.value,
                payload=request,
                response={"exception": type(exc).__name__, "message": message},
                message=message,
            )
            self._mark_state(
                product,
                SyncEvent.PUSH_FAILED,
                last_sync_payload={
                    "request": request,
                    "exception": {"type": type(exc).__name__, "message": message},
                },
                last_sync_message=message,
            )
            logger.error("Odoo push raised", product_id=product.id, sku=product.sku, error=message)
            raise

        if response.is_success:
            message = response.message or "Odoo product cost updated."
            self.logs.create(
                product_id=product.id,
                sku=product.sku,
                status=LogStatus.SUCCESS.value,
                direction=SyncDirection.PUSH.value,
                operation=SyncOperation.COST_UPDATE.value,
                payload=request,
                response=response.response,
                message=message,
            )
            self._mark_state(
                product,
                SyncEvent.PUSH_SUCCEEDED,
                origin_system=OriginSystem.LOCAL.value,
                last_synced_at=_now(),
                last_sync_payload={"request": request, "response": response.response},
                last_sync_message=message,
            )
        else:
            message = response.message or "Odoo product cost update failed."
            self.logs.create(
                product_id=product.id,
                sku=product.sku,
                status=LogStatus.FAILED.value,
                direction=SyncDirection.PUSH.value,
                operation=SyncOperation.COST_UPDATE.value,
                payload=request,
                response=response.response,
                message=message,
            )
            self._mark_state(
                product,
                SyncEvent.PUSH_FAILED,
                last_sync_payload={"request": request, "response": response.response},
                last_sync_message=message,
            )

        return response

    def push_products(self, products: Iterable[Product]) -> PushSummary:
        """Push each product in turn. One failure never stops the batch."""
        summary = PushSummary()

        for product in products:
            summary.total += 1
            try:
                response = self.push(product)
                status = LogStatus.SUCCESS.value if response.is_success else LogStatus.FAILED.value
                message = response.message
            except Exception as exc:
                status = LogStatus.FAILED.value
                message = str(exc)

            if status == LogStatus.SUCCESS.value:
                summary.success += 1
            else:
                summary.failed += 1

            summary.results.append(PushResult(id=product.id, sku=product.sku, status=status, message=message))

        logger.info("Bulk push finished", total=summary.total, success=summary.success, failed=summary.failed)
        return summary

    # ------------------------------------------------------------------ pull

    def pull_products(
        self,
        filters: Optional[PullFilters] = None,
        options: Optional[PullOptions] = None,
    ) -> PullSummary:
        """Import Odoo products into the local catalog.

        A failing fetch propagates. A failing record is rolled back, logged
        and reported in ``errors`` while the rest of the batch continues.
        """
        records = self.client.fetch_products(filters or PullFilters(), options or PullOptions())
        summary = PullSummary(fetched=len(records))

        for record in records:
            try:
                outcome = self._import_record(record)
            except Exception as exc:
                self.products.rollback()
                sku = (record.sku or "").strip() or None
                logger.warning("Odoo record import failed", sku=sku, error=str(exc))
                summary.errors.append(PullError(sku=sku, message=str(exc)))
                continue

            setattr(summary, outcome, getattr(summary, outcome) + 1)

        logger.info(
            "Odoo pull finished",
            fetched=summary.fetched,
            created=summary.created,
            updated=summary.updated,
            unchanged=summary.unchanged,
            errors=len(summary.errors),
        )
        return summary

    def _import_record(self, record: RemoteRecord) -> str:
        sku = (record.sku or "").strip()
        if not sku:
            raise BusinessRuleViolationException("Fetched product is missing a SKU.")

        cost = to_money(record.cost_price)
        sale = to_money(record.sale_price)
        incoming = {
            "name": record.name or sku,
            "cost_price": cost,
            "markup_percent": compute_markup_from_sale(cost, sale),
            "currency": normalize_currency(record.currency, self.default_currency),
            "sale_price": sale,
        }

        existing = self.products.get_by_sku(sku)
        if existing is None:
            operation = SyncOperation.IMPORT_CREATE
            product = Product(sku=sku)
        elif self._has_differences(existing, incoming):
            operation = SyncOperation.IMPORT_UPDATE
            product = existing
        else:
            operation = SyncOperation.IMPORT_TOUCH
            product = existing

        snapshot = record.to_payload()
        for field, value in incoming.items():
            setattr(product, field, value)
        product.origin_system = OriginSystem.ODOO.value
        product.last_sync_direction = SyncDirection.PULL.value
        product.last_sync_status = transition(product.last_sync_status, SyncEvent.PULL_IMPORTED).value
        product.last_synced_at = _now()
        product.last_sync_message = "Imported from Odoo."
        product.last_sync_payload = snapshot

        self.products.save(product, SaveOptions(skip_sync_hook=True, sale_price_explicit=True))

        outcome, message = IMPORT_OUTCOMES[operation]
        self.logs.create(
            product_id=product.id,
            sku=product.sku,
            status=LogStatus.SUCCESS.value,
            direction=SyncDirection.PULL.value,
            operation=operation.value,
            payload={"record": snapshot},
            message=message,
        )
        return outcome

    @staticmethod
    def _has_differences(product: Product, incoming: dict[str, Any]) -> bool:
        for field in DIFF_FIELDS:
            current = getattr(product, field)
            new = incoming[field]
            if field in NUMERIC_DIFF_FIELDS:
                if to_money(current) != to_money(new):
                    return True
            elif (current or "") != (new or ""):
                return True
        return False

    # --------------------------------------------------------------- helpers

    def _mark_state(self, product: Product, event: SyncEvent, **attributes: Any) -> None:
        product.last_sync_status = transition(product.last_sync_status, event).value
        for field, value in attributes.items():
            setattr(product, field, value)
        self.products.save(product, SaveOptions.internal())


def build_sync_service(
    db: Session,
    client: Optional[OdooClient] = None,
    dispatcher: Optional[PushDispatcher] = None,
) -> OdooSyncService:
    """Wire repositories and the configured Odoo client around one session."""
    from pricesync.infrastructure.odoo import build_odoo_client
    from pricesync.infrastructure.repositories.product_repository import SQLAlchemyProductRepository
    from pricesync.infrastructure.repositories.sync_log_repository import SQLAlchemySyncLogRepository

    products = SQLAlchemyProductRepository(db, Product, dispatcher=dispatcher)
    logs = SQLAlchemySyncLogRepository(db, SyncLog)
    return OdooSyncService(
        client=client or build_odoo_client(settings, catalog=products),
        products=products,
        logs=logs,
        default_currency=settings.ODOO_CURRENCY,
    )
