"""Simulated Odoo client for development and offline operation.

Behaves like a slow, occasionally failing remote:
- each push sleeps a random delay and fails with a configurable probability
- pulls mirror the local catalog, or fabricate a small fixed catalog when
  nothing local matches
"""

import random
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog

from pricesync.domain.models.product import Product
from pricesync.domain.repositories.product_repository import ProductRepository
from pricesync.domain.schemas.sync import OdooResponse, PullFilters, PullOptions, RemoteRecord

logger = structlog.get_logger(__name__)

FAKE_CATALOG_DEFAULT_SIZE = 5
FAKE_CATALOG_MAX_SIZE = 10


class OdooFakeClient:

    def __init__(
        self,
        catalog: Optional[ProductRepository] = None,
        currency: str = "USD",
        failure_rate: float = 0.1,
        delay_range: tuple[float, float] = (0.15, 0.3),
        rng: Optional[random.Random] = None,
    ):
        self.catalog = catalog
        self.currency = (currency or "USD").upper()
        self.failure_rate = failure_rate
        self.delay_range = delay_range
        self.rng = rng or random.Random()

    def close(self) -> None:
        pass

    def update_product_cost(self, sku: str, cost: float, sale_price: float, currency: str) -> OdooResponse:
        delay = self.rng.uniform(*self.delay_range)
        if delay > 0:
            time.sleep(delay)

        payload = {
            "reference": sku,
            "cost": cost,
            "sale_price": sale_price,
            "currency": currency,
            "request_id": str(uuid.uuid4()),
        }

        if self.rng.random() < self.failure_rate:
            logger.warning("Simulated Odoo failure", sku=sku, request_id=payload["request_id"])
            return OdooResponse(
                ok=False,
                payload=payload,
                response={
                    "status": "error",
                    "code": 500,
                    "detail": "Simulated Odoo failure.",
                },
                message="Simulated Odoo failure.",
            )

        return OdooResponse(
            ok=True,
            payload=payload,
            response={
                "status": "success",
                "synced_at": datetime.now(timezone.utc).isoformat(),
            },
            message="Odoo cost updated.",
        )

    def fetch_products(
        self,
        filters: Optional[PullFilters] = None,
        options: Optional[PullOptions] = None,
    ) -> list[RemoteRecord]:
        filters = filters or PullFilters()
        options = options or PullOptions()

        products = self.catalog.search_catalog(filters, options) if self.catalog is not None else []

        if not products and not filters.skus:
            return self._fake_remote_catalog(options.limit or FAKE_CATALOG_DEFAULT_SIZE)

        return [self._mirror(product) for product in products]

    def _fake_remote_catalog(self, limit: int) -> list[RemoteRecord]:
        count = max(1, min(limit, FAKE_CATALOG_MAX_SIZE))
        now = datetime.now(timezone.utc).replace(microsecond=0)
        records = []

        for index in range(1, count + 1):
            cost = round(10 + index * 1.5, 2)
            records.append(RemoteRecord(
                product_id=50_000 + index,
                product_template_id=60_000 + index,
                sku=f"ODOO-{index:04d}",
                name=f"Remote product {index}",
                cost_price=cost,
                sale_price=round(cost * 1.2, 2),
                qty_available=max(0, 120 - index * 3),
                currency=self.currency,
                write_date=(now - timedelta(minutes=index)).strftime("%Y-%m-%d %H:%M:%S"),
                raw={"origin": "fake_odoo_catalog"},
            ))

        return records

    def _mirror(self, product: Product) -> RemoteRecord:
        return RemoteRecord(
            product_id=10_000 + product.id,
            product_template_id=20_000 + product.id,
            sku=product.sku,
            name=product.name or product.sku,
            cost_price=float(product.cost_price or 0),
            sale_price=float(product.sale_price or 0),
            qty_available=float(self.rng.randint(5, 200)),
            currency=(product.currency or self.currency).upper(),
            write_date=product.updated_at.strftime("%Y-%m-%d %H:%M:%S") if product.updated_at else None,
            raw={"mirrored_from_local": True},
        )
