"""Odoo client selection."""

from typing import Optional

from pricesync.config import Settings
from pricesync.domain.repositories.product_repository import ProductRepository
from pricesync.infrastructure.odoo.base import OdooClient
from pricesync.infrastructure.odoo.fake_client import OdooFakeClient
from pricesync.infrastructure.odoo.rpc_client import OdooRpcClient


def build_odoo_client(settings: Settings, catalog: Optional[ProductRepository] = None) -> OdooClient:
    """Simulated client when ODOO_SIMULATE is on, JSON-RPC client otherwise."""
    if settings.ODOO_SIMULATE:
        return OdooFakeClient(
            catalog=catalog,
            currency=settings.ODOO_CURRENCY,
            failure_rate=settings.ODOO_FAKE_FAILURE_RATE,
            delay_range=(settings.ODOO_FAKE_DELAY_MIN, settings.ODOO_FAKE_DELAY_MAX),
        )

    return OdooRpcClient(
        base_url=settings.ODOO_BASE_URL,
        database=settings.ODOO_DB,
        username=settings.ODOO_USERNAME,
        api_key=settings.ODOO_API_KEY,
        password=settings.ODOO_PASSWORD,
        jsonrpc_path=settings.ODOO_JSONRPC_PATH,
        currency=settings.ODOO_CURRENCY,
        timeout=settings.ODOO_TIMEOUT,
    )


__all__ = ["OdooClient", "OdooFakeClient", "OdooRpcClient", "build_odoo_client"]
