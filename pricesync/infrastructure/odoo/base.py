"""Contract shared by the simulated and the JSON-RPC Odoo clients."""

from typing import Optional, Protocol, runtime_checkable

from pricesync.domain.schemas.sync import OdooResponse, PullFilters, PullOptions, RemoteRecord


@runtime_checkable
class OdooClient(Protocol):

    def update_product_cost(self, sku: str, cost: float, sale_price: float, currency: str) -> OdooResponse:
        """Write cost (and list price when positive) for ``sku`` in Odoo."""
        ...

    def fetch_products(
        self,
        filters: Optional[PullFilters] = None,
        options: Optional[PullOptions] = None,
    ) -> list[RemoteRecord]:
        """Read product rows from Odoo."""
        ...

    def close(self) -> None:
        """Release the transport."""
        ...
