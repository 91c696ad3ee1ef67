"""Odoo JSON-RPC client.

Talks to the ``/jsonrpc`` endpoint of an Odoo server:
- authenticates once per instance (``common.login``, falling back to
  ``common.authenticate``) and caches the uid
- runs model methods through ``object.execute_kw``
- logs every call with the secret redacted

The cached uid is not guarded: use one client per worker/thread.
"""

import re
import uuid
from typing import Any, Optional

import httpx
import structlog

from pricesync.core.exceptions import (
    OdooAuthenticationError,
    OdooConfigurationError,
    OdooRequestError,
)
from pricesync.domain.schemas.sync import OdooResponse, PullFilters, PullOptions, RemoteRecord

logger = structlog.get_logger(__name__)

DEFAULT_FIELDS = [
    "id",
    "product_tmpl_id",
    "default_code",
    "name",
    "standard_price",
    "list_price",
    "qty_available",
    "currency_id",
    "write_date",
]
ODOO_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
BODY_PREVIEW_CHARS = 500


def _many2one_id(value: Any) -> int:
    """Odoo returns many2one fields as ``[id, display_name]`` or ``False``."""
    if isinstance(value, (list, tuple)):
        value = value[0] if value else 0
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _as_float(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def extract_currency_code(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    value = value.strip().upper()
    match = re.search(r"[A-Z]{3}", value)
    if match:
        return match.group(0)
    return value if len(value) == 3 else None


class OdooRpcClient:
    """Client for an Odoo server reachable over JSON-RPC."""

    def __init__(
        self,
        base_url: str,
        database: str,
        username: str,
        api_key: str = "",
        password: str = "",
        jsonrpc_path: str = "/jsonrpc",
        currency: str = "USD",
        timeout: float = 15.0,
        http_client: Optional[httpx.Client] = None,
    ):
        if not base_url:
            raise OdooConfigurationError("Odoo base URL (ODOO_BASE_URL) is not configured.")
        if not database:
            raise OdooConfigurationError("Odoo database (ODOO_DB) is not configured.")
        if not username:
            raise OdooConfigurationError("Odoo username (ODOO_USERNAME) is not configured.")
        if not (api_key or password):
            raise OdooConfigurationError("Either Odoo API key or password must be configured.")

        path = "/" + (jsonrpc_path or "/jsonrpc").lstrip("/")
        self.endpoint = base_url.rstrip("/") + path
        self.database = database
        self.username = username
        # API keys replace passwords for RPC when both are set
        self.secret = api_key or password
        self.currency = (currency or "USD").upper()
        self.http = http_client or httpx.Client(timeout=timeout)
        self._uid: Optional[int] = None

    # ------------------------------------------------------------------ push

    def update_product_cost(self, sku: str, cost: float, sale_price: float, currency: str) -> OdooResponse:
        cost = round(float(cost), 2)
        sale_price = round(float(sale_price), 2)

        lookup = self._find_product_by_sku(sku)
        if lookup is None:
            return OdooResponse(
                ok=False,
                payload={
                    "sku": sku,
                    "cost_price": cost,
                    "sale_price": sale_price,
                    "currency": currency,
                },
                response={},
                message=f"Product with SKU {sku} not found in Odoo.",
            )

        update_data: dict[str, Any] = {"standard_price": cost}
        if sale_price > 0:
            update_data["list_price"] = sale_price

        template_updated = self.execute_kw(
            "product.template", "write", [[lookup["product_template_id"]], update_data]
        )
        if not template_updated:
            raise OdooRequestError("Odoo template write operation failed.")

        # the variant keeps its own standard_price on multi-variant templates
        self.execute_kw("product.product", "write", [[lookup["product_id"]], {"standard_price": cost}])

        confirmation = self.execute_kw(
            "product.template",
            "read",
            [[lookup["product_template_id"]]],
            {"fields": ["standard_price", "list_price"]},
        )
        confirmed = confirmation[0] if confirmation else {}

        return OdooResponse(
            ok=True,
            payload={
                "product_id": lookup["product_id"],
                "product_template_id": lookup["product_template_id"],
                "updated": update_data,
            },
            response={
                "status": "success",
                "product_id": lookup["product_id"],
                "product_template_id": lookup["product_template_id"],
                "confirmed_standard_price": confirmed.get("standard_price"),
                "confirmed_list_price": confirmed.get("list_price"),
            },
            message="Odoo product cost updated.",
        )

    def _find_product_by_sku(self, sku: str) -> Optional[dict[str, Any]]:
        ids = self.execute_kw("product.product", "search", [[["default_code", "=", sku]]], {"limit": 1})
        if not ids:
            return None

        records = self.execute_kw("product.product", "read", [ids], {"fields": ["id", "product_tmpl_id", "name"]})
        if not records:
            return None

        record = records[0]
        template_id = _many2one_id(record.get("product_tmpl_id"))
        if not template_id:
            return None

        return {
            "product_id": _many2one_id(record.get("id")),
            "product_template_id": template_id,
            "name": record.get("name"),
        }

    # ------------------------------------------------------------------ pull

    def fetch_products(
        self,
        filters: Optional[PullFilters] = None,
        options: Optional[PullOptions] = None,
    ) -> list[RemoteRecord]:
        filters = filters or PullFilters()
        options = options or PullOptions()

        kwargs: dict[str, Any] = {"fields": options.fields or DEFAULT_FIELDS}
        if options.limit is not None:
            kwargs["limit"] = options.limit
        if options.offset is not None:
            kwargs["offset"] = options.offset
        kwargs["order"] = options.order or "write_date desc"

        records = self.execute_kw("product.product", "search_read", [self.build_domain(filters)], kwargs)
        if not isinstance(records, list):
            return []

        return [self._map_record(record) for record in records]

    @staticmethod
    def build_domain(filters: PullFilters) -> list:
        domain: list = []
        if filters.skus:
            domain.append(["default_code", "in", filters.skus])
        if filters.updated_after:
            domain.append(["write_date", ">=", filters.updated_after.strftime(ODOO_DATETIME_FORMAT)])
        if filters.updated_before:
            domain.append(["write_date", "<=", filters.updated_before.strftime(ODOO_DATETIME_FORMAT)])
        return domain

    def _map_record(self, record: dict[str, Any]) -> RemoteRecord:
        currency_field = record.get("currency_id")
        if isinstance(currency_field, (list, tuple)):
            currency_label = str(currency_field[1]) if len(currency_field) > 1 else ""
        else:
            currency_label = str(currency_field or "")

        qty = record.get("qty_available") if "qty_available" in record else None

        return RemoteRecord(
            product_id=_many2one_id(record.get("id")),
            product_template_id=_many2one_id(record.get("product_tmpl_id")),
            # Odoo uses False for empty char fields
            sku=str(record.get("default_code") or ""),
            name=str(record.get("name") or ""),
            cost_price=_as_float(record.get("standard_price")),
            sale_price=_as_float(record.get("list_price")),
            qty_available=_as_float(qty) if qty is not None else None,
            currency=extract_currency_code(currency_label) or self.currency,
            write_date=record.get("write_date") or None,
            raw=record,
        )

    # ------------------------------------------------------------- transport

    def execute_kw(self, model: str, method: str, args: list, kwargs: Optional[dict] = None) -> Any:
        arguments: list = [self.database, self._get_uid(), self.secret, model, method, args]
        if kwargs:
            arguments.append(kwargs)
        return self._json_rpc("object", "execute_kw", arguments)

    def _get_uid(self) -> int:
        if self._uid is None:
            self._uid = self._authenticate()
        return self._uid

    def _authenticate(self) -> int:
        login = None
        try:
            login = self._json_rpc("common", "login", [self.database, self.username, self.secret])
            if login:
                logger.debug("Odoo login succeeded", uid=login)
                return int(login)
            logger.debug("Odoo login returned empty result", response=login)
        except OdooRequestError as exc:
            # newer Odoo versions may drop `login`; `authenticate` still works
            logger.debug("Odoo login failed, falling back to authenticate", error=exc.message)

        uid = self._json_rpc("common", "authenticate", [self.database, self.username, self.secret, {}])
        if uid:
            logger.debug("Odoo authenticate succeeded", uid=uid)
            return int(uid)

        logger.warning(
            "Odoo authentication failed",
            database=self.database,
            username=self.username,
            login_response=login,
            authenticate_response=uid,
        )
        raise OdooAuthenticationError("Unable to authenticate with Odoo. Please verify credentials/API key.")

    def _json_rpc(self, service: str, method: str, args: list) -> Any:
        safe_args = self.sanitize_args(service, args)
        logger.debug("Odoo RPC call", service=service, method=method, args=safe_args)

        payload = {
            "jsonrpc": "2.0",
            "method": "call",
            "params": {"service": service, "method": method, "args": args},
            "id": str(uuid.uuid4()),
        }

        try:
            response = self.http.post(self.endpoint, json=payload, headers={"Accept": "application/json"})
        except httpx.HTTPError as exc:
            logger.error(
                "Odoo RPC transport failure",
                service=service,
                method=method,
                args=safe_args,
                error=str(exc),
            )
            raise OdooRequestError(f"Odoo request to {self.endpoint} failed: {exc}") from exc

        if response.is_error:
            body = response.text[:BODY_PREVIEW_CHARS]
            logger.error(
                "Odoo RPC HTTP failure",
                service=service,
                method=method,
                args=safe_args,
                status=response.status_code,
                body=body,
            )
            raise OdooRequestError(
                f"Odoo request failed with status {response.status_code} ({self.endpoint}): {body}",
                details={"status": response.status_code},
            )

        try:
            data = response.json()
        except ValueError as exc:
            logger.error("Odoo RPC returned invalid JSON", service=service, method=method, args=safe_args)
            raise OdooRequestError("Odoo returned a non-JSON response.") from exc

        error = data.get("error") if isinstance(data, dict) else None
        if error:
            logger.error(
                "Odoo RPC returned application error",
                service=service,
                method=method,
                args=safe_args,
                error=error,
            )
            if not isinstance(error, dict):
                error = {"message": str(error)}
            message = error.get("message") or "Unknown Odoo error"
            error_data = error.get("data")
            detail = error_data.get("message") if isinstance(error_data, dict) else error_data
            raise OdooRequestError(f"{message} - {detail}" if detail else message, details={"error": error})

        return data.get("result") if isinstance(data, dict) else None

    @staticmethod
    def sanitize_args(service: str, args: list) -> list:
        """Copy of ``args`` with the password/API key masked."""
        sanitized = list(args)
        if service in ("common", "object") and len(sanitized) > 2:
            sanitized[2] = "***"
        return sanitized

    def close(self) -> None:
        self.http.close()
