"""
Middleware configuration: request id propagation and per-request log context.
"""

import time
from typing import Callable

import structlog
from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)


class SyncContextMiddleware(BaseHTTPMiddleware):
    """Bind method/path into the structlog context so sync events logged
    deep inside services can be traced back to the request that caused them."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            method=request.method,
            path=request.url.path,
        )
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "Request failed",
                elapsed_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            raise

        logger.info(
            "Request handled",
            status_code=response.status_code,
            elapsed_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return response


def setup_middleware(app):
    """Register middleware. Starlette runs the last added first."""
    app.add_middleware(SyncContextMiddleware)
    app.add_middleware(
        CorrelationIdMiddleware,
        header_name="X-Request-ID",
        update_request_header=True,
    )
