"""
Application error taxonomy and the HTTP handlers that render it.
Every error body has the shape {"error": {code, message, details, path}}.
"""

from typing import Any, Dict, Optional

import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)


class AppError(Exception):
    """Base class for all application exceptions."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class EntityNotFoundException(AppError):
    """Resource not found error."""
    status_code = status.HTTP_404_NOT_FOUND


class BusinessRuleViolationException(AppError):
    """Business logic violation error."""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class InvalidSyncTransition(BusinessRuleViolationException):
    """A sync status change not allowed by the state table."""


class OdooError(AppError):
    """Base class for failures talking to Odoo."""
    status_code = status.HTTP_502_BAD_GATEWAY


class OdooConfigurationError(OdooError):
    """Endpoint or credentials missing. Raised before any remote call."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class OdooAuthenticationError(OdooError):
    """Odoo rejected the configured credentials."""


class OdooRequestError(OdooError):
    """Transport failure or JSON-RPC error payload."""


def _error_body(request: Request, code: str, message: str, details: Optional[Dict[str, Any]] = None) -> dict:
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
            "path": request.url.path,
        }
    }


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("Request ended with application error", error=exc.__class__.__name__, message=exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.__class__.__name__, exc.message, exc.details),
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort for anything that is not an AppError."""
    if isinstance(exc, AppError):
        return await app_error_handler(request, exc)

    logger.exception("Unexpected error occurred", path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(request, "InternalServerError", "An unexpected error occurred. Please try again later."),
    )
