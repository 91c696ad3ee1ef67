"""
SQLAlchemy Implementation of the Sync Log Repository.
"""

from typing import Any, Dict, Optional

import structlog

from pricesync.domain.models.sync_log import SyncLog
from pricesync.domain.repositories.sync_log_repository import SyncLogRepository
from pricesync.domain.schemas.sync import SyncLogFilter
from pricesync.infrastructure.repositories.base_repository import SQLAlchemyRepository

logger = structlog.get_logger(__name__)


class SQLAlchemySyncLogRepository(SQLAlchemyRepository[SyncLog], SyncLogRepository):
    """Append-only audit log storage."""

    def create(
        self,
        *,
        sku: str,
        status: str,
        direction: str,
        operation: str,
        payload: Dict[str, Any],
        response: Optional[Dict[str, Any]] = None,
        message: Optional[str] = None,
        product_id: Optional[int] = None,
    ) -> SyncLog:
        entry = SyncLog(
            product_id=product_id,
            sku=sku,
            status=status,
            direction=direction,
            operation=operation,
            payload=payload,
            response=response or {},
            message=message,
        )
        self.db.add(entry)
        self.db.commit()

        log = logger.info if status == "success" else logger.warning
        log(
            "Sync attempt recorded",
            sku=sku,
            status=status,
            direction=direction,
            operation=operation,
            sync_message=message,
        )
        return entry

    def get_with_filters(self, filters: SyncLogFilter) -> Dict[str, Any]:
        query = self.db.query(SyncLog)

        if filters.sku:
            query = query.filter(SyncLog.sku == filters.sku)
        if filters.product_id is not None:
            query = query.filter(SyncLog.product_id == filters.product_id)
        if filters.status:
            query = query.filter(SyncLog.status == filters.status)
        if filters.direction:
            query = query.filter(SyncLog.direction == filters.direction)
        if filters.operation:
            query = query.filter(SyncLog.operation == filters.operation)

        query = query.order_by(SyncLog.id.desc())
        return self._paginate(query, filters.page, filters.page_size)

