"""
Sync Log Repository Interface.
Append-only: entries are created and read, never updated or deleted.
"""

from typing import Any, Dict, Optional

from pricesync.domain.repositories.base import BaseRepository
from pricesync.domain.models.sync_log import SyncLog
from pricesync.domain.schemas.sync import SyncLogFilter


class SyncLogRepository(BaseRepository[SyncLog]):
    """Interface for SyncLog operations."""

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
        """Append one audit entry."""
        ...

    def get_with_filters(self, filters: SyncLogFilter) -> Dict[str, Any]:
        """Get log entries with filtering and pagination, newest first."""
        ...

