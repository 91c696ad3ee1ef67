from pricesync.domain.models.product import Product
from pricesync.domain.models.sync_log import SyncLog

__all__ = ["Product", "SyncLog"]
