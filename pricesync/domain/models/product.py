"""Product domain model — maps to the 'products' table."""

from sqlalchemy import Column, Integer, String, Numeric, DateTime, JSON, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from pricesync.domain.sync_state import OriginSystem, SyncStatus
from pricesync.infrastructure.database import Base

# Fields whose change on a local save schedules a push to Odoo.
SYNC_FIELDS = ("cost_price", "markup_percent", "currency", "sale_price")


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sku = Column(String(64), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=True)

    # Pricing (2-decimal precision, kept consistent by domain.pricing)
    cost_price = Column(Numeric(12, 2), nullable=False, default=0)
    markup_percent = Column(Numeric(12, 2), nullable=False, default=0)
    sale_price = Column(Numeric(12, 2), nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="USD")

    # Sync state
    origin_system = Column(String(20), nullable=False, default=OriginSystem.LOCAL.value, index=True)
    last_sync_status = Column(String(20), nullable=False, default=SyncStatus.NEVER.value, index=True)
    last_sync_direction = Column(String(10), nullable=True)
    last_synced_at = Column(DateTime(timezone=True), nullable=True, index=True)
    # request/response or exception snapshot of the last attempt
    last_sync_payload = Column(JSON, nullable=True)
    last_sync_message = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    sync_logs = relationship("SyncLog", back_populates="product", passive_deletes=True)

    def __repr__(self):
        return f"<Product {self.sku} [{self.last_sync_status}]>"
