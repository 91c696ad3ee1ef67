"""Sync log — immutable audit record of every push/pull attempt."""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from pricesync.infrastructure.database import Base


class SyncLog(Base):
    __tablename__ = "sync_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # null when a push ran for a product that no longer exists
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    sku = Column(String(64), nullable=False, index=True)
    status = Column(String(20), nullable=False, index=True)  # success, failed
    direction = Column(String(10), nullable=False, default="push", index=True)  # push, pull
    operation = Column(String(30), nullable=False, default="cost_update", index=True)
    payload = Column(JSON, nullable=False, default=dict)
    response = Column(JSON, nullable=True)
    message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    product = relationship("Product", back_populates="sync_logs")

    def __repr__(self):
        return f"<SyncLog {self.direction}:{self.operation} {self.sku} - {self.status}>"
