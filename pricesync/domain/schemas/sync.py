"""Pydantic schemas for the sync engine: Odoo DTOs, pull filters, summaries, audit log."""

import re
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


def split_skus(value: Any) -> list[str]:
    """Accept a list or a comma/whitespace separated string; drop blanks."""
    if value is None:
        return []
    if isinstance(value, str):
        value = re.split(r"[\s,]+", value)
    return [str(sku).strip() for sku in value if str(sku).strip()]


class PullFilters(BaseModel):
    skus: list[str] = Field(default_factory=list)
    updated_after: Optional[datetime] = None
    updated_before: Optional[datetime] = None

    @field_validator("skus", mode="before")
    @classmethod
    def normalize_skus(cls, value: Any) -> list[str]:
        return split_skus(value)


class PullOptions(BaseModel):
    limit: Optional[int] = Field(None, ge=1, le=500)
    offset: Optional[int] = Field(None, ge=0)
    fields: Optional[list[str]] = None
    order: Optional[str] = None


class RemoteRecord(BaseModel):
    """A product row as fetched from Odoo. Transient, never persisted as is."""
    product_id: Optional[int] = None
    product_template_id: Optional[int] = None
    sku: str = ""
    name: str = ""
    cost_price: float = 0.0
    sale_price: float = 0.0
    qty_available: Optional[float] = None
    currency: Optional[str] = None
    write_date: Optional[str] = None
    raw: dict[str, Any] = Field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class OdooResponse(BaseModel):
    """Outcome of a push. ``ok=False`` is a remote-side rejection, not an exception."""
    ok: bool
    payload: dict[str, Any] = Field(default_factory=dict)
    response: dict[str, Any] = Field(default_factory=dict)
    message: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.ok


class PushResult(BaseModel):
    id: Optional[int] = None
    sku: str
    status: str
    message: Optional[str] = None


class PushSummary(BaseModel):
    total: int = 0
    success: int = 0
    failed: int = 0
    results: list[PushResult] = Field(default_factory=list)


class PullError(BaseModel):
    sku: Optional[str] = None
    message: str


class PullSummary(BaseModel):
    fetched: int = 0
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    errors: list[PullError] = Field(default_factory=list)


class PushRequest(BaseModel):
    product_ids: list[int] = Field(..., min_length=1)


class PullRequest(BaseModel):
    filters: PullFilters = Field(default_factory=PullFilters)
    options: PullOptions = Field(default_factory=PullOptions)


class SyncLogRead(BaseModel):
    id: int
    product_id: Optional[int] = None
    sku: str
    status: str
    direction: str
    operation: str
    payload: Optional[dict[str, Any]] = None
    response: Optional[dict[str, Any]] = None
    message: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SyncLogFilter(BaseModel):
    sku: Optional[str] = None
    product_id: Optional[int] = None
    status: Optional[str] = None
    direction: Optional[str] = None
    operation: Optional[str] = None
    page: int = 1
    page_size: int = 50
