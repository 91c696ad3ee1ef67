"""Pydantic schemas for Product domain."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class ProductBase(BaseModel):
    name: Optional[str] = None
    cost_price: Decimal = Field(Decimal("0"), ge=0)
    markup_percent: Decimal = Field(Decimal("0"), ge=0)
    currency: Optional[str] = Field(None, pattern=r"^[A-Za-z]{3}$")


class ProductCreate(ProductBase):
    sku: str = Field(..., min_length=1, max_length=64)
    # When given, drives the markup instead of the other way round
    sale_price: Optional[Decimal] = Field(None, ge=0)

    @field_validator("sku")
    @classmethod
    def strip_sku(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("SKU must not be blank")
        return value


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    cost_price: Optional[Decimal] = Field(None, ge=0)
    markup_percent: Optional[Decimal] = Field(None, ge=0)
    sale_price: Optional[Decimal] = Field(None, ge=0)
    currency: Optional[str] = Field(None, pattern=r"^[A-Za-z]{3}$")


class ProductRead(BaseModel):
    id: int
    sku: str
    name: Optional[str] = None
    cost_price: float
    markup_percent: float
    sale_price: float
    currency: str
    origin_system: str
    last_sync_status: str
    last_sync_direction: Optional[str] = None
    last_synced_at: Optional[datetime] = None
    last_sync_message: Optional[str] = None
    last_sync_payload: Optional[dict[str, Any]] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ProductFilter(BaseModel):
    sku: Optional[str] = None
    cost_min: Optional[Decimal] = None
    cost_max: Optional[Decimal] = None
    status: Optional[str] = None
    origin_system: Optional[str] = None
    page: int = 1
    page_size: int = 50


class BulkCostChange(BaseModel):
    product_ids: list[int] = Field(..., min_length=1)
    # positive raises cost, negative lowers it
    percentage: float

    @field_validator("percentage")
    @classmethod
    def non_zero(cls, value: float) -> float:
        if abs(value) < 0.1:
            raise ValueError("Percentage must be at least 0.1 in either direction")
        return round(value, 2)


class SyncOverview(BaseModel):
    total_products: int
    by_status: dict[str, int]
    by_origin: dict[str, int]
