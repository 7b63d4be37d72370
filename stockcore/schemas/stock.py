"""Stock Control Schemas - products, movements and ledger results"""

from pydantic import BaseModel, Field, field_validator, ConfigDict
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from enum import Enum


# Enums
class MovementDirection(str, Enum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"


# Sources a caller may record on a manual movement
CALLER_SOURCES = ("import", "export", "manual")


# Product Schemas
class ProductBase(BaseModel):
    product_name: str = Field("", max_length=100)
    unit: str = Field("kg", min_length=1, max_length=10)
    reorder_level: Decimal = Field(default=0, ge=0)
    lead_time_days: int = Field(default=0, ge=0)
    preferred_supplier_id: Optional[int] = None
    is_active: bool = True


class ProductCreate(ProductBase):
    product_id: str = Field(..., min_length=1, max_length=30)
    opening_stock: Decimal = Field(default=0, ge=0)
    opening_cost: Decimal = Field(default=0, ge=0)


class ProductUpdate(BaseModel):
    product_name: Optional[str] = Field(None, max_length=100)
    unit: Optional[str] = Field(None, min_length=1, max_length=10)
    reorder_level: Optional[Decimal] = Field(None, ge=0)
    lead_time_days: Optional[int] = Field(None, ge=0)
    preferred_supplier_id: Optional[int] = None
    is_active: Optional[bool] = None

    # Stock and cost are rejected rather than ignored
    model_config = ConfigDict(extra="forbid")


class ProductResponse(ProductBase):
    id: int
    tenant_id: str
    product_id: str
    current_stock: Decimal
    average_cost: Decimal
    total_value: Decimal
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class StockStatusItem(BaseModel):
    product_id: str
    product_name: str
    unit: str
    current_stock: Decimal
    average_cost: Decimal
    reorder_level: Decimal
    total_value: Decimal
    stock_status: str


class StockStatusSummary(BaseModel):
    total_products: int
    out_of_stock: int
    low_stock: int
    in_stock: int


class StockStatusResponse(BaseModel):
    products: List[StockStatusItem]
    summary: StockStatusSummary


# Movement Schemas
class StockMovementCreate(BaseModel):
    product_id: str = Field(..., min_length=1, max_length=30)
    quantity: Decimal = Field(..., gt=0)
    unit_price: Optional[Decimal] = Field(None, ge=0)
    direction: MovementDirection
    source: str = "manual"
    reference: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None

    @field_validator('source')
    @classmethod
    def validate_source(cls, v):
        if v not in CALLER_SOURCES:
            raise ValueError(f"source must be one of {', '.join(CALLER_SOURCES)}")
        return v


class StockMovementReverse(BaseModel):
    product_id: str = Field(..., min_length=1, max_length=30)
    quantity: Decimal = Field(..., gt=0)
    unit_price: Optional[Decimal] = Field(None, ge=0)
    direction: MovementDirection = Field(..., description="Direction of the movement being reversed")
    reference: Optional[str] = Field(None, max_length=50)


class StockMovementCorrection(BaseModel):
    quantity: Optional[Decimal] = Field(None, gt=0)
    unit_price: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = None


class StockMovementResponse(BaseModel):
    id: int
    product_id: str
    sequence: int
    kind: str
    quantity: Decimal
    unit_price: Optional[Decimal] = None
    source: str
    reference: Optional[str] = None
    notes: Optional[str] = None
    stock_after: Decimal
    average_cost_after: Decimal
    voided: bool
    replaces_id: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class LedgerResultResponse(BaseModel):
    product_id: str
    new_stock: Decimal
    new_average_cost: Decimal
    total_value: Decimal
    movement_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)
