"""Inventory Check Schemas"""

from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from stockcore.models.inventory_check import InventoryCheckStatus


class InventoryCheckLineIn(BaseModel):
    product_id: str = Field(..., min_length=1, max_length=30)
    actual_stock: Decimal = Field(..., ge=0)
    expected_stock: Optional[Decimal] = Field(None, ge=0, description="Defaults to current book stock")
    reason: Optional[str] = Field(None, max_length=200)


class InventoryCheckCreate(BaseModel):
    check_date: Optional[datetime] = None
    notes: Optional[str] = None
    lines: List[InventoryCheckLineIn] = Field(..., min_length=1)


class InventoryCheckUpdate(BaseModel):
    check_date: Optional[datetime] = None
    notes: Optional[str] = None
    lines: Optional[List[InventoryCheckLineIn]] = Field(None, min_length=1)


class InventoryCheckLineResponse(BaseModel):
    line_no: int
    product_id: str
    product_name: str
    unit: str
    expected_stock: Decimal
    actual_stock: Decimal
    difference: Decimal
    reason: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class InventoryCheckResponse(BaseModel):
    id: int
    check_code: str
    check_date: datetime
    status: InventoryCheckStatus
    notes: Optional[str] = None
    created_by: str
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    lines: List[InventoryCheckLineResponse]

    model_config = ConfigDict(from_attributes=True)
