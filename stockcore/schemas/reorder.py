"""Reorder Engine Schemas"""

from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


class ReorderCandidate(BaseModel):
    product_id: str
    product_name: str
    unit: str
    current_stock: Decimal
    reorder_level: Decimal
    suggested_quantity: Decimal
    supplier_id: Optional[int] = None
    unit_price: Decimal
    lead_time_days: int
    expected_delivery_date: datetime
    has_open_order: bool


class CreatedOrder(BaseModel):
    product_id: str
    order_id: int
    order_number: str
    quantity: Decimal
    supplier_id: Optional[int] = None


class SkippedProduct(BaseModel):
    product_id: str
    reason: str


class ScanError(BaseModel):
    product_id: str
    error: str


class ReorderScanResult(BaseModel):
    scanned: int
    orders_created: List[CreatedOrder]
    skipped: List[SkippedProduct]
    errors: List[ScanError]
