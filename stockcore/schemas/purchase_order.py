"""Purchase Order Schemas"""

from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, Dict
from datetime import datetime
from decimal import Decimal

from stockcore.models.purchase_order import PurchaseOrderStatus


class PurchaseOrderCreate(BaseModel):
    product_id: str = Field(..., min_length=1, max_length=30)
    quantity: Decimal = Field(..., gt=0)
    unit_price: Decimal = Field(default=0, ge=0)
    supplier_id: Optional[int] = None
    status: PurchaseOrderStatus = PurchaseOrderStatus.PENDING
    expected_delivery_date: Optional[datetime] = None
    notes: Optional[str] = None


class PurchaseOrderUpdate(BaseModel):
    quantity: Optional[Decimal] = Field(None, gt=0)
    unit_price: Optional[Decimal] = Field(None, ge=0)
    supplier_id: Optional[int] = None
    expected_delivery_date: Optional[datetime] = None
    notes: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class PurchaseOrderTransition(BaseModel):
    status: PurchaseOrderStatus = Field(..., description="Target status")
    expected_status: Optional[PurchaseOrderStatus] = Field(
        None, description="Status the caller last saw; the change fails if it moved on"
    )
    notes: Optional[str] = None


class PurchaseOrderResponse(BaseModel):
    id: int
    order_number: str
    product_id: str
    product_name: str
    supplier_id: Optional[int] = None
    quantity: Decimal
    unit_price: Decimal
    total_amount: Decimal
    status: PurchaseOrderStatus
    auto_generated: bool
    notes: Optional[str] = None
    expected_delivery_date: Optional[datetime] = None
    created_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    received_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PurchaseOrderStats(BaseModel):
    total_orders: int
    by_status: Dict[str, int]
    open_order_value: Decimal
