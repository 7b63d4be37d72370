"""
Purchase Order Models
SQLAlchemy model for replenishment purchase orders
"""
import enum

from sqlalchemy import (
    Column, String, Integer, Numeric, DateTime, Boolean, Text,
    CheckConstraint, Index, UniqueConstraint, and_
)
from sqlalchemy.sql import func

from stockcore.core.database import Base


class PurchaseOrderStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    ORDERED = "ordered"
    RECEIVED = "received"
    CANCELLED = "cancelled"


OPEN_ORDER_STATUSES = (
    PurchaseOrderStatus.PENDING.value,
    PurchaseOrderStatus.APPROVED.value,
    PurchaseOrderStatus.ORDERED.value,
)


class PurchaseOrder(Base):
    """
    Purchase Order

    Status changes only through the purchase order lifecycle service.
    Orders in 'received' or 'cancelled' are frozen.
    """
    __tablename__ = "purchase_orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(String(36), nullable=False, doc="Owning tenant")
    order_number = Column(String(20), nullable=False, doc="PO-YYYYMMDD-NNN")

    product_id = Column(String(30), nullable=False, doc="Tenant-scoped product code")
    product_name = Column(String(100), nullable=False, default='', doc="Product name snapshot")
    supplier_id = Column(Integer, nullable=True, doc="Supplier (weak reference)")

    quantity = Column(Numeric(15, 3), nullable=False)
    unit_price = Column(Numeric(15, 4), nullable=False, default=0)
    total_amount = Column(Numeric(15, 2), nullable=False, default=0)

    status = Column(String(10), nullable=False, default=PurchaseOrderStatus.PENDING.value)
    auto_generated = Column(Boolean, nullable=False, default=False)

    notes = Column(Text, nullable=True)
    expected_delivery_date = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(String(50), nullable=False, default='system')

    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp())
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp())
    received_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("tenant_id", "order_number", name="uq_purchase_orders_tenant_number"),
        CheckConstraint("quantity > 0", name="quantity_positive"),
        CheckConstraint("unit_price >= 0", name="unit_price_non_negative"),
        CheckConstraint(
            "status IN ('pending', 'approved', 'ordered', 'received', 'cancelled')",
            name="valid_status"
        ),
        Index("idx_purchase_orders_tenant_status", "tenant_id", "status"),
        Index("idx_purchase_orders_tenant_product", "tenant_id", "product_id"),
        # At most one open auto-generated order per product
        Index(
            "uq_purchase_orders_open_auto",
            "tenant_id", "product_id",
            unique=True,
            sqlite_where=and_(auto_generated.is_(True), status.in_(OPEN_ORDER_STATUSES)),
            postgresql_where=and_(auto_generated.is_(True), status.in_(OPEN_ORDER_STATUSES)),
        ),
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in (PurchaseOrderStatus.RECEIVED.value, PurchaseOrderStatus.CANCELLED.value)

    def __repr__(self):
        return f"<PurchaseOrder {self.order_number} {self.product_id} {self.status}>"
