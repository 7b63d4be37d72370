"""
Product Stock Models
SQLAlchemy model for per-product stock and cost state
"""
from sqlalchemy import (
    Column, String, Integer, Numeric, DateTime, Boolean,
    CheckConstraint, Index, UniqueConstraint
)
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.sql import func

from stockcore.core.database import Base


class Product(Base):
    """
    Product stock state

    One row per tenant product. current_stock and average_cost are written
    only by the stock ledger and the inventory check reconciler; the version
    column makes every write a compare-and-set on the row.
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(String(36), nullable=False, index=True, doc="Owning tenant")
    product_id = Column(String(30), nullable=False, doc="Tenant-scoped product code")

    product_name = Column(String(100), nullable=False, default='', doc="Product name")
    unit = Column(String(10), nullable=False, default='kg', doc="Unit of measure")

    # Stock and cost
    current_stock = Column(Numeric(15, 3), nullable=False, default=0, doc="Quantity on hand")
    average_cost = Column(Numeric(15, 4), nullable=False, default=0, doc="Weighted average unit cost")

    # Replenishment settings (maintained by the product directory)
    reorder_level = Column(Numeric(15, 3), nullable=False, default=0, doc="Reorder threshold")
    lead_time_days = Column(Integer, nullable=False, default=0, doc="Lead time in days")
    preferred_supplier_id = Column(Integer, nullable=True, doc="Preferred supplier (weak reference)")
    is_active = Column(Boolean, nullable=False, default=True)

    version = Column(Integer, nullable=False, default=1, doc="Optimistic concurrency counter")

    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp())
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp())

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        UniqueConstraint("tenant_id", "product_id", name="uq_products_tenant_product"),
        CheckConstraint("current_stock >= 0", name="current_stock_non_negative"),
        CheckConstraint("average_cost >= 0", name="average_cost_non_negative"),
        CheckConstraint("reorder_level >= 0", name="reorder_level_non_negative"),
        CheckConstraint("lead_time_days >= 0", name="lead_time_non_negative"),
        Index("idx_products_tenant_active", "tenant_id", "is_active"),
    )

    @hybrid_property
    def total_value(self):
        """Stock valuation, always derived from quantity and average cost"""
        return self.current_stock * self.average_cost

    @property
    def needs_reorder(self) -> bool:
        return self.current_stock <= self.reorder_level

    def __repr__(self):
        return f"<Product {self.tenant_id}/{self.product_id} stock={self.current_stock} avg={self.average_cost}>"
