"""
Inventory Check Models
Physical count documents and their count lines
"""
import enum

from sqlalchemy import (
    Column, String, Integer, Numeric, DateTime, Text,
    ForeignKey, CheckConstraint, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from stockcore.core.database import Base


class InventoryCheckStatus(str, enum.Enum):
    DRAFT = "draft"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class InventoryCheck(Base):
    """
    Inventory Check header

    Editable while 'draft'; frozen once 'completed' or 'cancelled'.
    """
    __tablename__ = "inventory_checks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(String(36), nullable=False, doc="Owning tenant")
    check_code = Column(String(20), nullable=False, doc="KK-YYYYMMDD-NNN")
    check_date = Column(DateTime(timezone=True), nullable=False, server_default=func.current_timestamp())
    status = Column(String(10), nullable=False, default=InventoryCheckStatus.DRAFT.value)
    notes = Column(Text, nullable=True)
    created_by = Column(String(50), nullable=False, default='system')

    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp())
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp())
    completed_at = Column(DateTime(timezone=True), nullable=True)

    lines = relationship(
        "InventoryCheckLine",
        back_populates="check",
        cascade="all, delete-orphan",
        order_by="InventoryCheckLine.line_no",
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "check_code", name="uq_inventory_checks_tenant_code"),
        CheckConstraint("status IN ('draft', 'completed', 'cancelled')", name="valid_status"),
        Index("idx_inventory_checks_tenant_status", "tenant_id", "status"),
    )

    @property
    def is_frozen(self) -> bool:
        return self.status != InventoryCheckStatus.DRAFT.value


class InventoryCheckLine(Base):
    """Inventory Check line - book stock versus counted stock for one product"""
    __tablename__ = "inventory_check_lines"

    id = Column(Integer, primary_key=True, autoincrement=True)
    check_id = Column(Integer, ForeignKey("inventory_checks.id", ondelete="CASCADE"), nullable=False)
    line_no = Column(Integer, nullable=False)

    product_id = Column(String(30), nullable=False, doc="Tenant-scoped product code")
    product_name = Column(String(100), nullable=False, default='', doc="Snapshot for history")
    unit = Column(String(10), nullable=False, default='')

    expected_stock = Column(Numeric(15, 3), nullable=False, doc="Book stock when counted")
    actual_stock = Column(Numeric(15, 3), nullable=False, doc="Physically counted stock")
    difference = Column(Numeric(15, 3), nullable=False, default=0)
    reason = Column(String(200), nullable=True)

    check = relationship("InventoryCheck", back_populates="lines")

    __table_args__ = (
        CheckConstraint("actual_stock >= 0", name="actual_stock_non_negative"),
        Index("idx_inventory_check_lines_check", "check_id", "line_no"),
    )
