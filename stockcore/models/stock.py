"""
Stock Movement Ledger Models
Append-only history of every change to a product's stock state
"""
import enum

from sqlalchemy import (
    Column, String, Integer, Numeric, DateTime, Boolean, Text,
    ForeignKey, CheckConstraint, Index
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from stockcore.core.database import Base


class MovementKind(str, enum.Enum):
    """Ledger entry kinds"""
    OPENING = "opening"    # seeded stock/cost at product registration
    INBOUND = "inbound"
    OUTBOUND = "outbound"
    RECOUNT = "recount"    # physical count overwrite, quantity is the counted stock


class MovementSource(str, enum.Enum):
    """Business event that produced a movement"""
    REGISTRATION = "registration"
    IMPORT = "import"
    EXPORT = "export"
    PURCHASE_RECEIPT = "purchase_receipt"
    REVERSAL = "reversal"
    CORRECTION = "correction"
    INVENTORY_CHECK = "inventory_check"
    MANUAL = "manual"


class StockMovement(Base):
    """
    Stock ledger entry

    Movement facts (kind, quantity, unit_price) never change once written.
    A correction voids the entry and appends a replacement carrying the same
    sequence number; only the resulting-state snapshot columns are rewritten
    when a product's history is replayed.
    """
    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(String(36), nullable=False, doc="Owning tenant")
    product_ref = Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, doc="Product row")
    sequence = Column(Integer, nullable=False, doc="Position in the product's history")

    kind = Column(String(10), nullable=False, doc="opening, inbound, outbound or recount")
    quantity = Column(Numeric(15, 3), nullable=False, doc="Moved quantity, or counted stock for recounts")
    unit_price = Column(Numeric(15, 4), nullable=True, doc="Unit price for inbound and opening entries")

    source = Column(String(20), nullable=False, default=MovementSource.MANUAL.value)
    reference = Column(String(50), nullable=True, doc="Originating document, e.g. order number")
    notes = Column(Text, nullable=True)

    # Resulting state after this entry
    stock_after = Column(Numeric(15, 3), nullable=False)
    average_cost_after = Column(Numeric(15, 4), nullable=False)

    voided = Column(Boolean, nullable=False, default=False)
    replaces_id = Column(Integer, ForeignKey("stock_movements.id"), nullable=True, doc="Entry this one corrects")

    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp())

    product = relationship("Product")

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="quantity_non_negative"),
        CheckConstraint("unit_price IS NULL OR unit_price >= 0", name="unit_price_non_negative"),
        CheckConstraint("kind IN ('opening', 'inbound', 'outbound', 'recount')", name="valid_kind"),
        Index("idx_movements_product_sequence", "product_ref", "sequence"),
        Index("idx_movements_tenant_reference", "tenant_id", "reference"),
    )

    @property
    def product_id(self) -> str:
        """Tenant-scoped product code"""
        return self.product.product_id

    @property
    def is_movement(self) -> bool:
        return self.kind in (MovementKind.INBOUND.value, MovementKind.OUTBOUND.value)
