"""
Supplier Models
Minimal view of the external supplier directory
"""
from sqlalchemy import Column, String, Integer, DateTime, Boolean, Index
from sqlalchemy.sql import func

from stockcore.core.database import Base


class Supplier(Base):
    """
    Supplier record

    Owned by the supplier directory. The stock core only reads it to
    validate supplier references and to pick a fallback supplier.
    """
    __tablename__ = "suppliers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(String(36), nullable=False, doc="Owning tenant")
    name = Column(String(100), nullable=False, default='', doc="Supplier name")
    contact_person = Column(String(60), default='', doc="Primary contact")
    phone = Column(String(20), default='', doc="Phone number")
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp())

    __table_args__ = (
        Index("idx_suppliers_tenant_active", "tenant_id", "is_active"),
    )
