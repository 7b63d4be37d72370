"""
API Dependencies
Common dependencies for API endpoints
"""

from typing import Optional
from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from stockcore.core.config import settings
from stockcore.core.database import get_db
from stockcore.services.inventory import InventoryCheckReconciler
from stockcore.services.purchasing import PurchaseOrderLifecycle, ReorderEngine
from stockcore.services.stock import ProductStockService, StockLedgerService


def get_tenant_id(
    tenant_id: Optional[str] = Header(None, alias=settings.TENANT_HEADER)
) -> str:
    """
    Tenant of the request, taken from the tenant header.
    """
    if not tenant_id or not tenant_id.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Missing {settings.TENANT_HEADER} header",
        )
    return tenant_id.strip()


def get_product_service(
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
) -> ProductStockService:
    return ProductStockService(db, tenant_id)


def get_ledger(
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
) -> StockLedgerService:
    return StockLedgerService(db, tenant_id)


def get_order_lifecycle(
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
) -> PurchaseOrderLifecycle:
    return PurchaseOrderLifecycle(db, tenant_id)


def get_reorder_engine(
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
) -> ReorderEngine:
    return ReorderEngine(db, tenant_id)


def get_reconciler(
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
) -> InventoryCheckReconciler:
    return InventoryCheckReconciler(db, tenant_id)
