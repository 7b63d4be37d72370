"""Product Stock API endpoints"""

from fastapi import APIRouter, Depends, Query, status
from typing import List

from stockcore.api import deps
from stockcore.schemas.stock import (
    ProductCreate, ProductUpdate, ProductResponse,
    StockStatusResponse, StockMovementResponse
)
from stockcore.services.stock import ProductStockService, StockLedgerService

router = APIRouter()


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def register_product(
    product_in: ProductCreate,
    service: ProductStockService = Depends(deps.get_product_service),
):
    """
    Register a product's stock state with an optional opening balance.
    """
    return service.register(product_in.model_dump())


@router.get("", response_model=List[ProductResponse])
def list_products(
    active_only: bool = False,
    service: ProductStockService = Depends(deps.get_product_service),
):
    return service.list(active_only=active_only)


@router.get("/status", response_model=StockStatusResponse)
def stock_status(
    limit: int = Query(10, ge=1, le=1000),
    service: ProductStockService = Depends(deps.get_product_service),
):
    """
    Products at or below their reorder level, lowest stock first.
    """
    return service.stock_status(limit=limit)


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(
    product_id: str,
    service: ProductStockService = Depends(deps.get_product_service),
):
    return service.get(product_id)


@router.patch("/{product_id}", response_model=ProductResponse)
def update_product_settings(
    product_id: str,
    product_in: ProductUpdate,
    service: ProductStockService = Depends(deps.get_product_service),
):
    """
    Update reorder level, lead time, supplier and other settings.

    Stock and cost are not accepted here.
    """
    return service.update_settings(product_id, product_in.model_dump(exclude_unset=True))


@router.get("/{product_id}/movements", response_model=List[StockMovementResponse])
def product_movement_history(
    product_id: str,
    include_voided: bool = False,
    ledger: StockLedgerService = Depends(deps.get_ledger),
):
    """
    Ledger entries of a product in history order.
    """
    return ledger.history(product_id, include_voided=include_voided)
