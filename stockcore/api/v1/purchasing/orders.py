"""Purchase Order API endpoints"""

from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from stockcore.api import deps
from stockcore.models.purchase_order import PurchaseOrderStatus
from stockcore.schemas.purchase_order import (
    PurchaseOrderCreate, PurchaseOrderUpdate, PurchaseOrderTransition,
    PurchaseOrderResponse, PurchaseOrderStats
)
from stockcore.services.purchasing import PurchaseOrderLifecycle

router = APIRouter()


@router.post("", response_model=PurchaseOrderResponse, status_code=status.HTTP_201_CREATED)
def create_purchase_order(
    order_in: PurchaseOrderCreate,
    lifecycle: PurchaseOrderLifecycle = Depends(deps.get_order_lifecycle),
):
    """
    Raise a manual purchase order.

    Created as 'pending' unless another open status is requested.
    """
    return lifecycle.create(order_in.model_dump(), created_by="api")


@router.get("", response_model=List[PurchaseOrderResponse])
def list_purchase_orders(
    order_status: Optional[PurchaseOrderStatus] = Query(None, alias="status"),
    product_id: Optional[str] = None,
    auto_generated: Optional[bool] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    lifecycle: PurchaseOrderLifecycle = Depends(deps.get_order_lifecycle),
):
    return lifecycle.list(
        status=order_status,
        product_id=product_id,
        auto_generated=auto_generated,
        skip=skip,
        limit=limit,
    )


@router.get("/stats", response_model=PurchaseOrderStats)
def purchase_order_stats(
    lifecycle: PurchaseOrderLifecycle = Depends(deps.get_order_lifecycle),
):
    return lifecycle.stats()


@router.get("/{order_id}", response_model=PurchaseOrderResponse)
def get_purchase_order(
    order_id: int,
    lifecycle: PurchaseOrderLifecycle = Depends(deps.get_order_lifecycle),
):
    return lifecycle.get(order_id)


@router.patch("/{order_id}", response_model=PurchaseOrderResponse)
def update_purchase_order(
    order_id: int,
    order_in: PurchaseOrderUpdate,
    lifecycle: PurchaseOrderLifecycle = Depends(deps.get_order_lifecycle),
):
    """
    Edit an order that is still pending or approved.
    """
    return lifecycle.update_details(order_id, order_in.model_dump(exclude_unset=True))


@router.post("/{order_id}/transition", response_model=PurchaseOrderResponse)
def transition_purchase_order(
    order_id: int,
    transition_in: PurchaseOrderTransition,
    lifecycle: PurchaseOrderLifecycle = Depends(deps.get_order_lifecycle),
):
    """
    Move an order along pending -> approved -> ordered -> received, or cancel it.

    Receiving an order books the incoming stock in the same transaction.
    """
    return lifecycle.transition(
        order_id,
        transition_in.status,
        expected_status=transition_in.expected_status,
        notes=transition_in.notes,
    )
