"""Inventory Check API endpoints"""

from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from stockcore.api import deps
from stockcore.models.inventory_check import InventoryCheckStatus
from stockcore.schemas.common import SuccessResponse
from stockcore.schemas.inventory_check import (
    InventoryCheckCreate, InventoryCheckUpdate, InventoryCheckResponse
)
from stockcore.services.inventory import InventoryCheckReconciler

router = APIRouter()


@router.post("", response_model=InventoryCheckResponse, status_code=status.HTTP_201_CREATED)
def create_inventory_check(
    check_in: InventoryCheckCreate,
    reconciler: InventoryCheckReconciler = Depends(deps.get_reconciler),
):
    """
    Record a physical count as a draft check.
    """
    return reconciler.create(check_in.model_dump(exclude_none=True), created_by="api")


@router.get("", response_model=List[InventoryCheckResponse])
def list_inventory_checks(
    check_status: Optional[InventoryCheckStatus] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    reconciler: InventoryCheckReconciler = Depends(deps.get_reconciler),
):
    return reconciler.list(status=check_status, skip=skip, limit=limit)


@router.get("/{check_id}", response_model=InventoryCheckResponse)
def get_inventory_check(
    check_id: int,
    reconciler: InventoryCheckReconciler = Depends(deps.get_reconciler),
):
    return reconciler.get(check_id)


@router.put("/{check_id}", response_model=InventoryCheckResponse)
def update_inventory_check(
    check_id: int,
    check_in: InventoryCheckUpdate,
    reconciler: InventoryCheckReconciler = Depends(deps.get_reconciler),
):
    return reconciler.update(check_id, check_in.model_dump(exclude_unset=True))


@router.post("/{check_id}/complete", response_model=InventoryCheckResponse)
def complete_inventory_check(
    check_id: int,
    reconciler: InventoryCheckReconciler = Depends(deps.get_reconciler),
):
    """
    Overwrite book stock with the counted quantities.
    """
    return reconciler.complete(check_id)


@router.post("/{check_id}/cancel", response_model=InventoryCheckResponse)
def cancel_inventory_check(
    check_id: int,
    reconciler: InventoryCheckReconciler = Depends(deps.get_reconciler),
):
    return reconciler.cancel(check_id)


@router.delete("/{check_id}", response_model=SuccessResponse)
def delete_inventory_check(
    check_id: int,
    reconciler: InventoryCheckReconciler = Depends(deps.get_reconciler),
):
    reconciler.delete(check_id)
    return SuccessResponse(message=f"Inventory check {check_id} deleted")
