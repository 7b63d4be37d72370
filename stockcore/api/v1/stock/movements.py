"""Stock Movement API endpoints"""

from fastapi import APIRouter, Depends

from stockcore.api import deps
from stockcore.models.stock import MovementSource
from stockcore.schemas.stock import (
    StockMovementCreate, StockMovementReverse, StockMovementCorrection,
    LedgerResultResponse
)
from stockcore.services.stock import StockLedgerService

router = APIRouter()


@router.post("", response_model=LedgerResultResponse)
def apply_movement(
    movement_in: StockMovementCreate,
    ledger: StockLedgerService = Depends(deps.get_ledger),
):
    """
    Apply an inbound or outbound movement.

    Inbound movements require a unit price and update the weighted average
    cost; outbound movements fail with 409 when stock is insufficient.
    """
    return ledger.apply(
        movement_in.product_id,
        movement_in.quantity,
        movement_in.unit_price,
        movement_in.direction.value,
        source=MovementSource(movement_in.source),
        reference=movement_in.reference,
        notes=movement_in.notes,
    )


@router.post("/reverse", response_model=LedgerResultResponse)
def reverse_movement(
    reverse_in: StockMovementReverse,
    ledger: StockLedgerService = Depends(deps.get_ledger),
):
    """
    Apply the opposite of a previous movement. Approximate once other
    movements have interleaved; prefer PUT or DELETE on the movement.
    """
    return ledger.reverse(
        reverse_in.product_id,
        reverse_in.quantity,
        reverse_in.unit_price,
        reverse_in.direction.value,
        reference=reverse_in.reference,
    )


@router.put("/{movement_id}", response_model=LedgerResultResponse)
def correct_movement(
    movement_id: int,
    correction_in: StockMovementCorrection,
    ledger: StockLedgerService = Depends(deps.get_ledger),
):
    """
    Correct a past movement and recompute stock and cost from history.
    """
    return ledger.correct_movement(
        movement_id,
        quantity=correction_in.quantity,
        unit_price=correction_in.unit_price,
        notes=correction_in.notes,
    )


@router.delete("/{movement_id}", response_model=LedgerResultResponse)
def void_movement(
    movement_id: int,
    ledger: StockLedgerService = Depends(deps.get_ledger),
):
    return ledger.void_movement(movement_id)
