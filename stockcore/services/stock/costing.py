"""
Stock Costing
Weighted average cost arithmetic shared by the ledger and history replay
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Tuple

from stockcore.core.config import settings
from stockcore.core.exceptions import InsufficientStock
from stockcore.core.logging import get_logger
from stockcore.models.stock import MovementKind

logger = get_logger("business.costing")

ZERO = Decimal("0")


def _places(decimal_places: int) -> Decimal:
    return Decimal(1).scaleb(-decimal_places)


def quantize_quantity(value) -> Decimal:
    return Decimal(str(value)).quantize(_places(settings.QUANTITY_DECIMAL_PLACES), rounding=ROUND_HALF_UP)


def quantize_cost(value) -> Decimal:
    return Decimal(str(value)).quantize(_places(settings.COST_DECIMAL_PLACES), rounding=ROUND_HALF_UP)


def quantize_amount(value) -> Decimal:
    return Decimal(str(value)).quantize(_places(settings.CURRENCY_DECIMAL_PLACES), rounding=ROUND_HALF_UP)


def calculate_average_cost(
    current_qty: Decimal,
    current_avg_cost: Decimal,
    receipt_qty: Decimal,
    receipt_cost: Decimal
) -> Decimal:
    """
    Calculate new weighted average cost after receipt

    Formula: New Average = ((Current Qty x Current Avg) + (Receipt Qty x Receipt Cost))
                          / (Current Qty + Receipt Qty)

    If the resulting quantity is zero the current average is returned unchanged.

    Args:
        current_qty: Current quantity on hand
        current_avg_cost: Current average cost
        receipt_qty: Quantity being received
        receipt_cost: Cost of received quantity

    Returns:
        New weighted average cost
    """
    total_qty = current_qty + receipt_qty
    if total_qty == 0:
        return current_avg_cost

    current_value = current_qty * current_avg_cost
    receipt_value = receipt_qty * receipt_cost

    new_avg_cost = quantize_cost((current_value + receipt_value) / total_qty)

    logger.debug(f"Average cost calculation: current_qty={current_qty}, current_avg={current_avg_cost}, "
                 f"receipt_qty={receipt_qty}, receipt_cost={receipt_cost}, new_avg={new_avg_cost}")

    return new_avg_cost


def apply_inbound(stock: Decimal, avg_cost: Decimal, quantity: Decimal, unit_price: Decimal) -> Tuple[Decimal, Decimal]:
    """Return (new_stock, new_average_cost) after receiving quantity at unit_price"""
    new_cost = calculate_average_cost(stock, avg_cost, quantity, unit_price)
    return quantize_quantity(stock + quantity), new_cost


def apply_outbound(product_id: str, stock: Decimal, avg_cost: Decimal, quantity: Decimal) -> Tuple[Decimal, Decimal]:
    """Return (new_stock, average_cost) after issuing quantity; cost is unchanged"""
    if quantity > stock:
        raise InsufficientStock(product_id, requested=quantity, available=stock)
    return quantize_quantity(stock - quantity), avg_cost


def replay(product_id: str, entries: Iterable) -> Tuple[Decimal, Decimal]:
    """
    Fold a product's active ledger entries into its stock/cost state.

    Each entry's stock_after/average_cost_after snapshot is rewritten as the
    fold proceeds. Entries must be in history order.

    Raises:
        InsufficientStock: if an outbound entry would drive stock negative
    """
    stock: Decimal = ZERO
    avg_cost: Decimal = ZERO

    for entry in entries:
        quantity = Decimal(entry.quantity)
        price: Optional[Decimal] = entry.unit_price

        if entry.kind == MovementKind.OPENING.value:
            stock, avg_cost = quantize_quantity(quantity), quantize_cost(price or ZERO)
        elif entry.kind == MovementKind.RECOUNT.value:
            stock = quantize_quantity(quantity)
        elif entry.kind == MovementKind.INBOUND.value:
            stock, avg_cost = apply_inbound(stock, avg_cost, quantity, Decimal(price or ZERO))
        elif entry.kind == MovementKind.OUTBOUND.value:
            stock, avg_cost = apply_outbound(product_id, stock, avg_cost, quantity)
        else:
            raise ValueError(f"Unknown ledger entry kind: {entry.kind}")

        entry.stock_after = stock
        entry.average_cost_after = avg_cost

    return stock, avg_cost
