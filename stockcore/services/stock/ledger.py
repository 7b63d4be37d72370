"""
Stock Ledger Service
The only writer of product quantity and weighted average cost for movements
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Callable, List, Optional, TypeVar

from sqlalchemy import func
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified
from sqlalchemy.orm.exc import StaleDataError

from stockcore.core.config import settings
from stockcore.core.exceptions import (
    ConcurrencyConflict, NotFound, StockCoreError, ValidationError
)
from stockcore.core.logging import get_logger
from stockcore.models.product import Product
from stockcore.models.stock import MovementKind, MovementSource, StockMovement
from stockcore.services.stock import costing

logger = get_logger("business.ledger")

T = TypeVar("T")

DIRECTIONS = (MovementKind.INBOUND.value, MovementKind.OUTBOUND.value)


@dataclass
class LedgerResult:
    """State of a product after a committed ledger operation"""
    product_id: str
    new_stock: Decimal
    new_average_cost: Decimal
    total_value: Decimal
    movement_id: Optional[int] = None


def to_decimal(value, field: str) -> Decimal:
    if value is None:
        raise ValidationError(f"{field} is required")
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number, got {value!r}")
    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return result


def normalize_direction(direction) -> str:
    value = getattr(direction, "value", direction)
    if value not in DIRECTIONS:
        raise ValidationError(f"direction must be one of {', '.join(DIRECTIONS)}, got {value!r}")
    return value


class StockLedgerService:
    """
    Stock ledger

    Every write is a compare-and-set on the product row's version counter.
    Public operations commit their own unit of work and retry lost
    compare-and-sets; the *_in_transaction variants flush only, so callers
    such as the purchase order lifecycle can commit the stock change together
    with their own state change.
    """

    def __init__(self, db: Session, tenant_id: str):
        self.db = db
        self.tenant_id = tenant_id

    # Reads

    def _get_product(self, product_id: str) -> Product:
        product = (
            self.db.query(Product)
            .filter(Product.tenant_id == self.tenant_id, Product.product_id == product_id)
            .execution_options(populate_existing=True)
            .first()
        )
        if not product:
            raise NotFound(f"Product {product_id} not found", product_id=product_id)
        return product

    def get_state(self, product_id: str) -> LedgerResult:
        product = self._get_product(product_id)
        return self._result(product)

    def get_movement(self, movement_id: int) -> StockMovement:
        entry = (
            self.db.query(StockMovement)
            .filter(StockMovement.id == movement_id, StockMovement.tenant_id == self.tenant_id)
            .first()
        )
        if not entry:
            raise NotFound(f"Movement {movement_id} not found", movement_id=movement_id)
        return entry

    def history(self, product_id: str, include_voided: bool = False) -> List[StockMovement]:
        """Ledger entries for a product in history order"""
        product = self._get_product(product_id)
        return self._entries(product, include_voided=include_voided)

    def _entries(self, product: Product, include_voided: bool = False) -> List[StockMovement]:
        query = self.db.query(StockMovement).filter(StockMovement.product_ref == product.id)
        if not include_voided:
            query = query.filter(StockMovement.voided.is_(False))
        return query.order_by(StockMovement.sequence, StockMovement.id).all()

    def _next_sequence(self, product: Product) -> int:
        current = (
            self.db.query(func.max(StockMovement.sequence))
            .filter(StockMovement.product_ref == product.id)
            .scalar()
        )
        return (current or 0) + 1

    # Writes inside a caller-owned transaction

    def record_entry(
        self,
        product: Product,
        kind: MovementKind,
        quantity: Decimal,
        unit_price: Optional[Decimal],
        source: MovementSource,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
        sequence: Optional[int] = None,
        replaces_id: Optional[int] = None,
    ) -> StockMovement:
        """Append a ledger entry snapshotting the product's current state"""
        entry = StockMovement(
            tenant_id=self.tenant_id,
            product_ref=product.id,
            sequence=sequence if sequence is not None else self._next_sequence(product),
            kind=kind.value,
            quantity=quantity,
            unit_price=unit_price,
            source=source.value,
            reference=reference,
            notes=notes,
            stock_after=product.current_stock,
            average_cost_after=product.average_cost,
            replaces_id=replaces_id,
        )
        self.db.add(entry)
        return entry

    def apply_in_transaction(
        self,
        product_id: str,
        quantity,
        unit_price,
        direction,
        source: MovementSource = MovementSource.MANUAL,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
        price_defaults_to_average: bool = False,
    ) -> LedgerResult:
        """
        Apply one movement and flush, without committing.

        Raises:
            ValidationError: non-positive quantity, missing or negative inbound price
            NotFound: unknown product for the tenant
            InsufficientStock: outbound quantity exceeds stock on hand
            ConcurrencyConflict: the product row changed since it was read
        """
        direction = normalize_direction(direction)
        qty = costing.quantize_quantity(to_decimal(quantity, "quantity"))
        if qty <= 0:
            raise ValidationError("Quantity must be greater than zero", quantity=qty)

        # Outbound movements carry no price; cost basis stays at the average
        price = None
        if direction == MovementKind.INBOUND.value and not (unit_price is None and price_defaults_to_average):
            price = to_decimal(unit_price, "unit_price")
            if price < 0:
                raise ValidationError("Unit price cannot be negative", unit_price=price)
            price = costing.quantize_cost(price)

        product = self._get_product(product_id)
        old_stock = product.current_stock

        if direction == MovementKind.INBOUND.value:
            if price is None:
                price = product.average_cost
            new_stock, new_cost = costing.apply_inbound(product.current_stock, product.average_cost, qty, price)
            kind = MovementKind.INBOUND
        else:
            new_stock, new_cost = costing.apply_outbound(product_id, product.current_stock, product.average_cost, qty)
            kind = MovementKind.OUTBOUND

        product.current_stock = new_stock
        product.average_cost = new_cost
        entry = self.record_entry(product, kind, qty, price, source, reference=reference, notes=notes)
        self._flush()

        logger.info(
            f"{kind.value} {qty} of {self.tenant_id}/{product_id} "
            f"stock {old_stock} -> {new_stock}, avg cost {new_cost}"
            + (f" ref {reference}" if reference else "")
        )
        return self._result(product, entry.id)

    def recount_in_transaction(
        self,
        product_id: str,
        counted_stock,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> LedgerResult:
        """
        Overwrite stock with a physically counted quantity and flush.

        Average cost is left unchanged. Writes a recount entry rather than a
        movement, so the difference never passes through cost averaging.
        """
        counted = to_decimal(counted_stock, "actual_stock")
        if counted < 0:
            raise ValidationError("Counted stock cannot be negative", actual_stock=counted)
        counted = costing.quantize_quantity(counted)

        product = self._get_product(product_id)
        old_stock = product.current_stock
        product.current_stock = counted
        # A recount that matches book stock still advances the version
        flag_modified(product, "current_stock")
        entry = self.record_entry(
            product, MovementKind.RECOUNT, counted, None,
            MovementSource.INVENTORY_CHECK, reference=reference, notes=notes,
        )
        self._flush()

        logger.info(
            f"recount of {self.tenant_id}/{product_id} stock {old_stock} -> {counted}"
            + (f" ref {reference}" if reference else "")
        )
        return self._result(product, entry.id)

    # Committed operations

    def apply(
        self,
        product_id: str,
        quantity,
        unit_price,
        direction,
        source: MovementSource = MovementSource.MANUAL,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> LedgerResult:
        """Apply an inbound or outbound movement and commit it"""
        return self._run_with_retry(
            lambda: self.apply_in_transaction(
                product_id, quantity, unit_price, direction,
                source=source, reference=reference, notes=notes,
            ),
            f"apply {direction} to {product_id}",
        )

    def reverse(
        self,
        product_id: str,
        quantity,
        unit_price,
        direction,
        reference: Optional[str] = None,
    ) -> LedgerResult:
        """
        Undo a movement by applying the opposite direction with the same
        quantity and price.

        This is not an exact inverse once other movements have interleaved,
        since weighted average cost cannot be unwound algebraically. Use
        correct_movement or void_movement to fix history exactly.
        """
        direction = normalize_direction(direction)
        opposite = (
            MovementKind.OUTBOUND.value if direction == MovementKind.INBOUND.value
            else MovementKind.INBOUND.value
        )
        return self._run_with_retry(
            lambda: self.apply_in_transaction(
                product_id, quantity, unit_price, opposite,
                source=MovementSource.REVERSAL, reference=reference,
                price_defaults_to_average=True,
            ),
            f"reverse {direction} on {product_id}",
        )

    def correct_movement(
        self,
        movement_id: int,
        quantity=None,
        unit_price=None,
        notes: Optional[str] = None,
    ) -> LedgerResult:
        """
        Replace a past movement's quantity and/or price and recompute the
        product's state from its full history.
        """
        def correct():
            entry = self._get_active_movement(movement_id)
            product = self._lock_product_of(entry)

            qty = entry.quantity if quantity is None else to_decimal(quantity, "quantity")
            qty = costing.quantize_quantity(qty)
            if qty <= 0:
                raise ValidationError("Quantity must be greater than zero", quantity=qty)

            price = entry.unit_price
            if entry.kind == MovementKind.INBOUND.value and unit_price is not None:
                price = to_decimal(unit_price, "unit_price")
                if price < 0:
                    raise ValidationError("Unit price cannot be negative", unit_price=price)
                price = costing.quantize_cost(price)

            entry.voided = True
            replacement = self.record_entry(
                product,
                MovementKind(entry.kind),
                qty,
                price,
                MovementSource(entry.source),
                reference=entry.reference,
                notes=notes if notes is not None else entry.notes,
                sequence=entry.sequence,
                replaces_id=entry.id,
            )
            self._flush()
            self._replay(product)
            logger.info(f"Corrected movement {movement_id} on {self.tenant_id}/{product.product_id}")
            return self._result(product, replacement.id)

        return self._run_with_retry(correct, f"correct movement {movement_id}")

    def void_movement(self, movement_id: int) -> LedgerResult:
        """Remove a past movement from history and recompute the product's state"""
        def void():
            entry = self._get_active_movement(movement_id)
            product = self._lock_product_of(entry)
            entry.voided = True
            self._flush()
            self._replay(product)
            logger.info(f"Voided movement {movement_id} on {self.tenant_id}/{product.product_id}")
            return self._result(product)

        return self._run_with_retry(void, f"void movement {movement_id}")

    def rebuild(self, product_id: str) -> LedgerResult:
        """Recompute a product's state from its ledger history"""
        def rebuild():
            product = self._get_product(product_id)
            self._replay(product)
            return self._result(product)

        return self._run_with_retry(rebuild, f"rebuild {product_id}")

    # Internals

    def _get_active_movement(self, movement_id: int) -> StockMovement:
        entry = self.get_movement(movement_id)
        if entry.voided:
            raise ValidationError(f"Movement {movement_id} has already been replaced or voided")
        if not entry.is_movement:
            raise ValidationError(f"Movement {movement_id} is a {entry.kind} entry and cannot be changed")
        return entry

    def _lock_product_of(self, entry: StockMovement) -> Product:
        return (
            self.db.query(Product)
            .filter(Product.id == entry.product_ref)
            .execution_options(populate_existing=True)
            .one()
        )

    def _replay(self, product: Product):
        stock, avg_cost = costing.replay(product.product_id, self._entries(product))
        product.current_stock = stock
        product.average_cost = avg_cost
        # Bump the version even when the state is unchanged
        flag_modified(product, "current_stock")
        self._flush()

    def _flush(self):
        try:
            self.db.flush()
        except StaleDataError as exc:
            raise ConcurrencyConflict("Product stock changed concurrently") from exc

    def _result(self, product: Product, movement_id: Optional[int] = None) -> LedgerResult:
        return LedgerResult(
            product_id=product.product_id,
            new_stock=product.current_stock,
            new_average_cost=product.average_cost,
            total_value=product.total_value,
            movement_id=movement_id,
        )

    def _run_with_retry(self, operation: Callable[[], T], label: str) -> T:
        attempts = settings.LEDGER_MAX_RETRIES
        for attempt in range(1, attempts + 1):
            try:
                result = operation()
                self.db.commit()
                return result
            except (ConcurrencyConflict, StaleDataError):
                self.db.rollback()
                logger.warning(f"Concurrent update during {label}, attempt {attempt}/{attempts}")
            except StockCoreError:
                self.db.rollback()
                raise
            except Exception:
                self.db.rollback()
                logger.error(f"Ledger operation failed: {label}", exc_info=True)
                raise
        raise ConcurrencyConflict(f"Gave up after {attempts} attempts: {label}")
