"""
Purchase Order Lifecycle Service
State machine for replenishment orders; receipt drives the stock ledger
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stockcore.core.config import settings
from stockcore.core.exceptions import (
    ConcurrencyConflict, InvalidState, InvalidTransition, NotFound,
    StockCoreError, ValidationError
)
from stockcore.core.logging import get_logger
from stockcore.models.purchase_order import (
    OPEN_ORDER_STATUSES, PurchaseOrder, PurchaseOrderStatus
)
from stockcore.models.stock import MovementKind, MovementSource
from stockcore.models.supplier import Supplier
from stockcore.services.numbering import commit_with_code
from stockcore.services.stock import costing
from stockcore.services.stock.ledger import StockLedgerService, to_decimal
from stockcore.services.stock.products import ProductStockService

logger = get_logger("business.purchase_orders")

S = PurchaseOrderStatus

# current status -> statuses reachable in one step
ALLOWED_TRANSITIONS = {
    S.PENDING: frozenset({S.APPROVED, S.CANCELLED}),
    S.APPROVED: frozenset({S.ORDERED, S.CANCELLED}),
    S.ORDERED: frozenset({S.RECEIVED, S.CANCELLED}),
    S.RECEIVED: frozenset(),
    S.CANCELLED: frozenset(),
}

INITIAL_STATUSES = frozenset({S.PENDING, S.APPROVED, S.ORDERED})
EDITABLE_STATUSES = frozenset({S.PENDING, S.APPROVED})
DETAIL_FIELDS = ("quantity", "unit_price", "supplier_id", "expected_delivery_date", "notes")


def parse_status(value) -> PurchaseOrderStatus:
    try:
        return PurchaseOrderStatus(getattr(value, "value", value))
    except ValueError:
        raise ValidationError(f"Unknown purchase order status {value!r}")


def can_transition(current, target) -> bool:
    return parse_status(target) in ALLOWED_TRANSITIONS[parse_status(current)]


class DuplicateOpenOrder(ValidationError):
    """An open auto-generated order already exists for the product"""
    pass


class PurchaseOrderLifecycle:
    """
    Purchase order lifecycle

    pending -> approved -> ordered -> received, and any open status ->
    cancelled. Every status change is a compare-and-set on the status the
    caller observed. The move to 'received' applies the incoming stock in the
    same transaction, so stock and status commit together or not at all.
    """

    def __init__(self, db: Session, tenant_id: str, ledger: Optional[StockLedgerService] = None):
        self.db = db
        self.tenant_id = tenant_id
        self.ledger = ledger or StockLedgerService(db, tenant_id)

    # Queries

    def get(self, order_id: int) -> PurchaseOrder:
        order = (
            self.db.query(PurchaseOrder)
            .filter(PurchaseOrder.id == order_id, PurchaseOrder.tenant_id == self.tenant_id)
            .execution_options(populate_existing=True)
            .first()
        )
        if not order:
            raise NotFound(f"Purchase order {order_id} not found", order_id=order_id)
        return order

    def list(
        self,
        status: Optional[str] = None,
        product_id: Optional[str] = None,
        auto_generated: Optional[bool] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[PurchaseOrder]:
        query = self.db.query(PurchaseOrder).filter(PurchaseOrder.tenant_id == self.tenant_id)
        if status:
            query = query.filter(PurchaseOrder.status == parse_status(status).value)
        if product_id:
            query = query.filter(PurchaseOrder.product_id == product_id)
        if auto_generated is not None:
            query = query.filter(PurchaseOrder.auto_generated.is_(auto_generated))
        return query.order_by(PurchaseOrder.created_at.desc(), PurchaseOrder.id.desc()).offset(skip).limit(limit).all()

    def has_open_auto_order(self, product_id: str) -> bool:
        return (
            self.db.query(PurchaseOrder.id)
            .filter(
                PurchaseOrder.tenant_id == self.tenant_id,
                PurchaseOrder.product_id == product_id,
                PurchaseOrder.auto_generated.is_(True),
                PurchaseOrder.status.in_(OPEN_ORDER_STATUSES),
            )
            .first()
            is not None
        )

    def stats(self) -> Dict:
        """Order counts per status and the value still on order"""
        rows = (
            self.db.query(PurchaseOrder.status, func.count(PurchaseOrder.id), func.sum(PurchaseOrder.total_amount))
            .filter(PurchaseOrder.tenant_id == self.tenant_id)
            .group_by(PurchaseOrder.status)
            .all()
        )
        by_status = {status.value: 0 for status in PurchaseOrderStatus}
        open_value = Decimal("0")
        for status, count, amount in rows:
            by_status[status] = count
            if status in OPEN_ORDER_STATUSES:
                open_value += Decimal(str(amount or 0))

        return {
            "total_orders": sum(by_status.values()),
            "by_status": by_status,
            "open_order_value": costing.quantize_amount(open_value),
        }

    # Commands

    def create(self, order_data: Dict, created_by: str = "system") -> PurchaseOrder:
        """
        Create a purchase order in 'pending', or in the caller's requested
        non-terminal status for manually raised orders.
        """
        product_id = order_data.get("product_id")
        if not product_id:
            raise ValidationError("product_id is required")

        quantity = costing.quantize_quantity(to_decimal(order_data.get("quantity"), "quantity"))
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than zero", quantity=quantity)
        unit_price = to_decimal(order_data.get("unit_price") or 0, "unit_price")
        if unit_price < 0:
            raise ValidationError("Unit price cannot be negative", unit_price=unit_price)

        status = parse_status(order_data.get("status") or S.PENDING)
        if status not in INITIAL_STATUSES:
            raise ValidationError(f"Purchase orders cannot be created as '{status.value}'")

        product = ProductStockService(self.db, self.tenant_id).get(product_id)
        supplier_id = order_data.get("supplier_id")
        if supplier_id is not None:
            self._require_supplier(supplier_id)

        auto_generated = bool(order_data.get("auto_generated", False))
        unit_price = costing.quantize_cost(unit_price)

        def build(order_number: str) -> PurchaseOrder:
            order = PurchaseOrder(
                tenant_id=self.tenant_id,
                order_number=order_number,
                product_id=product.product_id,
                product_name=product.product_name,
                supplier_id=supplier_id,
                quantity=quantity,
                unit_price=unit_price,
                total_amount=costing.quantize_amount(quantity * unit_price),
                status=status.value,
                auto_generated=auto_generated,
                notes=order_data.get("notes"),
                expected_delivery_date=order_data.get("expected_delivery_date"),
                created_by=created_by,
            )
            self.db.add(order)
            return order

        try:
            order = commit_with_code(
                self.db,
                PurchaseOrder.order_number,
                PurchaseOrder.tenant_id,
                self.tenant_id,
                settings.ORDER_NUMBER_PREFIX,
                build,
                "purchase order",
            )
        except IntegrityError as exc:
            if auto_generated and self.has_open_auto_order(product_id):
                raise DuplicateOpenOrder(
                    f"Product {product_id} already has an open auto-generated order",
                    product_id=product_id,
                ) from exc
            raise

        self.db.refresh(order)
        logger.info(
            f"Created purchase order {order.order_number} for {self.tenant_id}/{product_id}: "
            f"{order.quantity} @ {order.unit_price} ({order.status}, auto={order.auto_generated})"
        )
        return order

    def transition(
        self,
        order_id: int,
        target_status,
        expected_status=None,
        notes: Optional[str] = None,
    ) -> PurchaseOrder:
        """
        Move an order to target_status.

        Raises:
            InvalidTransition: target is not reachable from the current status
            ConcurrencyConflict: the status changed since it was observed
            InsufficientStock / ValidationError: from the ledger on receipt
        """
        target = parse_status(target_status)
        order = self.get(order_id)
        current = parse_status(order.status)

        if expected_status is not None and parse_status(expected_status) != current:
            raise ConcurrencyConflict(
                f"Purchase order {order.order_number} is '{current.value}', "
                f"expected '{parse_status(expected_status).value}'"
            )
        if target not in ALLOWED_TRANSITIONS[current]:
            raise InvalidTransition(current.value, target.value)

        values = {"status": target.value}
        if notes:
            values["notes"] = notes
        if target == S.RECEIVED:
            values["received_at"] = datetime.now(timezone.utc)

        try:
            if target == S.RECEIVED:
                self.ledger.apply_in_transaction(
                    order.product_id,
                    order.quantity,
                    order.unit_price,
                    MovementKind.INBOUND,
                    source=MovementSource.PURCHASE_RECEIPT,
                    reference=order.order_number,
                )
            self._compare_and_set(order, current, values)
            self.db.commit()
        except StockCoreError as exc:
            self.db.rollback()
            logger.warning(f"Transition of {order_id} to {target.value} rejected: {exc}")
            raise
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(order)
        logger.info(f"Purchase order {order.order_number}: {current.value} -> {target.value}")
        return order

    def update_details(self, order_id: int, patch: Dict) -> PurchaseOrder:
        """Edit quantity, price, supplier, delivery date or notes of an unplaced order"""
        order = self.get(order_id)
        current = parse_status(order.status)
        if current not in EDITABLE_STATUSES:
            raise InvalidState(
                f"Purchase order {order.order_number} is '{current.value}' and can no longer be edited"
            )

        values = {}
        for name in DETAIL_FIELDS:
            if name in patch:
                values[name] = patch[name]

        if "quantity" in values:
            quantity = costing.quantize_quantity(to_decimal(values["quantity"], "quantity"))
            if quantity <= 0:
                raise ValidationError("Quantity must be greater than zero", quantity=quantity)
            values["quantity"] = quantity
        if "unit_price" in values:
            unit_price = to_decimal(values["unit_price"], "unit_price")
            if unit_price < 0:
                raise ValidationError("Unit price cannot be negative", unit_price=unit_price)
            values["unit_price"] = costing.quantize_cost(unit_price)
        if values.get("supplier_id") is not None:
            self._require_supplier(values["supplier_id"])

        quantity = values.get("quantity", order.quantity)
        unit_price = values.get("unit_price", order.unit_price)
        values["total_amount"] = costing.quantize_amount(quantity * unit_price)

        try:
            self._compare_and_set(order, current, values)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(order)
        logger.info(f"Updated purchase order {order.order_number}: {sorted(values)}")
        return order

    # Internals

    def _compare_and_set(self, order: PurchaseOrder, expected: PurchaseOrderStatus, values: Dict):
        result = self.db.execute(
            update(PurchaseOrder)
            .where(
                PurchaseOrder.id == order.id,
                PurchaseOrder.tenant_id == self.tenant_id,
                PurchaseOrder.status == expected.value,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConcurrencyConflict(
                f"Purchase order {order.order_number} changed concurrently"
            )

    def _require_supplier(self, supplier_id: int):
        exists = (
            self.db.query(Supplier.id)
            .filter(Supplier.id == supplier_id, Supplier.tenant_id == self.tenant_id)
            .first()
        )
        if not exists:
            raise NotFound(f"Supplier {supplier_id} not found", supplier_id=supplier_id)
