"""
Reorder Engine
Raises pending purchase orders for products at or below their reorder level
"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from stockcore.core.config import settings
from stockcore.core.logging import get_logger
from stockcore.models.product import Product
from stockcore.models.purchase_order import PurchaseOrderStatus
from stockcore.models.supplier import Supplier
from stockcore.services.purchasing.lifecycle import DuplicateOpenOrder, PurchaseOrderLifecycle
from stockcore.services.stock import costing
from stockcore.services.stock.products import ProductStockService

logger = get_logger("business.reorder")

REORDER_CREATOR = "reorder-engine"


def suggested_quantity(current_stock: Decimal, reorder_level: Decimal) -> Decimal:
    """
    Quantity that brings stock back up to the target level

    target = reorder_level x REORDER_TARGET_MULTIPLIER, never less than
    REORDER_MIN_QUANTITY.
    """
    target = Decimal(reorder_level) * settings.REORDER_TARGET_MULTIPLIER
    quantity = max(target - Decimal(current_stock), settings.REORDER_MIN_QUANTITY)
    return costing.quantize_quantity(quantity)


class ReorderEngine:
    """
    Reorder policy evaluation for one tenant

    Each product is handled in its own transaction so one failure never
    blocks the rest of the scan.
    """

    def __init__(self, db: Session, tenant_id: str):
        self.db = db
        self.tenant_id = tenant_id
        self.products = ProductStockService(db, tenant_id)
        self.orders = PurchaseOrderLifecycle(db, tenant_id)

    def candidates(self) -> List[Dict]:
        """Products needing reorder with the order the scan would raise"""
        result = []
        for product in self.products.list(active_only=True):
            if not product.needs_reorder:
                continue
            proposal = self._proposal(product)
            proposal["has_open_order"] = self.orders.has_open_auto_order(product.product_id)
            result.append(proposal)
        return result

    def scan(self) -> Dict:
        """
        Evaluate every active product and raise pending auto-generated orders

        Returns:
            {"scanned": int, "orders_created": [...], "skipped": [...], "errors": [...]}
        """
        product_ids = [
            row.product_id for row in
            self.db.query(Product.product_id)
            .filter(Product.tenant_id == self.tenant_id, Product.is_active.is_(True))
            .order_by(Product.product_id)
            .all()
        ]
        logger.info(f"Reorder scan started for {self.tenant_id}: {len(product_ids)} active products")

        created, skipped, errors = [], [], []
        for product_id in product_ids:
            try:
                product = self.products.get(product_id)
                if not product.needs_reorder:
                    continue

                if self.orders.has_open_auto_order(product_id):
                    skipped.append({"product_id": product_id, "reason": "open auto-generated order exists"})
                    continue

                proposal = self._proposal(product)
                order = self.orders.create(
                    {
                        "product_id": product_id,
                        "supplier_id": proposal["supplier_id"],
                        "quantity": proposal["suggested_quantity"],
                        "unit_price": proposal["unit_price"],
                        "status": PurchaseOrderStatus.PENDING,
                        "auto_generated": True,
                        "expected_delivery_date": proposal["expected_delivery_date"],
                        "notes": (
                            f"Auto-generated reorder: current stock {product.current_stock} "
                            f"{product.unit} at or below reorder level {product.reorder_level}, "
                            f"suggested quantity {proposal['suggested_quantity']}"
                        ),
                    },
                    created_by=REORDER_CREATOR,
                )
                created.append({
                    "product_id": product_id,
                    "order_id": order.id,
                    "order_number": order.order_number,
                    "quantity": order.quantity,
                    "supplier_id": order.supplier_id,
                })
            except DuplicateOpenOrder:
                skipped.append({"product_id": product_id, "reason": "open auto-generated order exists"})
            except Exception as exc:
                self.db.rollback()
                logger.error(f"Reorder scan failed for {self.tenant_id}/{product_id}: {exc}", exc_info=True)
                errors.append({"product_id": product_id, "error": str(exc)})

        logger.info(
            f"Reorder scan finished for {self.tenant_id}: {len(created)} created, "
            f"{len(skipped)} skipped, {len(errors)} errors"
        )
        return {
            "scanned": len(product_ids),
            "orders_created": created,
            "skipped": skipped,
            "errors": errors,
        }

    def _proposal(self, product: Product) -> Dict:
        lead_time = product.lead_time_days or settings.DEFAULT_LEAD_TIME_DAYS
        return {
            "product_id": product.product_id,
            "product_name": product.product_name,
            "unit": product.unit,
            "current_stock": product.current_stock,
            "reorder_level": product.reorder_level,
            "suggested_quantity": suggested_quantity(product.current_stock, product.reorder_level),
            "supplier_id": self._supplier_for(product),
            "unit_price": product.average_cost,
            "lead_time_days": lead_time,
            "expected_delivery_date": datetime.now(timezone.utc) + timedelta(days=lead_time),
        }

    def _supplier_for(self, product: Product) -> Optional[int]:
        """Preferred supplier while it is active, else the first active supplier"""
        active = self.db.query(Supplier.id).filter(
            Supplier.tenant_id == self.tenant_id, Supplier.is_active.is_(True)
        )
        if product.preferred_supplier_id:
            preferred = active.filter(Supplier.id == product.preferred_supplier_id).first()
            if preferred:
                return preferred.id
            logger.warning(
                f"Preferred supplier {product.preferred_supplier_id} of "
                f"{self.tenant_id}/{product.product_id} is inactive or missing, using fallback"
            )
        fallback = active.order_by(Supplier.id).first()
        return fallback.id if fallback else None
