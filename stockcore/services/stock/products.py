"""
Product Stock Service
Creates product stock state and maintains replenishment settings
"""
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from stockcore.core.exceptions import (
    ConcurrencyConflict, NotFound, ValidationError
)
from stockcore.core.logging import get_logger
from stockcore.models.product import Product
from stockcore.models.stock import MovementKind, MovementSource
from stockcore.models.supplier import Supplier
from stockcore.services.stock import costing
from stockcore.services.stock.ledger import StockLedgerService, to_decimal

logger = get_logger("business.products")

SETTINGS_FIELDS = ("product_name", "unit", "reorder_level", "lead_time_days", "preferred_supplier_id", "is_active")
LEDGER_FIELDS = ("current_stock", "average_cost", "total_value")


class ProductStockService:
    """Product registration and settings; stock figures belong to the ledger"""

    def __init__(self, db: Session, tenant_id: str):
        self.db = db
        self.tenant_id = tenant_id

    def get(self, product_id: str) -> Product:
        product = (
            self.db.query(Product)
            .filter(Product.tenant_id == self.tenant_id, Product.product_id == product_id)
            .first()
        )
        if not product:
            raise NotFound(f"Product {product_id} not found", product_id=product_id)
        return product

    def list(self, active_only: bool = False) -> List[Product]:
        query = self.db.query(Product).filter(Product.tenant_id == self.tenant_id)
        if active_only:
            query = query.filter(Product.is_active.is_(True))
        return query.order_by(Product.product_id).all()

    def register(self, product_data: Dict) -> Product:
        """
        Create a product's stock state, zeroed or seeded with an opening
        balance, and write the opening ledger entry.
        """
        product_id = (product_data.get("product_id") or "").strip()
        if not product_id:
            raise ValidationError("product_id is required")

        opening_stock = to_decimal(product_data.get("opening_stock") or 0, "opening_stock")
        opening_cost = to_decimal(product_data.get("opening_cost") or 0, "opening_cost")
        if opening_stock < 0 or opening_cost < 0:
            raise ValidationError("Opening stock and cost cannot be negative")

        fields = self._validated_settings(product_data)

        existing = (
            self.db.query(Product.id)
            .filter(Product.tenant_id == self.tenant_id, Product.product_id == product_id)
            .first()
        )
        if existing:
            raise ValidationError(f"Product {product_id} already exists", product_id=product_id)

        try:
            product = Product(
                tenant_id=self.tenant_id,
                product_id=product_id,
                current_stock=costing.quantize_quantity(opening_stock),
                average_cost=costing.quantize_cost(opening_cost),
                **fields,
            )
            self.db.add(product)
            self.db.flush()

            StockLedgerService(self.db, self.tenant_id).record_entry(
                product,
                MovementKind.OPENING,
                product.current_stock,
                product.average_cost,
                MovementSource.REGISTRATION,
            )
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise ValidationError(f"Product {product_id} already exists", product_id=product_id) from exc
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(product)
        logger.info(
            f"Registered product {self.tenant_id}/{product_id} "
            f"opening stock {product.current_stock} @ {product.average_cost}"
        )
        return product

    def update_settings(self, product_id: str, patch: Dict) -> Product:
        """Update replenishment settings; stock and cost cannot be patched"""
        forbidden = [name for name in LEDGER_FIELDS if name in patch]
        if forbidden:
            raise ValidationError(
                f"{', '.join(forbidden)} can only change through stock movements or inventory checks"
            )

        product = self.get(product_id)
        fields = self._validated_settings(patch, partial=True)
        try:
            for name, value in fields.items():
                setattr(product, name, value)
            self.db.commit()
        except StaleDataError as exc:
            self.db.rollback()
            raise ConcurrencyConflict(f"Product {product_id} changed concurrently") from exc
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(product)
        logger.info(f"Updated settings of {self.tenant_id}/{product_id}: {sorted(fields)}")
        return product

    def stock_status(self, limit: Optional[int] = 10) -> Dict:
        """
        Products at or below their reorder level, lowest stock first,
        with counts across all active products.
        """
        active = self.list(active_only=True)
        flagged = sorted((p for p in active if p.needs_reorder), key=lambda p: p.current_stock)

        out_of_stock = sum(1 for p in active if p.current_stock == 0)
        low_stock = sum(1 for p in active if p.current_stock > 0 and p.needs_reorder)

        return {
            "products": [
                {
                    "product_id": p.product_id,
                    "product_name": p.product_name,
                    "unit": p.unit,
                    "current_stock": p.current_stock,
                    "average_cost": p.average_cost,
                    "reorder_level": p.reorder_level,
                    "total_value": p.total_value,
                    "stock_status": "out_of_stock" if p.current_stock == 0 else "low_stock",
                }
                for p in (flagged[:limit] if limit else flagged)
            ],
            "summary": {
                "total_products": len(active),
                "out_of_stock": out_of_stock,
                "low_stock": low_stock,
                "in_stock": len(active) - out_of_stock - low_stock,
            },
        }

    def _validated_settings(self, data: Dict, partial: bool = False) -> Dict:
        fields = {}
        for name in SETTINGS_FIELDS:
            if name not in data or (partial and data[name] is None and name != "preferred_supplier_id"):
                continue
            value = data[name]
            if name == "reorder_level":
                value = to_decimal(value if value is not None else 0, "reorder_level")
                if value < 0:
                    raise ValidationError("Reorder level cannot be negative")
                value = costing.quantize_quantity(value)
            elif name == "lead_time_days":
                value = int(value or 0)
                if value < 0:
                    raise ValidationError("Lead time cannot be negative")
            elif name == "preferred_supplier_id" and value is not None:
                self._require_supplier(value)
            elif name == "is_active":
                value = bool(value)
            elif value is None:
                continue
            fields[name] = value
        return fields

    def _require_supplier(self, supplier_id: int):
        exists = (
            self.db.query(Supplier.id)
            .filter(Supplier.id == supplier_id, Supplier.tenant_id == self.tenant_id)
            .first()
        )
        if not exists:
            raise NotFound(f"Supplier {supplier_id} not found", supplier_id=supplier_id)


__all__ = ["ProductStockService"]
