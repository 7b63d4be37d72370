"""
Stock Control SQLAlchemy Models
"""

# Import all models to ensure they are registered with SQLAlchemy
from .product import Product
from .supplier import Supplier
from .stock import StockMovement, MovementKind, MovementSource
from .purchase_order import PurchaseOrder, PurchaseOrderStatus, OPEN_ORDER_STATUSES
from .inventory_check import InventoryCheck, InventoryCheckLine, InventoryCheckStatus

__all__ = [
    "Product",
    "Supplier",
    "StockMovement",
    "MovementKind",
    "MovementSource",
    "PurchaseOrder",
    "PurchaseOrderStatus",
    "OPEN_ORDER_STATUSES",
    "InventoryCheck",
    "InventoryCheckLine",
    "InventoryCheckStatus",
]
