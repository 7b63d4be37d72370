"""
Stock Control Services
Ledger, purchasing and inventory reconciliation services
"""

from .stock import StockLedgerService, LedgerResult, ProductStockService
from .purchasing import PurchaseOrderLifecycle, ReorderEngine
from .inventory import InventoryCheckReconciler

__all__ = [
    "StockLedgerService",
    "LedgerResult",
    "ProductStockService",
    "PurchaseOrderLifecycle",
    "ReorderEngine",
    "InventoryCheckReconciler",
]
