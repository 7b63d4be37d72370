"""Stock Control Services - ledger, costing and product stock state"""

from .ledger import StockLedgerService, LedgerResult
from .products import ProductStockService

__all__ = [
    "StockLedgerService",
    "LedgerResult",
    "ProductStockService",
]
