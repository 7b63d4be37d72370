"""Stock control core: ledger, reorder engine, purchase orders and inventory checks"""

__version__ = "1.0.0"
