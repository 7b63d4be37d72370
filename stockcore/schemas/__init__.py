"""
Stock Control Pydantic Schemas
Request/Response models for the stock control API
"""

from .common import ErrorResponse, SuccessResponse, HealthResponse
from .stock import (
    MovementDirection, ProductCreate, ProductUpdate, ProductResponse,
    StockStatusResponse, StockMovementCreate, StockMovementReverse,
    StockMovementCorrection, StockMovementResponse, LedgerResultResponse
)
from .purchase_order import (
    PurchaseOrderCreate, PurchaseOrderUpdate, PurchaseOrderTransition,
    PurchaseOrderResponse, PurchaseOrderStats
)
from .reorder import ReorderCandidate, ReorderScanResult
from .inventory_check import (
    InventoryCheckLineIn, InventoryCheckCreate, InventoryCheckUpdate,
    InventoryCheckResponse
)
