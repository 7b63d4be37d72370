"""
Main API Router - Consolidates all module routes
"""

from fastapi import APIRouter
from stockcore.api.v1 import stock, purchasing, inventory
from stockcore.schemas.common import ErrorResponse

api_router = APIRouter()

# Error bodies produced by the domain exception handlers
ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing tenant header"},
    404: {"model": ErrorResponse, "description": "Unknown product, order or check"},
    409: {"model": ErrorResponse, "description": "Insufficient stock, invalid state or concurrent change"},
    422: {"model": ErrorResponse, "description": "Invalid input"},
}

# Stock Control routes
api_router.include_router(stock.products.router, prefix="/stock/products", tags=["stock-products"],
                          responses=ERROR_RESPONSES)
api_router.include_router(stock.movements.router, prefix="/stock/movements", tags=["stock-movements"],
                          responses=ERROR_RESPONSES)

# Purchasing routes
api_router.include_router(purchasing.orders.router, prefix="/purchase-orders", tags=["purchase-orders"],
                          responses=ERROR_RESPONSES)
api_router.include_router(purchasing.reorder.router, prefix="/reorder", tags=["reorder"],
                          responses=ERROR_RESPONSES)

# Inventory Check routes
api_router.include_router(inventory.checks.router, prefix="/inventory-checks", tags=["inventory-checks"],
                          responses=ERROR_RESPONSES)
