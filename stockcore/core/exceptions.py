"""
Custom Application Exceptions
"""


class StockCoreError(Exception):
    """Base exception for the stock control core"""

    def __init__(self, message: str = "", **context):
        super().__init__(message)
        self.message = message
        self.context = context


class ValidationError(StockCoreError):
    """Raised when input is malformed, e.g. a non-positive quantity"""
    pass


class NotFound(StockCoreError):
    """Raised when a product, order or check does not exist for the tenant"""
    pass


class InsufficientStock(StockCoreError):
    """Raised when an outbound movement exceeds stock on hand"""

    def __init__(self, product_id: str, requested, available):
        super().__init__(
            f"Insufficient stock for {product_id}. "
            f"Available: {available}, Requested: {requested}",
            product_id=product_id,
            requested=requested,
            available=available,
        )


class InvalidTransition(StockCoreError):
    """Raised when a purchase order transition is not in the state graph"""

    def __init__(self, current_status: str, target_status: str):
        super().__init__(
            f"Cannot move purchase order from '{current_status}' to '{target_status}'",
            current_status=current_status,
            target_status=target_status,
        )


class InvalidState(StockCoreError):
    """Raised when mutating a record that is frozen in its current status"""
    pass


class ConcurrencyConflict(StockCoreError):
    """Raised when a compare-and-set lost to a concurrent writer; retry the call"""
    pass
