"""Purchasing Services - purchase order lifecycle and reorder engine"""

from .lifecycle import PurchaseOrderLifecycle, ALLOWED_TRANSITIONS, DuplicateOpenOrder
from .reorder import ReorderEngine

__all__ = [
    "PurchaseOrderLifecycle",
    "ALLOWED_TRANSITIONS",
    "DuplicateOpenOrder",
    "ReorderEngine",
]
