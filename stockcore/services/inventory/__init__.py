"""Inventory Services - physical count reconciliation"""

from .reconciliation import InventoryCheckReconciler, summarize

__all__ = [
    "InventoryCheckReconciler",
    "summarize",
]
