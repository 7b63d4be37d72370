"""Purchasing API endpoints"""

from . import orders, reorder

__all__ = ["orders", "reorder"]
