"""Inventory Check API endpoints"""

from . import checks

__all__ = ["checks"]
