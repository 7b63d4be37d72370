"""Stock Control API endpoints"""

from . import products, movements

__all__ = ["products", "movements"]
