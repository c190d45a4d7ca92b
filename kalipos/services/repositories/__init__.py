"""
Repository Pattern for Database Operations

- CatalogRepository: read-only item lookups
- OrderRepository: order headers and order lines
- CartRepository: saved carts and templates
"""
from .catalog_repo import CatalogRepository
from .order_repo import OrderRepository
from .cart_repo import CartRepository

__all__ = [
    "CatalogRepository",
    "OrderRepository",
    "CartRepository",
]
