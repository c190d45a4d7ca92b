"""Cart package: line model and in-memory store."""
from .models import CartLine
from .service import CartStore

__all__ = [
    "CartLine",
    "CartStore",
]
