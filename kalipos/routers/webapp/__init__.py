"""WebApp API Router.

POS Mini App endpoints. Combines the sub-routers into a single router with
prefix /api/webapp.
"""

from fastapi import APIRouter

from .cart import router as cart_router
from .carts import router as carts_router
from .catalog import router as catalog_router

router = APIRouter(prefix="/api/webapp", tags=["webapp"])

router.include_router(catalog_router)
router.include_router(cart_router)
router.include_router(carts_router)

__all__ = ["router"]
