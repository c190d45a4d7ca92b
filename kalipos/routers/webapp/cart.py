"""
WebApp Cart Router

Cart lines, order placement and order history. Cart mutations answer with
the whole cart; order placement answers with a notice.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from kalipos.auth import TelegramUser, verify_telegram_auth
from kalipos.errors import ERROR_ITEM_NOT_FOUND
from kalipos.routers.deps import get_session_registry, get_storefront_session
from kalipos.services.quantity import to_number
from kalipos.storefront import SessionRegistry, StorefrontSession
from .models import AddCartItemRequest, UpdateCartItemRequest

router = APIRouter(tags=["webapp-cart"])


@router.get("/cart")
async def get_cart(session: StorefrontSession = Depends(get_storefront_session)):
    return session.cart.to_dict()


@router.post("/cart/items")
async def add_cart_item(request: AddCartItemRequest, session: StorefrontSession = Depends(get_storefront_session)):
    """Add a catalog item; repeated adds merge into one line."""
    item = session.find_item(request.item_name)
    if item is None:
        raise HTTPException(status_code=404, detail=ERROR_ITEM_NOT_FOUND)
    if request.quantity <= 0:
        raise HTTPException(status_code=400, detail="Quantity must be positive")

    notice = session.add_item(item, request.quantity)
    return {"notice": notice.to_dict(), "cart": session.cart.to_dict()}


@router.patch("/cart/items/{line_id}")
async def update_cart_item(
    line_id: str,
    request: UpdateCartItemRequest,
    session: StorefrontSession = Depends(get_storefront_session),
):
    """Set a line's quantity (0 or less removes the line)."""
    if session.cart.get_line(line_id) is None:
        raise HTTPException(status_code=404, detail="Cart line not found")
    session.cart.update_quantity(line_id, request.quantity)
    return session.cart.to_dict()


@router.delete("/cart/items/{line_id}")
async def remove_cart_item(line_id: str, session: StorefrontSession = Depends(get_storefront_session)):
    session.cart.remove_item(line_id)
    return session.cart.to_dict()


@router.delete("/cart")
async def clear_cart(session: StorefrontSession = Depends(get_storefront_session)):
    session.cart.clear_cart()
    return session.cart.to_dict()


@router.post("/orders")
async def create_order(session: StorefrontSession = Depends(get_storefront_session)):
    """Submit the cart as one order. Failures come back as notices, not HTTP errors."""
    notice = await session.place_order()
    return {"notice": notice.to_dict(), "cart": session.cart.to_dict()}


@router.get("/orders")
async def list_orders(
    limit: Optional[int] = Query(None, ge=1, le=500),
    session: StorefrontSession = Depends(get_storefront_session),
):
    """Order history with lines, newest first."""
    orders, notice = await session.order_history(limit=limit)
    response = {
        "orders": [
            {
                **entry.order.model_dump(mode="json"),
                "items": [
                    {"item_name": line.item_name, "quantity": to_number(line.quantity), "category": line.category}
                    for line in entry.lines
                ],
            }
            for entry in orders
        ],
        "count": len(orders),
    }
    if notice is not None:
        response["notice"] = notice.to_dict()
    return response


@router.delete("/session")
async def reset_session(
    user: TelegramUser = Depends(verify_telegram_auth),
    registry: SessionRegistry = Depends(get_session_registry),
):
    """Forget the in-memory cart and filters; the next request starts fresh."""
    return {"ok": True, "reset": registry.reset(user.id)}
