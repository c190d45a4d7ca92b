"""
WebApp Saved Carts Router

Named carts and templates saved from the current cart. Storage failures come
back as error notices; carts the user does not own are 404.
"""
from fastapi import APIRouter, Depends, HTTPException

from kalipos.errors import NotFoundError
from kalipos.routers.deps import get_storefront_session
from kalipos.storefront import StorefrontSession
from .models import SaveCartRequest, UpdateSavedCartRequest

router = APIRouter(tags=["webapp-carts"])


@router.get("/carts")
async def list_saved_carts(session: StorefrontSession = Depends(get_storefront_session)):
    carts, notice = await session.list_saved_carts()
    response = {
        "carts": [cart.model_dump(mode="json") for cart in carts],
        "count": len(carts),
    }
    if notice is not None:
        response["notice"] = notice.to_dict()
    return response


@router.post("/carts")
async def save_cart(request: SaveCartRequest, session: StorefrontSession = Depends(get_storefront_session)):
    notice = await session.save_cart(request.cart_name.strip(), is_template=request.is_template)
    return {"notice": notice.to_dict()}


@router.post("/carts/{cart_id}/load")
async def load_saved_cart(cart_id: str, session: StorefrontSession = Depends(get_storefront_session)):
    """Replace the current cart with a saved one."""
    notice = await session.load_saved_cart(cart_id)
    return {"notice": notice.to_dict(), "cart": session.cart.to_dict()}


@router.post("/carts/{cart_id}/duplicate")
async def duplicate_saved_cart(cart_id: str, session: StorefrontSession = Depends(get_storefront_session)):
    try:
        notice = await session.duplicate_saved_cart(cart_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    return {"notice": notice.to_dict()}


@router.patch("/carts/{cart_id}")
async def update_saved_cart(
    cart_id: str,
    request: UpdateSavedCartRequest,
    session: StorefrontSession = Depends(get_storefront_session),
):
    """Mark or unmark a saved cart as a template."""
    try:
        notice = await session.set_template(cart_id, request.is_template)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    return {"notice": notice.to_dict()}


@router.delete("/carts/{cart_id}")
async def delete_saved_cart(cart_id: str, session: StorefrontSession = Depends(get_storefront_session)):
    try:
        notice = await session.delete_saved_cart(cart_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    return {"ok": notice.level == "success", "notice": notice.to_dict()}
