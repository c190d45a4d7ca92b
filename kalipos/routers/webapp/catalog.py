"""
WebApp Catalog Router

Filtered catalog view, filter state and the quick-add search box.
"""
from fastapi import APIRouter, Depends

from kalipos.routers.deps import get_storefront_session
from kalipos.storefront import FilterState, StorefrontSession
from .models import FilterStateRequest, SearchRequest

router = APIRouter(tags=["webapp-catalog"])


@router.get("/catalog")
async def get_catalog(q: str = "", session: StorefrontSession = Depends(get_storefront_session)):
    """Catalog filtered by the search text and the saved filters."""
    items = session.filtered(q)
    return {
        "items": [item.model_dump(exclude={"kind"}) for item in items],
        "count": len(items),
        "categories": session.categories,
        "filters": session.filter_state.to_dict(),
    }


@router.get("/filters")
async def get_filters(session: StorefrontSession = Depends(get_storefront_session)):
    return session.filter_state.to_dict()


@router.put("/filters")
async def update_filters(request: FilterStateRequest, session: StorefrontSession = Depends(get_storefront_session)):
    state = await session.update_filters(
        FilterState(
            selected_categories=list(request.selected_categories),
            selected_supplier=request.selected_supplier or None,
        )
    )
    return state.to_dict()


@router.post("/search")
async def submit_search(request: SearchRequest, session: StorefrontSession = Depends(get_storefront_session)):
    """Evaluate the search box on a key press and apply the resulting command."""
    outcome = await session.handle_search(request.text, request.key)
    return {
        "search_text": outcome.search_text,
        "notice": outcome.notice.to_dict() if outcome.notice else None,
        "cart": session.cart.to_dict(),
    }
