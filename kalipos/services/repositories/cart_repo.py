"""Cart Repository - saved carts and templates."""
from typing import Any, Dict, List, Optional

from kalipos.models import SavedCart
from kalipos.services.quantity import to_number
from .base import BaseRepository

CART_COLUMNS = (
    "id, cart_name, telegram_user_id, is_template, created_at, "
    "cart_items(item_name, quantity, category)"
)


def _from_row(row: dict) -> SavedCart:
    return SavedCart(**{**row, "items": row.get("cart_items") or []})


class CartRepository(BaseRepository):
    """Saved cart operations (``carts`` + ``cart_items``)."""

    async def create(
        self,
        cart_name: str,
        telegram_user_id: int,
        lines: List[Dict[str, Any]],
        is_template: bool = False,
    ) -> str:
        """Insert the cart row and its items. Returns the new cart id."""
        result = await self.client.table("carts").insert({
            "cart_name": cart_name,
            "telegram_user_id": telegram_user_id,
            "is_template": is_template,
        }).execute()
        cart_id = str(result.data[0]["id"])

        if lines:
            rows = [{**line, "cart_id": cart_id} for line in lines]
            await self.client.table("cart_items").insert(rows).execute()
        return cart_id

    async def get_by_id(self, cart_id: str) -> Optional[SavedCart]:
        result = await self.client.table("carts").select(CART_COLUMNS).eq(
            "id", cart_id
        ).limit(1).execute()
        return _from_row(result.data[0]) if result.data else None

    async def get_by_user(self, telegram_user_id: int) -> List[SavedCart]:
        """User's saved carts and templates, newest first."""
        result = await self.client.table("carts").select(CART_COLUMNS).eq(
            "telegram_user_id", telegram_user_id
        ).order("created_at", desc=True).execute()
        return [_from_row(row) for row in result.data]

    async def delete(self, cart_id: str, telegram_user_id: int) -> bool:
        """Delete a cart owned by the user. Items go by FK cascade."""
        result = await self.client.table("carts").delete().eq(
            "id", cart_id
        ).eq("telegram_user_id", telegram_user_id).execute()
        return bool(result.data)

    async def duplicate(self, cart_id: str, telegram_user_id: int) -> Optional[str]:
        """
        Copy a user's cart and its items into a new non-template cart named
        "<name> (Copy)". Returns the new cart id, None when the user owns no
        such cart.
        """
        original = await self.get_by_id(cart_id)
        if original is None or original.telegram_user_id != telegram_user_id:
            return None

        lines = [
            {"item_name": line.item_name, "quantity": to_number(line.quantity), "category": line.category}
            for line in original.items
        ]
        return await self.create(f"{original.cart_name} (Copy)", telegram_user_id, lines, is_template=False)

    async def set_template(self, cart_id: str, telegram_user_id: int, is_template: bool) -> bool:
        """Set the template flag of a cart owned by the user."""
        result = await self.client.table("carts").update({
            "is_template": is_template,
        }).eq("id", cart_id).eq("telegram_user_id", telegram_user_id).execute()
        return bool(result.data)
