"""Order Repository - order headers and line items."""
from typing import Any, Dict, List, Optional

from kalipos.models import ORDER_STATUS_NEW, Order, OrderLine, OrderWithLines
from .base import BaseRepository


class OrderRepository(BaseRepository):
    """Order database operations.

    Headers and lines are separate inserts; PostgREST gives no transaction
    spanning both, so callers must handle a header without lines.
    """

    async def create_header(
        self,
        order_number: str,
        telegram_user_id: int,
        status: str = ORDER_STATUS_NEW,
    ) -> Order:
        """Insert the order header row and return it."""
        data = {
            "order_number": order_number,
            "telegram_user_id": telegram_user_id,
            "status": status,
            "team_tags": [],
        }
        result = await self.client.table("orders").insert(data).execute()
        return Order(**result.data[0])

    async def add_lines(self, order_id: str, lines: List[Dict[str, Any]]) -> List[OrderLine]:
        """Insert all lines of an order as a single batch."""
        rows = [{**line, "order_id": order_id} for line in lines]
        result = await self.client.table("order_items").insert(rows).execute()
        return [OrderLine(**row) for row in result.data or rows]

    async def get_recent_by_user(self, telegram_user_id: int, limit: Optional[int] = 5) -> List[OrderWithLines]:
        """Most recent orders of a user, newest first, with their lines. No limit when None."""
        query = self.client.table("orders").select(
            "id, order_number, telegram_user_id, status, created_at, "
            "order_items(item_name, quantity, category)"
        ).eq("telegram_user_id", telegram_user_id).order("created_at", desc=True)
        if limit is not None:
            query = query.limit(limit)
        result = await query.execute()

        orders = []
        for row in result.data:
            order_id = str(row["id"])
            lines = [
                OrderLine(order_id=order_id, **line)
                for line in row.get("order_items") or []
            ]
            orders.append(OrderWithLines(order=Order(**row), lines=lines))
        return orders
