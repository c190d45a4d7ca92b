"""
Order pipeline shared by the storefront cart and the bot.

Writes an order in two steps:
1. Insert the header row (status "New")
2. Insert every line in one batch

The steps are not atomic. A failure in step 2 leaves the header committed
with zero lines; it is reported, never rolled back and never retried here.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence

from kalipos.errors import PartialPersistenceError, PersistenceError
from kalipos.logging import get_logger, sanitize_id_for_logging
from kalipos.models import Order
from kalipos.services.quantity import to_number
from kalipos.services.repositories import OrderRepository
from .numbers import generate_order_number

logger = get_logger(__name__)


@dataclass(frozen=True)
class LineDraft:
    """One line to write: what and how much."""
    item_name: str
    quantity: Decimal
    category: Optional[str] = None

    def to_row(self) -> dict:
        return {
            "item_name": self.item_name,
            "quantity": to_number(self.quantity),
            "category": self.category,
            "is_available": True,
            "is_confirmed": False,
        }


@dataclass(frozen=True)
class PlacedOrder:
    order: Order
    line_count: int

    @property
    def order_number(self) -> str:
        return self.order.order_number


class OrderPipeline:
    """Header + line-batch writer over OrderRepository."""

    def __init__(self, orders: OrderRepository):
        self.orders = orders

    async def place(
        self,
        telegram_user_id: int,
        lines: Sequence[LineDraft],
        prefix: str,
    ) -> PlacedOrder:
        """
        Persist one order.

        Raises:
            PersistenceError: header insert failed, nothing was written
            PartialPersistenceError: header written, line batch failed
        """
        order_number = generate_order_number(prefix)

        try:
            order = await self.orders.create_header(order_number, telegram_user_id)
        except Exception as e:
            logger.error("Failed to create order header %s: %s", order_number, e, exc_info=True)
            raise PersistenceError(raw_error=e) from e

        try:
            await self.orders.add_lines(order.id, [line.to_row() for line in lines])
        except Exception as e:
            logger.error(
                "Order %s committed without lines (order id %s): %s",
                order.order_number, sanitize_id_for_logging(order.id), e, exc_info=True,
            )
            raise PartialPersistenceError(order.order_number, raw_error=e) from e

        logger.info("Order %s created with %d line(s)", order.order_number, len(lines))
        return PlacedOrder(order=order, line_count=len(lines))
