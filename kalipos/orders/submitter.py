"""Storefront cart submission."""
import asyncio
from dataclasses import dataclass
from typing import Optional

from kalipos.cart import CartLine, CartStore
from kalipos.errors import EmptyCartError, MissingUserError
from kalipos.logging import get_logger, sanitize_id_for_logging
from kalipos.services.formatting import format_order_notification
from kalipos.services.notifications import NotificationRelay
from .numbers import CART_ORDER_PREFIX
from .pipeline import LineDraft, OrderPipeline

logger = get_logger(__name__)


@dataclass(frozen=True)
class SubmitResult:
    order_number: str
    line_count: int
    order_id: Optional[str] = None


class OrderSubmitter:
    """
    Turns a consolidated cart into a persisted order.

    On success the ordered lines leave the cart and an order summary is
    relayed in a background task whose outcome never reaches the caller.
    Lines added to the cart while the writes are in flight stay in it.
    """

    def __init__(self, pipeline: OrderPipeline, notifier: Optional[NotificationRelay] = None):
        self.pipeline = pipeline
        self.notifier = notifier
        self._pending: set[asyncio.Task] = set()

    async def submit(self, cart: CartStore, user_id: Optional[int]) -> SubmitResult:
        """
        Submit the cart as one order.

        Raises:
            EmptyCartError: cart has no lines (nothing persisted)
            MissingUserError: no user identity (nothing persisted)
            PersistenceError: header write failed (cart untouched)
            PartialPersistenceError: lines failed after the header (cart untouched)
        """
        if cart.is_empty:
            raise EmptyCartError()
        if user_id is None:
            raise MissingUserError()

        lines = cart.snapshot()
        placed = await self.pipeline.place(
            telegram_user_id=user_id,
            lines=[
                LineDraft(item_name=line.item_name, quantity=line.quantity, category=line.category)
                for line in lines
            ],
            prefix=CART_ORDER_PREFIX,
        )

        cart.remove_ordered(lines)
        self._schedule_notification(user_id, placed.order_number, lines)

        return SubmitResult(
            order_number=placed.order_number,
            line_count=placed.line_count,
            order_id=placed.order.id,
        )

    def _schedule_notification(self, user_id: int, order_number: str, lines: list[CartLine]) -> None:
        if self.notifier is None:
            return
        task = asyncio.create_task(self._notify(user_id, order_number, lines))
        # Keep a reference until done so the task is not garbage collected
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _notify(self, user_id: int, order_number: str, lines: list[CartLine]) -> None:
        try:
            await self.notifier.send_order(
                user_id=user_id,
                message=format_order_notification(order_number, lines),
                items=[line.to_dict() for line in lines],
            )
        except Exception as e:
            logger.warning(
                "Order %s notification failed for user %s: %s",
                order_number, sanitize_id_for_logging(user_id), e,
            )

    async def wait_for_notifications(self) -> None:
        """Await in-flight notifications (shutdown, tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
