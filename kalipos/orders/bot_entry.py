"""Chat-channel order entry: one quantity tap, one order."""
from decimal import Decimal
from typing import List

from kalipos.errors import NotFoundError
from kalipos.logging import get_logger, sanitize_string_for_logging
from kalipos.models import OrderWithLines
from kalipos.services.repositories import CatalogRepository, OrderRepository
from .numbers import BOT_ORDER_PREFIX
from .pipeline import LineDraft, OrderPipeline, PlacedOrder

logger = get_logger(__name__)

RECENT_ORDERS_LIMIT = 5


class BotOrderEntry:
    """
    Bot adapter over OrderPipeline.

    Taps are never consolidated: every call creates a brand-new order with a
    single line, and repeated deliveries of the same callback create
    duplicate orders.
    """

    def __init__(self, catalog: CatalogRepository, orders: OrderRepository, pipeline: OrderPipeline | None = None):
        self.catalog = catalog
        self.orders = orders
        self.pipeline = pipeline or OrderPipeline(orders)

    async def place_item(self, telegram_user_id: int, item_name: str, quantity: Decimal) -> PlacedOrder:
        """
        Create a one-line order for a catalog item.

        Raises:
            NotFoundError: no catalog item with this exact name, or the lookup failed
            PersistenceError / PartialPersistenceError: see OrderPipeline.place
        """
        try:
            item = await self.catalog.get_by_name(item_name)
        except Exception as e:
            logger.error("Catalog lookup failed for %s: %s", sanitize_string_for_logging(item_name), e, exc_info=True)
            raise NotFoundError() from e
        if item is None:
            logger.info("Bot order for unknown item %s", sanitize_string_for_logging(item_name))
            raise NotFoundError()

        return await self.pipeline.place(
            telegram_user_id=telegram_user_id,
            lines=[LineDraft(item_name=item.item_name, quantity=quantity, category=item.category)],
            prefix=BOT_ORDER_PREFIX,
        )

    async def recent_orders(self, telegram_user_id: int, limit: int = RECENT_ORDERS_LIMIT) -> List[OrderWithLines]:
        return await self.orders.get_recent_by_user(telegram_user_id, limit=limit)
