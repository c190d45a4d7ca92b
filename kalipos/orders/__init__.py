"""Order creation: shared pipeline plus the cart and bot adapters."""
from .numbers import BOT_ORDER_PREFIX, CART_ORDER_PREFIX, generate_order_number
from .pipeline import LineDraft, OrderPipeline, PlacedOrder
from .submitter import OrderSubmitter, SubmitResult
from .bot_entry import BotOrderEntry

__all__ = [
    "BOT_ORDER_PREFIX",
    "CART_ORDER_PREFIX",
    "generate_order_number",
    "LineDraft",
    "OrderPipeline",
    "PlacedOrder",
    "OrderSubmitter",
    "SubmitResult",
    "BotOrderEntry",
]
