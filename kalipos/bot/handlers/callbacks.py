"""Callback query handlers for the quantity and order-history buttons.

Every callback query is answered, including on failure, so the client
stops its loading indicator.
"""
from decimal import Decimal
from html import escape
from typing import Optional, Tuple

from aiogram import Bot, F, Router
from aiogram.enums import ParseMode
from aiogram.types import CallbackQuery

from kalipos.bot.handlers.helpers import get_order_entry, safe_callback_answer, safe_send
from kalipos.bot.keyboards import (
    ADD_ITEM_PREFIX,
    CUSTOM_QTY_PREFIX,
    SHOW_ORDERS,
    get_custom_quantity_keyboard,
    get_my_orders_keyboard,
)
from kalipos.errors import (
    ERROR_FETCHING_ORDERS,
    ERROR_SAVING_ORDER,
    ERROR_UNKNOWN_ACTION,
    NotFoundError,
    PartialPersistenceError,
    PersistenceError,
)
from kalipos.logging import get_logger, sanitize_id_for_logging, sanitize_string_for_logging
from kalipos.services.formatting import format_order_created, format_recent_orders
from kalipos.services.quantity import parse_quantity

logger = get_logger(__name__)

router = Router()


def parse_add_item(data: str) -> Optional[Tuple[str, Decimal]]:
    """
    Split ``add_item:<name>:<qty>``.

    The quantity is the last segment, so item names may contain colons.
    Returns None for malformed data or a non-positive quantity.
    """
    if not data.startswith(ADD_ITEM_PREFIX):
        return None
    name, sep, raw_quantity = data[len(ADD_ITEM_PREFIX):].rpartition(":")
    if not sep or not name:
        return None
    quantity = parse_quantity(raw_quantity)
    if quantity is None:
        return None
    return name, quantity


def _chat_id(callback: CallbackQuery) -> int:
    # Inline-mode messages carry no message object; reply in the private chat
    if callback.message is not None:
        return callback.message.chat.id
    return callback.from_user.id


# ==================== ORDERING ====================

@router.callback_query(F.data.startswith(ADD_ITEM_PREFIX))
async def callback_add_item(callback: CallbackQuery, bot: Bot):
    """Create a one-line order for the tapped quantity."""
    parsed = parse_add_item(callback.data)
    if parsed is None:
        logger.warning("Malformed add_item callback: %s", sanitize_string_for_logging(callback.data))
        await safe_callback_answer(callback, ERROR_UNKNOWN_ACTION)
        return

    item_name, quantity = parsed
    user_id = callback.from_user.id

    try:
        entry = await get_order_entry()
        placed = await entry.place_item(user_id, item_name, quantity)
    except NotFoundError as e:
        await safe_callback_answer(callback, e.message)
        return
    except PartialPersistenceError as e:
        # Header exists without lines; no confirmation is sent
        await safe_callback_answer(callback, e.message, show_alert=True)
        return
    except PersistenceError:
        await safe_callback_answer(callback, ERROR_SAVING_ORDER)
        return
    except Exception as e:
        logger.error("add_item failed for user %s: %s", sanitize_id_for_logging(user_id), e, exc_info=True)
        await safe_callback_answer(callback, ERROR_SAVING_ORDER)
        return

    await safe_callback_answer(callback, f'✅ Added "{item_name}" to your order!')
    await safe_send(
        bot,
        _chat_id(callback),
        format_order_created(placed.order_number, item_name, quantity),
        parse_mode=ParseMode.HTML,
        reply_markup=get_my_orders_keyboard(),
    )


@router.callback_query(F.data.startswith(CUSTOM_QTY_PREFIX))
async def callback_custom_quantity(callback: CallbackQuery, bot: Bot):
    """Offer larger quantities for one item."""
    item_name = callback.data[len(CUSTOM_QTY_PREFIX):]
    keyboard = get_custom_quantity_keyboard(item_name) if item_name else None
    if keyboard is None:
        await safe_callback_answer(callback, ERROR_UNKNOWN_ACTION)
        return

    await safe_send(
        bot,
        _chat_id(callback),
        f"Choose a quantity for <b>{escape(item_name)}</b>:",
        parse_mode=ParseMode.HTML,
        reply_markup=keyboard,
    )
    await safe_callback_answer(callback)


# ==================== ORDER HISTORY ====================

@router.callback_query(F.data == SHOW_ORDERS)
async def callback_show_orders(callback: CallbackQuery, bot: Bot):
    """Show the user's recent orders."""
    user_id = callback.from_user.id
    try:
        entry = await get_order_entry()
        orders = await entry.recent_orders(user_id)
    except Exception as e:
        logger.error("Failed to fetch orders for user %s: %s", sanitize_id_for_logging(user_id), e, exc_info=True)
        await safe_callback_answer(callback, ERROR_FETCHING_ORDERS)
        return

    await safe_send(
        bot,
        _chat_id(callback),
        format_recent_orders(orders),
        parse_mode=ParseMode.HTML,
    )
    await safe_callback_answer(callback, "Orders displayed")


# ==================== FALLBACK ====================

@router.callback_query()
async def callback_unknown(callback: CallbackQuery):
    logger.warning("Unknown callback data: %s", sanitize_string_for_logging(callback.data or ""))
    await safe_callback_answer(callback, ERROR_UNKNOWN_ACTION)
