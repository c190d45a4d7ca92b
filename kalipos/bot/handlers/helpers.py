"""Bot handler helpers - shared services and safe replies."""

import os
from typing import Any

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError, TelegramBadRequest, TelegramForbiddenError
from aiogram.types import CallbackQuery, Message

from kalipos.logging import get_logger, sanitize_id_for_logging
from kalipos.orders import BotOrderEntry
from kalipos.services.database import get_database_async

logger = get_logger(__name__)

WEBAPP_URL = os.environ.get("WEBAPP_URL", "https://kalipos.app")
BOT_USERNAME = os.environ.get("BOT_USERNAME", "Kalipos_bot")


async def get_order_entry() -> BotOrderEntry:
    """Bot order entry bound to the shared database."""
    db = await get_database_async()
    return BotOrderEntry(db.catalog, db.orders)


async def safe_answer(message: Message, text: str, **kwargs: Any) -> bool:
    """Send a reply, swallowing Telegram API errors. Returns True when sent."""
    if not text or not text.strip():
        logger.error("Attempted to send empty message")
        return False
    try:
        await message.answer(text, **kwargs)
        return True
    except TelegramForbiddenError:
        logger.warning("Bot blocked by user")
        return False
    except TelegramBadRequest as e:
        if "chat not found" in str(e).lower():
            logger.warning("Cannot send message: chat not found")
        else:
            logger.error("Telegram rejected message: %s", e)
        return False
    except TelegramAPIError as e:
        logger.error("Telegram API error in safe_answer: %s", type(e).__name__, exc_info=True)
        return False


async def safe_callback_answer(callback: CallbackQuery, text: str | None = None, show_alert: bool = False) -> bool:
    """Acknowledge a callback query; a failed acknowledgement is only logged."""
    try:
        await callback.answer(text, show_alert=show_alert)
        return True
    except TelegramAPIError as e:
        # Usually "query is too old" after a slow handler
        logger.warning("Failed to answer callback query: %s", e)
        return False


async def safe_send(bot: Bot, chat_id: int, text: str, **kwargs: Any) -> bool:
    """bot.send_message that logs Telegram API errors instead of raising."""
    try:
        await bot.send_message(chat_id=chat_id, text=text, **kwargs)
        return True
    except TelegramAPIError as e:
        logger.error("Failed to send message to chat %s: %s", sanitize_id_for_logging(chat_id), e)
        return False
