"""Command handlers: /start, /help and the plain-text fallback."""
from html import escape

from aiogram import F, Router
from aiogram.filters import Command, CommandStart
from aiogram.types import Message

from kalipos.bot.handlers.helpers import BOT_USERNAME, WEBAPP_URL, safe_answer
from kalipos.bot.keyboards import get_start_keyboard
from kalipos.logging import get_logger, sanitize_id_for_logging

logger = get_logger(__name__)

router = Router()


def start_text(first_name: str | None) -> str:
    return (
        f"Hi {escape(first_name or 'there')}!\n\n"
        f"Start ordering by typing @{BOT_USERNAME} item name\n\n"
        "Order from app using POS button"
    )


def help_text() -> str:
    return (
        "How to order:\n\n"
        f"• Type @{BOT_USERNAME} followed by an item name and tap a quantity\n"
        f"• Type @{BOT_USERNAME} cat to browse categories\n"
        "• Tap Custom for larger quantities\n"
        "• Use the POS app to build a cart and place it as one order\n"
        "• /start shows the POS app and your recent orders"
    )


@router.message(CommandStart())
async def cmd_start(message: Message):
    """Greet with the POS Mini App and order history buttons."""
    first_name = message.from_user.first_name if message.from_user else None
    await safe_answer(message, start_text(first_name), reply_markup=get_start_keyboard(WEBAPP_URL))


@router.message(Command("help"))
async def cmd_help(message: Message):
    await safe_answer(message, help_text())


@router.message(F.text)
async def handle_text_message(message: Message):
    """Echo anything else with a usage hint."""
    user_id = message.from_user.id if message.from_user else None
    logger.info("Received message from %s", sanitize_id_for_logging(user_id))
    await safe_answer(
        message,
        f"Received: {escape(message.text)}\n\n"
        f"Use @{BOT_USERNAME} to search for items, or use the POS app button above.",
    )
