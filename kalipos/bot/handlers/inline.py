"""Inline query handlers: category menu and item search."""

import hashlib

from aiogram import Router
from aiogram.types import InlineQuery, InlineQueryResultArticle, InputTextMessageContent

from kalipos.bot.keyboards import get_quantity_keyboard
from kalipos.logging import get_logger, sanitize_string_for_logging
from kalipos.models import CatalogItem
from kalipos.services.database import get_database_async

logger = get_logger(__name__)

router = Router()

CATEGORY_PREFIX = "cat "
CATEGORIES = ("cleaning", "box", "ustensil", "plastic bag", "kitchen roll", "cheese")
RESULTS_LIMIT = 50
CACHE_TIME = 300


def category_menu() -> list[InlineQueryResultArticle]:
    return [
        InlineQueryResultArticle(
            id=f"category_{number}",
            title=f"{number}. {category[:1].upper()}{category[1:]}",
            description=f'Type "{number}" to see {category} items',
            input_message_content=InputTextMessageContent(message_text=f"Category: {category}"),
        )
        for number, category in enumerate(CATEGORIES, start=1)
    ]


def resolve_category(value: str) -> str | None:
    """1-based menu number to category; None when not a valid number."""
    value = value.strip()
    if not value.isdigit():
        return None
    number = int(value)
    if 1 <= number <= len(CATEGORIES):
        return CATEGORIES[number - 1]
    return None


def item_result(item: CatalogItem) -> InlineQueryResultArticle:
    digest = hashlib.md5(item.item_name.encode("utf-8")).hexdigest()
    keyboard = get_quantity_keyboard(item.item_name)
    if keyboard is None:
        logger.warning("Item name too long for quantity buttons: %s", sanitize_string_for_logging(item.item_name))
    return InlineQueryResultArticle(
        id=f"item_{digest}",
        title=item.item_name,
        description=f"{item.category or '-'} - {item.default_supplier or '-'}",
        input_message_content=InputTextMessageContent(message_text=f"Selected: {item.item_name}"),
        reply_markup=keyboard,
    )


async def find_items(query_text: str) -> list[CatalogItem]:
    db = await get_database_async()
    if query_text.startswith(CATEGORY_PREFIX):
        category = resolve_category(query_text[len(CATEGORY_PREFIX):])
        if category is None:
            return []
        return await db.catalog.get_by_category(category, limit=RESULTS_LIMIT)
    if not query_text:
        return await db.catalog.get_all(limit=RESULTS_LIMIT)
    return await db.catalog.search(query_text, limit=RESULTS_LIMIT)


@router.inline_query()
async def handle_inline_query(query: InlineQuery) -> None:
    """Answer inline queries with the category menu or matching items."""
    raw = query.query or ""
    if raw.startswith(CATEGORY_PREFIX) and not raw[len(CATEGORY_PREFIX):].strip():
        await query.answer(category_menu(), cache_time=CACHE_TIME)
        return

    query_text = raw.strip()
    try:
        items = await find_items(query_text)
    except Exception as e:
        logger.error("Inline search failed for %s: %s", sanitize_string_for_logging(query_text), e, exc_info=True)
        items = []

    await query.answer([item_result(item) for item in items], cache_time=CACHE_TIME)
