"""Telegram Inline Keyboards"""
from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup, WebAppInfo

ADD_ITEM_PREFIX = "add_item:"
CUSTOM_QTY_PREFIX = "custom_qty:"
SHOW_ORDERS = "show_orders"

# Telegram rejects callback_data longer than 64 bytes
MAX_CALLBACK_DATA_BYTES = 64

QUICK_QUANTITY_ROWS = ((1, 2, 3), (5, 10))
EXTENDED_QUANTITY_ROWS = ((4, 6, 8), (12, 15, 20), (25, 50))


def add_item_data(item_name: str, quantity) -> str:
    return f"{ADD_ITEM_PREFIX}{item_name}:{quantity}"


def custom_qty_data(item_name: str) -> str:
    return f"{CUSTOM_QTY_PREFIX}{item_name}"


def fits_callback_data(data: str) -> bool:
    return len(data.encode("utf-8")) <= MAX_CALLBACK_DATA_BYTES


def _quantity_rows(item_name: str, rows) -> list[list[InlineKeyboardButton]]:
    return [
        [
            InlineKeyboardButton(text=str(quantity), callback_data=add_item_data(item_name, quantity))
            for quantity in row
        ]
        for row in rows
    ]


def get_quantity_keyboard(item_name: str) -> InlineKeyboardMarkup | None:
    """1 2 3 / 5 10 Custom. None when the item name is too long for callback data."""
    # The longest button payload is the 2-digit quantity or "custom_qty:<name>"
    if not fits_callback_data(add_item_data(item_name, 10)) or not fits_callback_data(custom_qty_data(item_name)):
        return None
    rows = _quantity_rows(item_name, QUICK_QUANTITY_ROWS)
    rows[-1].append(InlineKeyboardButton(text="Custom", callback_data=custom_qty_data(item_name)))
    return InlineKeyboardMarkup(inline_keyboard=rows)


def get_custom_quantity_keyboard(item_name: str) -> InlineKeyboardMarkup | None:
    """Extended quantities offered after the Custom button."""
    if not fits_callback_data(add_item_data(item_name, 50)):
        return None
    return InlineKeyboardMarkup(inline_keyboard=_quantity_rows(item_name, EXTENDED_QUANTITY_ROWS))


def get_start_keyboard(webapp_url: str) -> InlineKeyboardMarkup:
    """POS Mini App button plus order history."""
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="🛒 Open POS App", web_app=WebAppInfo(url=webapp_url))],
        [InlineKeyboardButton(text="📋 My Orders", callback_data=SHOW_ORDERS)],
    ])


def get_my_orders_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="📋 My Orders", callback_data=SHOW_ORDERS)],
    ])
