"""Human-readable order messages for the notification relay and the bot."""
from html import escape
from typing import Iterable, Sequence

from kalipos.models import OrderLine, OrderWithLines
from kalipos.services.quantity import format_quantity

STATUS_EMOJI = {
    "New": "🆕",
    "Pending": "⏸️",
    "Pending Review": "⏯️",
    "Processing": "▶️",
    "Completed": "🆗",
}

NO_ORDERS_TEXT = "No orders found. Start ordering using the POS app!"


def get_status_emoji(status: str) -> str:
    return STATUS_EMOJI.get(status, "❓")


def item_emoji(line: OrderLine) -> str:
    """Confirmed beats unavailable; everything else is pending."""
    if line.is_confirmed:
        return "✅"
    if line.is_available is False:
        return "🔸"
    return "🔹"


def format_order_notification(order_number: str, lines: Sequence) -> str:
    """
    Plain-text order summary sent through the notification relay.

    ``lines`` are cart lines or order lines; both carry item_name and quantity.
    """
    items_list = "\n".join(
        f"• {line.item_name} x {format_quantity(line.quantity)}" for line in lines
    )
    return f"🛒 New Order: {order_number}\n\n{items_list}\n\nTotal Items: {len(lines)}"


def format_order_created(order_number: str, item_name: str, quantity) -> str:
    """Bot confirmation after a quantity tap (HTML)."""
    return (
        f"✅ <b>Order Created:</b>\n{escape(order_number)}\n\n"
        f"{escape(item_name)} (Qty: {format_quantity(quantity)})"
    )


def format_order_lines(lines: Iterable[OrderLine]) -> str:
    return "\n".join(
        f"{item_emoji(line)} {escape(line.item_name)}: {format_quantity(line.quantity)}"
        for line in lines
    )


def format_recent_orders(orders: Sequence[OrderWithLines]) -> str:
    """Summary of the user's latest orders (HTML)."""
    text = "📋 <b>Your Recent Orders:</b>\n\n"
    if not orders:
        return text + NO_ORDERS_TEXT

    blocks = []
    for entry in orders:
        order = entry.order
        header = f"<b>{escape(order.order_number)}</b>"
        if order.created_at:
            header += f" ({order.created_at.strftime('%d/%m/%Y')})"
        block = [header, f"Status: {get_status_emoji(order.status)} {escape(order.status)}"]
        if entry.lines:
            block.append(format_order_lines(entry.lines))
        blocks.append("\n".join(block))
    return text + "\n\n".join(blocks)
