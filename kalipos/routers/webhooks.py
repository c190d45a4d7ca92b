"""
Webhooks Router

Telegram bot updates and the order notification relay.
The Telegram webhook always answers 200 with a JSON body so Telegram
never retries an update.
"""

import hmac
import os
from typing import Any, Dict, List

from aiogram import Bot, Dispatcher
from aiogram.types import Update
from fastapi import APIRouter, BackgroundTasks, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, Field

from kalipos.logging import get_logger, sanitize_id_for_logging
from kalipos.routers.deps import get_bot, get_dispatcher
from kalipos.services.telegram_messaging import send_telegram_message

logger = get_logger(__name__)

router = APIRouter(tags=["webhooks"])


# ==================== TELEGRAM WEBHOOK ====================

@router.post("/webhook/telegram")
async def telegram_webhook(request: Request, background_tasks: BackgroundTasks):
    """Validate the update and hand it to the dispatcher in the background."""
    bot_instance = get_bot()
    if bot_instance is None:
        logger.error("Bot instance is None - TELEGRAM_TOKEN may be missing")
        return JSONResponse(status_code=200, content={"ok": False, "error": "Bot not configured"})

    try:
        data = await request.json()
    except ValueError as e:
        logger.warning("Telegram webhook: invalid JSON: %s", e)
        return JSONResponse(status_code=200, content={"ok": False, "error": "Invalid JSON"})

    try:
        update = Update.model_validate(data, context={"bot": bot_instance})
    except ValueError as e:
        logger.warning("Telegram webhook: invalid update: %s", e)
        return JSONResponse(status_code=200, content={"ok": False, "error": "Invalid update"})

    background_tasks.add_task(process_update, bot_instance, get_dispatcher(), update)
    return JSONResponse(content={"ok": True})


async def process_update(bot_instance: Bot, dispatcher: Dispatcher, update: Update) -> None:
    """Feed one update to the dispatcher; handler errors are logged only."""
    try:
        await dispatcher.feed_update(bot_instance, update)
    except Exception as e:
        logger.error("Failed to process update %s: %s", update.update_id, e, exc_info=True)


# ==================== NOTIFICATION RELAY ====================

class OrderNotification(BaseModel):
    type: str = "order"
    user_id: int = Field(validation_alias=AliasChoices("user_id", "telegram_user_id"))
    message: str
    items: List[Dict[str, Any]] = []


def _check_relay_token(authorization: str | None) -> None:
    expected = os.environ.get("NOTIFY_RELAY_TOKEN", "")
    if not expected:
        return
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not hmac.compare_digest(token, expected):
        raise HTTPException(status_code=401, detail="Invalid relay token")


@router.post("/api/notify/order")
async def notify_order(
    notification: OrderNotification,
    authorization: str | None = Header(None, alias="Authorization"),
):
    """Forward an order summary into the user's Telegram chat."""
    _check_relay_token(authorization)

    if notification.type != "order":
        raise HTTPException(status_code=400, detail=f"Unsupported notification type: {notification.type}")

    sent = await send_telegram_message(chat_id=notification.user_id, text=notification.message)
    if not sent:
        logger.warning("Order notification not delivered to %s", sanitize_id_for_logging(notification.user_id))
        raise HTTPException(status_code=502, detail="Telegram delivery failed")

    return {"ok": True}
