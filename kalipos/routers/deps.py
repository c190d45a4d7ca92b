"""
Shared Dependencies for Routers

Lazy-loaded singletons to optimize cold start.
Import heavy modules only when needed.
"""

import asyncio
import os
from typing import TYPE_CHECKING, Optional

from fastapi import Depends, HTTPException

from kalipos.auth import verify_telegram_auth
from kalipos.logging import get_logger, sanitize_id_for_logging

if TYPE_CHECKING:
    from aiogram import Bot, Dispatcher

    from kalipos.orders import OrderSubmitter
    from kalipos.services.notifications import NotificationRelay
    from kalipos.storefront import SessionRegistry, StorefrontSession
    from kalipos.storefront.filters import FilterStateStorage

logger = get_logger(__name__)


# ==================== BOT ====================

_bot: Optional["Bot"] = None
_dispatcher: Optional["Dispatcher"] = None


def get_bot() -> Optional["Bot"]:
    """Get or create bot instance; None when TELEGRAM_TOKEN is unset."""
    global _bot
    token = os.environ.get("TELEGRAM_TOKEN", "")
    if _bot is None and token:
        from aiogram import Bot
        from aiogram.client.default import DefaultBotProperties
        from aiogram.enums import ParseMode

        _bot = Bot(token=token, default=DefaultBotProperties(parse_mode=ParseMode.HTML))
    return _bot


def get_dispatcher() -> "Dispatcher":
    """Get or create dispatcher instance"""
    global _dispatcher
    if _dispatcher is None:
        from aiogram import Dispatcher

        from kalipos.bot import router as bot_router

        _dispatcher = Dispatcher()
        _dispatcher.include_router(bot_router)
    return _dispatcher


async def close_bot() -> None:
    global _bot
    if _bot is not None:
        await _bot.session.close()
        _bot = None


# ==================== STOREFRONT ====================

_notification_relay: Optional["NotificationRelay"] = None
_order_submitter: Optional["OrderSubmitter"] = None
_filter_storage: Optional["FilterStateStorage"] = None
_session_registry: Optional["SessionRegistry"] = None
_registry_lock = asyncio.Lock()


def get_notification_relay() -> "NotificationRelay":
    """Get or create NotificationRelay singleton (lazy loaded)"""
    global _notification_relay
    if _notification_relay is None:
        from kalipos.services.notifications import NotificationRelay
        _notification_relay = NotificationRelay()
    return _notification_relay


def get_filter_storage() -> "FilterStateStorage":
    """Redis-backed filter storage when Upstash is configured, in-memory otherwise."""
    global _filter_storage
    if _filter_storage is None:
        from kalipos.db import redis_configured
        from kalipos.storefront.filters import InMemoryFilterStateStorage, RedisFilterStateStorage

        if redis_configured():
            _filter_storage = RedisFilterStateStorage()
        else:
            logger.warning("Upstash Redis not configured, filter state kept in memory")
            _filter_storage = InMemoryFilterStateStorage()
    return _filter_storage


async def get_order_submitter() -> "OrderSubmitter":
    """Get or create OrderSubmitter singleton bound to the shared database."""
    global _order_submitter
    if _order_submitter is None:
        from kalipos.orders import OrderPipeline, OrderSubmitter
        from kalipos.services.database import get_database_async

        db = await get_database_async()
        _order_submitter = OrderSubmitter(OrderPipeline(db.orders), notifier=get_notification_relay())
    return _order_submitter


async def get_session_registry() -> "SessionRegistry":
    """Get or create the per-user storefront session registry."""
    global _session_registry
    if _session_registry is not None:
        return _session_registry

    async with _registry_lock:
        if _session_registry is None:
            from kalipos.services.database import get_database_async
            from kalipos.storefront import SessionRegistry, StorefrontSession

            db = await get_database_async()
            submitter = await get_order_submitter()
            storage = get_filter_storage()

            def make_session(user_id: int) -> StorefrontSession:
                return StorefrontSession(
                    user_id=user_id,
                    submitter=submitter,
                    carts=db.carts,
                    catalog_repo=db.catalog,
                    filter_storage=storage,
                    orders=db.orders,
                )

            _session_registry = SessionRegistry(make_session)
    return _session_registry


async def shutdown() -> None:
    """Flush pending order notifications and close the bot session."""
    if _order_submitter is not None:
        await _order_submitter.wait_for_notifications()
    await close_bot()


# ==================== REQUEST DEPENDENCIES ====================

async def get_storefront_session(user=Depends(verify_telegram_auth)) -> "StorefrontSession":
    """Storefront session of the authenticated Mini App user."""
    registry = await get_session_registry()
    try:
        return await registry.get(user.id)
    except Exception as e:
        logger.error("Failed to start storefront session for %s: %s", sanitize_id_for_logging(user.id), e, exc_info=True)
        raise HTTPException(status_code=503, detail="Catalog unavailable")
