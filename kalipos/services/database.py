"""
Supabase Database Service

Provides Database class exposing the catalog, order and cart repositories.

Usage:
    from kalipos.services.database import get_database

    # At FastAPI startup (lifespan):
    await init_database()

    db = get_database()
    item = await db.catalog.get_by_name("Sponge")
"""

import asyncio
from typing import Optional

from supabase._async.client import AsyncClient

from kalipos.db import get_supabase
from kalipos.logging import get_logger
from kalipos.services.repositories import CartRepository, CatalogRepository, OrderRepository

logger = get_logger(__name__)


class Database:
    """
    Supabase database client grouping the repositories.

    Must be initialized via ``Database.create()`` or ``init_database()``,
    or constructed directly around an existing (or fake) client.
    """

    def __init__(self, client: AsyncClient):
        self.client = client
        self.catalog = CatalogRepository(client)
        self.orders = OrderRepository(client)
        self.carts = CartRepository(client)

    @classmethod
    async def create(cls) -> "Database":
        """Async factory: build the Supabase client from the environment."""
        client = await get_supabase()
        return cls(client)


_db: Optional[Database] = None
_db_lock: Optional[asyncio.Lock] = None


def _get_lock() -> asyncio.Lock:
    global _db_lock
    if _db_lock is None:
        _db_lock = asyncio.Lock()
    return _db_lock


async def init_database() -> Database:
    """Initialize async database singleton.

    Called at FastAPI startup (lifespan) or lazily on first use.
    """
    global _db
    if _db is not None:
        return _db

    async with _get_lock():
        if _db is None:
            logger.info("Initializing async Supabase client...")
            _db = await Database.create()
            logger.info("Async Supabase client initialized successfully")
    return _db


async def get_database_async() -> Database:
    """Database instance with lazy initialization (bot handlers, relay endpoint)."""
    if _db is None:
        return await init_database()
    return _db


def get_database() -> Database:
    """Get database instance (sync accessor).

    Raises:
        RuntimeError: If init_database() has not run yet
    """
    if _db is None:
        raise RuntimeError(
            "Database not initialized. Use 'await get_database_async()' for lazy init, "
            "or call 'await init_database()' at startup."
        )
    return _db


async def close_database() -> None:
    """Drop the singleton at FastAPI shutdown."""
    global _db
    if _db is not None:
        _db = None
        logger.info("Supabase client released")
