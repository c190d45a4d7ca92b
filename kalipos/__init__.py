"""
Kalipos Core Module

This package contains the ordering storefront components:
- db: Database clients (Supabase + Redis)
- cart: in-memory cart consolidation
- storefront: search-box commands, filters, session facade
- orders: order pipeline, cart submitter, bot order entry
- bot: aiogram routers for the chat channel

Note: Imports are lazy to avoid circular dependency issues
and ensure clean module loading in serverless environments.
"""

__all__ = [
    "get_supabase",
    "get_redis",
    "get_database",
]


def __getattr__(name):
    """Lazy attribute access for clean serverless loading."""
    if name == "get_supabase":
        from kalipos.db import get_supabase
        return get_supabase
    elif name == "get_redis":
        from kalipos.db import get_redis
        return get_redis
    elif name == "get_database":
        from kalipos.services.database import get_database
        return get_database
    raise AttributeError(f"module 'kalipos' has no attribute '{name}'")
