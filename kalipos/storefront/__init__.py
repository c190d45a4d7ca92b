"""Storefront: search-box commands, catalog filters and per-user sessions."""
from .commands import (
    KEY_ENTER,
    AddItem,
    Command,
    CreateOrder,
    InvalidCommand,
    NoOp,
    SaveCart,
    clears_search,
    evaluate,
)
from .filters import FilterState, InMemoryFilterStateStorage, RedisFilterStateStorage, filter_items
from .session import Notice, SearchOutcome, SessionRegistry, StorefrontSession

__all__ = [
    "KEY_ENTER",
    "AddItem",
    "Command",
    "CreateOrder",
    "InvalidCommand",
    "NoOp",
    "SaveCart",
    "clears_search",
    "evaluate",
    "FilterState",
    "InMemoryFilterStateStorage",
    "RedisFilterStateStorage",
    "filter_items",
    "Notice",
    "SearchOutcome",
    "SessionRegistry",
    "StorefrontSession",
]
