"""Storefront filter state and catalog filtering.

FilterState is loaded once when a session starts and written back on every
change through an injected storage object, so the category/supplier
selection survives reloads without any global state.
"""
import json
from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence

from kalipos.db import TTL, RedisKeys, get_redis
from kalipos.logging import get_logger, sanitize_id_for_logging
from kalipos.models import CatalogItem

logger = get_logger(__name__)


@dataclass
class FilterState:
    """Category and supplier selection. An empty category list means all categories."""
    selected_categories: list[str] = field(default_factory=list)
    selected_supplier: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "selected_categories": list(self.selected_categories),
            "selected_supplier": self.selected_supplier,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FilterState":
        categories = data.get("selected_categories") or []
        return cls(
            selected_categories=[str(c) for c in categories],
            selected_supplier=data.get("selected_supplier") or None,
        )


class FilterStateStorage(Protocol):
    async def load(self, user_telegram_id: int) -> Optional[FilterState]: ...

    async def save(self, user_telegram_id: int, state: FilterState) -> None: ...


class InMemoryFilterStateStorage:
    """Process-local storage, used when Redis is not configured and in tests."""

    def __init__(self):
        self._states: dict[int, dict] = {}

    async def load(self, user_telegram_id: int) -> Optional[FilterState]:
        data = self._states.get(user_telegram_id)
        return FilterState.from_dict(data) if data is not None else None

    async def save(self, user_telegram_id: int, state: FilterState) -> None:
        self._states[user_telegram_id] = state.to_dict()


class RedisFilterStateStorage:
    """Upstash Redis storage with a 30-day TTL."""

    def __init__(self, redis=None):
        self._redis = redis  # Lazy initialization

    @property
    def redis(self):
        if self._redis is None:
            self._redis = get_redis()
        return self._redis

    async def load(self, user_telegram_id: int) -> Optional[FilterState]:
        key = RedisKeys.filter_state_key(user_telegram_id)
        data = await self.redis.get(key)
        if not data:
            return None
        try:
            return FilterState.from_dict(json.loads(data))
        except (json.JSONDecodeError, AttributeError, TypeError) as e:
            # Corrupted data - drop it and start from defaults
            logger.warning(
                "Corrupted filter state for user %s: %s",
                sanitize_id_for_logging(user_telegram_id), type(e).__name__,
            )
            await self.redis.delete(key)
            return None

    async def save(self, user_telegram_id: int, state: FilterState) -> None:
        key = RedisKeys.filter_state_key(user_telegram_id)
        await self.redis.set(key, json.dumps(state.to_dict()), ex=TTL.FILTER_STATE)


def unique_categories(items: Sequence[CatalogItem]) -> list[str]:
    """Distinct non-empty categories in first-seen order."""
    seen: dict[str, None] = {}
    for item in items:
        if item.category and item.category not in seen:
            seen[item.category] = None
    return list(seen)


def matches_search(item: CatalogItem, query: str) -> bool:
    """Substring match over name, category and default supplier."""
    needle = query.strip().lower()
    if not needle:
        return True
    return any(
        needle in value.lower()
        for value in (item.item_name, item.category, item.default_supplier)
        if value
    )


def filter_items(
    items: Sequence[CatalogItem],
    query: str,
    state: Optional[FilterState] = None,
) -> list[CatalogItem]:
    """The catalog view shown for the current search text and filter state."""
    state = state or FilterState()
    categories = set(state.selected_categories)

    result = []
    for item in items:
        if not matches_search(item, query):
            continue
        if categories and item.category not in categories:
            continue
        if state.selected_supplier and item.default_supplier != state.selected_supplier:
            continue
        result.append(item)
    return result
