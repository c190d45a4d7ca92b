"""
Storefront session: one user's cart, filters and search box.

Wires the pure command grammar to its side effects and turns every terminal
outcome into a titled Notice for the UI.
"""
import asyncio
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, Literal, Optional

from kalipos.cart import CartLine, CartStore
from kalipos.errors import (
    ERROR_CART_DELETE_FAILED,
    ERROR_CART_DUPLICATE_FAILED,
    ERROR_CART_LIST_FAILED,
    ERROR_CART_LOAD_FAILED,
    ERROR_CART_NOT_FOUND,
    ERROR_CART_SAVE_FAILED,
    ERROR_CART_UPDATE_FAILED,
    ERROR_EMPTY_CART_SAVE,
    ERROR_FETCHING_ORDERS,
    EmptyCartError,
    InvalidCartNameError,
    MissingUserError,
    NotFoundError,
    PartialPersistenceError,
    PersistenceError,
    ValidationError,
)
from kalipos.logging import get_logger, sanitize_id_for_logging
from kalipos.models import AdHocItem, CatalogItem, OrderWithLines, SavedCart
from kalipos.orders import OrderSubmitter
from kalipos.services.quantity import format_quantity, to_number
from kalipos.services.repositories import CartRepository, CatalogRepository, OrderRepository
from .commands import AddItem, Command, CreateOrder, InvalidCommand, NoOp, SaveCart, clears_search, evaluate
from .filters import FilterState, FilterStateStorage, filter_items, unique_categories

logger = get_logger(__name__)

NoticeLevel = Literal["success", "error", "warning", "info"]

MAX_SESSIONS = 1000
SESSION_IDLE_TTL = 12 * 3600


@dataclass(frozen=True)
class Notice:
    """Titled user-visible message (green/red/orange/blue in the UI)."""
    title: str
    message: str
    level: NoticeLevel

    def to_dict(self) -> dict:
        return {"title": self.title, "message": self.message, "level": self.level}


def validation_notice(error: ValidationError) -> Notice:
    if error.code == "EMPTY_CART":
        return Notice("Empty Cart", error.message, "warning")
    if error.code == "INVALID_CART_NAME":
        return Notice("Invalid Command", error.message, "warning")
    return Notice("Error", error.message, "error")


@dataclass(frozen=True)
class SearchOutcome:
    command: Command
    notice: Optional[Notice]
    search_text: str


@dataclass
class StorefrontSession:
    """State of one storefront user; mutated only from that user's requests."""
    user_id: Optional[int]
    submitter: OrderSubmitter
    carts: CartRepository
    catalog_repo: CatalogRepository
    filter_storage: FilterStateStorage
    orders: OrderRepository
    cart: CartStore = field(default_factory=CartStore)
    filter_state: FilterState = field(default_factory=FilterState)
    catalog: list[CatalogItem] = field(default_factory=list)
    _order_lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    async def start(self) -> None:
        """Load the catalog and the saved filter state."""
        await self.refresh_catalog()
        if self.user_id is not None:
            try:
                saved = await self.filter_storage.load(self.user_id)
            except Exception as e:
                logger.warning("Filter state unavailable, using defaults: %s", e)
                saved = None
            if saved is not None:
                self.filter_state = saved

    async def refresh_catalog(self) -> None:
        self.catalog = await self.catalog_repo.get_all()

    @property
    def categories(self) -> list[str]:
        return unique_categories(self.catalog)

    def find_item(self, item_name: str) -> Optional[CatalogItem]:
        """Catalog item with exactly this name."""
        return next((item for item in self.catalog if item.item_name == item_name), None)

    def filtered(self, query: str = "") -> list[CatalogItem]:
        return filter_items(self.catalog, query, self.filter_state)

    async def update_filters(self, state: FilterState) -> FilterState:
        """Replace the filter state and persist it."""
        self.filter_state = state
        if self.user_id is not None:
            try:
                await self.filter_storage.save(self.user_id, state)
            except Exception as e:
                # Selection still applies for this session
                logger.warning("Failed to save filter state: %s", e)
        return self.filter_state

    # ==================== SEARCH BOX ====================

    async def handle_search(self, text: str, key: str) -> SearchOutcome:
        """Evaluate the search box and apply the resulting command."""
        command = evaluate(text, key, self.catalog, self.filtered(text))
        notice = await self.apply(command)
        search_text = "" if clears_search(command) else text
        return SearchOutcome(command=command, notice=notice, search_text=search_text)

    async def apply(self, command: Command) -> Optional[Notice]:
        if isinstance(command, AddItem):
            return self.add_item(command.item, command.quantity)
        if isinstance(command, SaveCart):
            return await self.save_cart(command.name)
        if isinstance(command, CreateOrder):
            return await self.place_order()
        if isinstance(command, InvalidCommand):
            return Notice("Invalid Command", command.message, "warning")
        if isinstance(command, NoOp):
            return None
        raise TypeError(f"Unknown command: {command!r}")

    # ==================== CART ====================

    def add_item(self, item: CatalogItem | AdHocItem, quantity) -> Notice:
        self.cart.add(item, quantity)
        if isinstance(item, AdHocItem):
            return Notice("New Item Created", f'"{item.item_name}" created and added to order', "info")
        return Notice(
            "Item Added to Order",
            f'"{item.item_name}" added with quantity {format_quantity(quantity)}',
            "success",
        )

    async def place_order(self) -> Notice:
        """Submit the cart; every outcome becomes a notice.

        Submissions of one session run one at a time, so a second request
        sees the cart the first one left behind.
        """
        async with self._order_lock:
            try:
                result = await self.submitter.submit(self.cart, self.user_id)
            except ValidationError as e:
                return validation_notice(e)
            except (PersistenceError, PartialPersistenceError) as e:
                return Notice("Error", e.message, "error")

        return Notice(
            "Order Created",
            f"Order {result.order_number} placed successfully with {result.line_count} items",
            "success",
        )

    # ==================== SAVED CARTS ====================

    def _check_saveable(self, name: str) -> None:
        if not name or not name.strip():
            raise InvalidCartNameError()
        if self.cart.is_empty:
            raise EmptyCartError(ERROR_EMPTY_CART_SAVE)
        if self.user_id is None:
            raise MissingUserError()

    async def save_cart(self, name: str, is_template: bool = False) -> Notice:
        try:
            self._check_saveable(name)
        except ValidationError as e:
            return validation_notice(e)
        name = name.strip()

        rows = [
            {"item_name": line.item_name, "quantity": to_number(line.quantity), "category": line.category}
            for line in self.cart.lines
        ]
        try:
            await self.carts.create(name, self.user_id, rows, is_template=is_template)
        except Exception as e:
            logger.error("Failed to save cart for user %s: %s", sanitize_id_for_logging(self.user_id), e, exc_info=True)
            return Notice("Error", ERROR_CART_SAVE_FAILED, "error")

        return Notice("Cart Saved", f'Cart "{name}" saved successfully', "success")

    async def load_saved_cart(self, cart_id: str) -> Notice:
        """Replace the cart content with a saved cart's lines."""
        try:
            saved = await self.carts.get_by_id(cart_id)
        except Exception as e:
            logger.error("Failed to load cart %s: %s", sanitize_id_for_logging(cart_id), e, exc_info=True)
            return Notice("Error", ERROR_CART_LOAD_FAILED, "error")

        if saved is None or saved.telegram_user_id != self.user_id:
            return Notice("Error", ERROR_CART_NOT_FOUND, "error")

        self.cart.load_lines(
            CartLine(item_name=line.item_name, quantity=line.quantity, category=line.category)
            for line in saved.items
        )
        return Notice("Cart Loaded", f'Cart "{saved.cart_name}" loaded with {self.cart.item_count} items', "success")

    async def list_saved_carts(self) -> tuple[list[SavedCart], Optional[Notice]]:
        """Saved carts and templates, newest first, or an error notice."""
        try:
            return await self.carts.get_by_user(self.user_id), None
        except Exception as e:
            logger.error("Failed to list carts for user %s: %s", sanitize_id_for_logging(self.user_id), e, exc_info=True)
            return [], Notice("Error", ERROR_CART_LIST_FAILED, "error")

    async def duplicate_saved_cart(self, cart_id: str) -> Notice:
        """
        Copy a saved cart as a new non-template "<name> (Copy)" cart.

        Raises:
            NotFoundError: no such cart for this user
        """
        try:
            new_id = await self.carts.duplicate(cart_id, self.user_id)
        except Exception as e:
            logger.error("Failed to duplicate cart %s: %s", sanitize_id_for_logging(cart_id), e, exc_info=True)
            return Notice("Error", ERROR_CART_DUPLICATE_FAILED, "error")

        if new_id is None:
            raise NotFoundError(ERROR_CART_NOT_FOUND)
        return Notice("Cart Duplicated", "Cart duplicated successfully", "success")

    async def set_template(self, cart_id: str, is_template: bool) -> Notice:
        """
        Mark or unmark a saved cart as a template.

        Raises:
            NotFoundError: no such cart for this user
        """
        try:
            updated = await self.carts.set_template(cart_id, self.user_id, is_template)
        except Exception as e:
            logger.error("Failed to update cart %s: %s", sanitize_id_for_logging(cart_id), e, exc_info=True)
            return Notice("Error", ERROR_CART_UPDATE_FAILED, "error")

        if not updated:
            raise NotFoundError(ERROR_CART_NOT_FOUND)
        message = "Added to templates" if is_template else "Removed from templates"
        return Notice("Cart Updated", message, "success")

    async def delete_saved_cart(self, cart_id: str) -> Notice:
        """
        Raises:
            NotFoundError: no such cart for this user
        """
        try:
            deleted = await self.carts.delete(cart_id, self.user_id)
        except Exception as e:
            logger.error("Failed to delete cart %s: %s", sanitize_id_for_logging(cart_id), e, exc_info=True)
            return Notice("Error", ERROR_CART_DELETE_FAILED, "error")

        if not deleted:
            raise NotFoundError(ERROR_CART_NOT_FOUND)
        return Notice("Cart Deleted", "Cart deleted successfully", "success")

    # ==================== ORDER HISTORY ====================

    async def order_history(self, limit: Optional[int] = None) -> tuple[list[OrderWithLines], Optional[Notice]]:
        """User's orders with their lines, newest first, or an error notice."""
        try:
            return await self.orders.get_recent_by_user(self.user_id, limit=limit), None
        except Exception as e:
            logger.error("Failed to fetch orders for user %s: %s", sanitize_id_for_logging(self.user_id), e, exc_info=True)
            return [], Notice("Error", ERROR_FETCHING_ORDERS, "error")


class SessionRegistry:
    """
    In-memory sessions keyed by Telegram user id.

    A cart is never shared between users. Sessions idle for longer than
    ``idle_ttl`` seconds are dropped, and past ``max_sessions`` the least
    recently used one goes first.
    """

    def __init__(
        self,
        factory: Callable[[int], StorefrontSession],
        max_sessions: int = MAX_SESSIONS,
        idle_ttl: float = SESSION_IDLE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._factory = factory
        self._max_sessions = max_sessions
        self._idle_ttl = idle_ttl
        self._clock = clock
        self._sessions: "OrderedDict[int, tuple[float, StorefrontSession]]" = OrderedDict()
        # Per-user, so one slow catalog load does not hold up other users
        self._locks: dict[int, asyncio.Lock] = {}

    def _expired(self, seen: float) -> bool:
        return self._idle_ttl > 0 and self._clock() - seen > self._idle_ttl

    def _cached(self, user_id: int) -> Optional[StorefrontSession]:
        entry = self._sessions.get(user_id)
        if entry is None:
            return None
        seen, session = entry
        if self._expired(seen):
            self._sessions.pop(user_id, None)
            return None
        self._store(user_id, session)
        return session

    def _store(self, user_id: int, session: StorefrontSession) -> None:
        self._sessions[user_id] = (self._clock(), session)
        self._sessions.move_to_end(user_id)

    def _prune(self) -> None:
        expired = [user_id for user_id, (seen, _) in self._sessions.items() if self._expired(seen)]
        for user_id in expired:
            self._sessions.pop(user_id, None)
        while len(self._sessions) > self._max_sessions:
            user_id, _ = self._sessions.popitem(last=False)
            logger.debug("Evicted storefront session %s", sanitize_id_for_logging(user_id))
        for user_id in [uid for uid, lock in self._locks.items() if not lock.locked()]:
            if user_id not in self._sessions:
                del self._locks[user_id]

    async def get(self, user_id: int) -> StorefrontSession:
        session = self._cached(user_id)
        if session is not None:
            return session

        lock = self._locks.setdefault(user_id, asyncio.Lock())
        async with lock:
            session = self._cached(user_id)
            if session is None:
                session = self._factory(user_id)
                await session.start()
                self._store(user_id, session)
        self._prune()
        return session

    def reset(self, user_id: int) -> bool:
        """Drop the user's session; the next request starts an empty cart."""
        return self._sessions.pop(user_id, None) is not None

    def __len__(self) -> int:
        return len(self._sessions)
