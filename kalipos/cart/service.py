"""In-memory cart store, one instance per storefront session."""
from decimal import Decimal
from typing import Iterable, Optional, Union

from kalipos.logging import get_logger, sanitize_string_for_logging
from kalipos.models import AdHocItem, CatalogItem
from kalipos.services.quantity import to_decimal
from .models import CartLine

logger = get_logger(__name__)


class CartStore:
    """
    Consolidates selections into cart lines.

    Features:
    - Merge by (item name, category): repeated adds sum quantities
    - A line never holds quantity <= 0; it is removed instead
    - Insertion order kept for display

    No I/O; every operation is total over the current state.
    """

    def __init__(self, lines: Optional[Iterable[CartLine]] = None):
        self._lines: dict[str, CartLine] = {}
        if lines:
            self.load_lines(lines)

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines.values())

    @property
    def item_count(self) -> int:
        """Number of distinct lines."""
        return len(self._lines)

    @property
    def total_quantity(self) -> Decimal:
        """Sum of all line quantities."""
        return sum((line.quantity for line in self._lines.values()), Decimal("0"))

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def get_line(self, line_id: str) -> Optional[CartLine]:
        return self._lines.get(line_id)

    def find_line(self, item_name: str, category: Optional[str] = None) -> Optional[CartLine]:
        """Line with the given identity key, if any."""
        key = (item_name, category)
        return next(
            (line for line in self._lines.values() if line.identity_key == key),
            None,
        )

    def add_item(
        self,
        item_name: str,
        quantity: Union[Decimal, int, float, str],
        category: Optional[str] = None,
    ) -> Optional[CartLine]:
        """
        Add quantity to the line with the same identity key, or open a new line.

        Returns the affected line, or None when the result would hold a
        non-positive quantity (the line is then absent).
        """
        quantity = to_decimal(quantity)

        existing = self.find_line(item_name, category)
        if existing:
            new_quantity = existing.quantity + quantity
            if new_quantity <= 0:
                self.remove_item(existing.line_id)
                return None
            existing.quantity = new_quantity
            return existing

        if quantity <= 0:
            logger.debug("Ignoring non-positive add for %s", sanitize_string_for_logging(item_name))
            return None

        line = CartLine(item_name=item_name, quantity=quantity, category=category)
        self._lines[line.line_id] = line
        return line

    def add(
        self,
        item: Union[CatalogItem, AdHocItem],
        quantity: Union[Decimal, int, float, str],
    ) -> Optional[CartLine]:
        """Add a catalog or ad-hoc item."""
        return self.add_item(item.item_name, quantity, item.category)

    def remove_item(self, line_id: str) -> None:
        """Delete a line. Unknown ids are ignored."""
        self._lines.pop(line_id, None)

    def update_quantity(self, line_id: str, quantity: Union[Decimal, int, float, str]) -> Optional[CartLine]:
        """Overwrite a line's quantity; <= 0 removes the line."""
        quantity = to_decimal(quantity)
        if quantity <= 0:
            self.remove_item(line_id)
            return None

        line = self._lines.get(line_id)
        if line is None:
            return None
        line.quantity = quantity
        return line

    def clear_cart(self) -> None:
        self._lines.clear()

    def remove_ordered(self, ordered: Iterable[CartLine]) -> None:
        """
        Take ordered snapshot lines out of the cart.

        Quantity added to a line after the snapshot stays in the cart, as do
        lines opened after it.
        """
        for snapshot_line in ordered:
            line = self._lines.get(snapshot_line.line_id)
            if line is None:
                continue
            remaining = line.quantity - snapshot_line.quantity
            if remaining <= 0:
                self.remove_item(line.line_id)
            else:
                line.quantity = remaining

    def load_lines(self, lines: Iterable[CartLine]) -> None:
        """Replace the cart content, consolidating duplicates by identity key."""
        self.clear_cart()
        for line in lines:
            self.add_item(line.item_name, line.quantity, line.category)

    def snapshot(self) -> list[CartLine]:
        """Detached copies of the current lines (safe to hand to async work)."""
        return [
            CartLine(
                item_name=line.item_name,
                quantity=line.quantity,
                category=line.category,
                line_id=line.line_id,
                added_at=line.added_at,
            )
            for line in self._lines.values()
        ]

    def to_dict(self) -> dict:
        return {
            "items": [line.to_dict() for line in self._lines.values()],
            "item_count": self.item_count,
            "total_quantity": float(self.total_quantity),
        }
