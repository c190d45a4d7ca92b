"""
Search-box command grammar.

The storefront search box doubles as a command line:

    save+<name>      save the current cart under <name>
    create order     submit the cart (also "createorder")
    <text> + 1..9    add the best match with that quantity
    <text> + Enter   add the best match, or create an ad-hoc item

``evaluate`` is pure: it maps (text, key, catalog) to one command and the
caller performs the side effects.
"""
from dataclasses import dataclass
from typing import Optional, Sequence, Union

from kalipos.errors import ERROR_INVALID_CART_NAME
from kalipos.models import AdHocItem, CatalogItem

KEY_ENTER = "Enter"

SAVE_PREFIX = "save+"
CREATE_ORDER_COMMANDS = frozenset({"create order", "createorder"})


@dataclass(frozen=True)
class AddItem:
    item: Union[CatalogItem, AdHocItem]
    quantity: int


@dataclass(frozen=True)
class SaveCart:
    name: str


@dataclass(frozen=True)
class CreateOrder:
    pass


@dataclass(frozen=True)
class NoOp:
    pass


@dataclass(frozen=True)
class InvalidCommand:
    message: str


Command = Union[AddItem, SaveCart, CreateOrder, NoOp, InvalidCommand]


def clears_search(command: Command) -> bool:
    """Whether the caller should clear the search text after this command."""
    return not isinstance(command, (NoOp, InvalidCommand))


def digit_quantity(key: str) -> Optional[int]:
    """Quantity for a single-digit key 1-9, else None."""
    if len(key) == 1 and key in "123456789":
        return int(key)
    return None


def resolve_target(
    text: str,
    catalog: Sequence[CatalogItem],
    filtered: Sequence[CatalogItem],
) -> Optional[CatalogItem]:
    """Exact case-insensitive name match over the whole catalog wins, else first filtered entry."""
    needle = text.strip().lower()
    if needle:
        exact = next(
            (item for item in catalog if item.item_name.lower() == needle),
            None,
        )
        if exact is not None:
            return exact
    return filtered[0] if filtered else None


def evaluate(
    text: str,
    key: str,
    catalog: Sequence[CatalogItem],
    filtered: Sequence[CatalogItem],
) -> Command:
    """
    Interpret search-box text and the key that triggered evaluation.

    Args:
        text: Current search-box text (untrimmed)
        key: "Enter" or a single character key
        catalog: Full catalog, for exact-name resolution
        filtered: Catalog view currently shown for ``text``

    Returns:
        Exactly one command
    """
    trimmed = text.strip()
    lowered = trimmed.lower()

    if lowered.startswith(SAVE_PREFIX):
        name = trimmed[len(SAVE_PREFIX):].strip()
        if name:
            return SaveCart(name=name)
        return InvalidCommand(message=ERROR_INVALID_CART_NAME)

    if lowered in CREATE_ORDER_COMMANDS:
        return CreateOrder()

    quantity = digit_quantity(key)
    if quantity is not None:
        if text and filtered:
            target = resolve_target(text, catalog, filtered)
            return AddItem(item=target, quantity=quantity)
        return NoOp()

    if key != KEY_ENTER:
        return NoOp()

    target = resolve_target(text, catalog, filtered)
    if target is not None:
        return AddItem(item=target, quantity=1)
    if trimmed:
        return AddItem(item=AdHocItem(item_name=trimmed), quantity=1)
    return NoOp()
