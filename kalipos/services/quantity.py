"""
Quantity Utilities - Decimal handling for order quantities.

Quantities may be fractional (kg, litres), so they are kept as Decimal and
only converted to int/float at the JSON boundary.
"""
from decimal import Decimal, InvalidOperation
from typing import Union

Number = Union[str, int, float, Decimal]


def to_decimal(value: Number | None) -> Decimal:
    """
    Convert any value to Decimal safely.

    Args:
        value: Value to convert (str, int, float, Decimal, or None)

    Returns:
        Decimal representation, or Decimal("0") if None/invalid
    """
    if value is None:
        return Decimal("0")

    if isinstance(value, Decimal):
        return value

    try:
        if isinstance(value, float):
            # Via str to avoid binary float artefacts (0.1 -> 0.1000000000000000055...)
            return Decimal(str(value))
        if isinstance(value, str):
            return Decimal(value.strip())
        return Decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        return Decimal("0")


def parse_quantity(value: Number | None) -> Decimal | None:
    """Parse a user-supplied quantity; None when not a finite positive number."""
    if value is None:
        return None
    try:
        quantity = Decimal(str(value).strip()) if not isinstance(value, Decimal) else value
    except (InvalidOperation, ValueError):
        return None
    if not quantity.is_finite() or quantity <= 0:
        return None
    return quantity


def to_number(value: Number | None) -> int | float:
    """JSON-safe form of a quantity: int when integral, float otherwise."""
    quantity = to_decimal(value)
    if quantity == quantity.to_integral_value():
        return int(quantity)
    return float(quantity)


def format_quantity(value: Number | None) -> str:
    """Render a quantity without trailing zeros ("2", "1.5")."""
    quantity = to_decimal(value)
    if quantity == quantity.to_integral_value():
        return str(int(quantity))
    return format(quantity.normalize(), "f")
