"""Cart line model with Decimal quantities."""
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from kalipos.services.quantity import to_decimal, to_number


def new_line_id() -> str:
    return str(uuid.uuid4())


@dataclass
class CartLine:
    """Single consolidated line in the cart."""
    item_name: str
    quantity: Decimal
    category: Optional[str] = None
    line_id: str = field(default_factory=new_line_id)
    added_at: str = ""

    def __post_init__(self):
        if not self.added_at:
            self.added_at = datetime.now(timezone.utc).isoformat()
        self.quantity = to_decimal(self.quantity)

    @property
    def identity_key(self) -> tuple[str, Optional[str]]:
        """Two additions with the same key merge into one line."""
        return (self.item_name, self.category)

    def to_dict(self) -> dict:
        """Convert to JSON-safe dictionary."""
        return {
            "id": self.line_id,
            "item_name": self.item_name,
            "quantity": to_number(self.quantity),
            "category": self.category,
            "added_at": self.added_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartLine":
        """Create from dictionary."""
        return cls(
            item_name=data["item_name"],
            quantity=to_decimal(data["quantity"]),
            category=data.get("category"),
            line_id=data.get("id") or new_line_id(),
            added_at=data.get("added_at", ""),
        )
