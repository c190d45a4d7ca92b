"""Order number generation."""
import threading
import time

CART_ORDER_PREFIX = "ORD"
BOT_ORDER_PREFIX = "TG"

_lock = threading.Lock()
_last_millis = 0


def _unix_millis() -> int:
    return time.time_ns() // 1_000_000


def generate_order_number(prefix: str) -> str:
    """
    ``<prefix>-<unix millis>``, strictly increasing within this process.

    Two orders in the same millisecond get consecutive values instead of
    colliding on the unique ``order_number`` column. Across processes the
    database constraint is the only guard.
    """
    global _last_millis
    with _lock:
        millis = max(_unix_millis(), _last_millis + 1)
        _last_millis = millis
    return f"{prefix}-{millis}"
