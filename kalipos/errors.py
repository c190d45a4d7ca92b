"""
Error taxonomy and user-facing error messages.

Message constants are shared by the storefront notices and the bot
acknowledgements so both channels word failures the same way.
"""

# Validation
ERROR_EMPTY_CART = "Add items to cart before placing an order"
ERROR_EMPTY_CART_SAVE = "Cannot save an empty cart"
ERROR_MISSING_USER = "Telegram user not found"
ERROR_INVALID_CART_NAME = "Please specify a cart name: save+MyCart"

# Persistence
ERROR_ORDER_SAVE_FAILED = "Failed to create order"
ERROR_ORDER_LINES_FAILED = "Order {order_number} was created but its items could not be saved"
ERROR_CART_SAVE_FAILED = "Failed to save cart"
ERROR_CART_LOAD_FAILED = "Failed to load cart"
ERROR_CART_NOT_FOUND = "Cart not found"
ERROR_CART_LIST_FAILED = "Failed to load saved carts"
ERROR_CART_DUPLICATE_FAILED = "Failed to duplicate cart"
ERROR_CART_UPDATE_FAILED = "Failed to update cart"
ERROR_CART_DELETE_FAILED = "Failed to delete cart"

# Bot
ERROR_ITEM_NOT_FOUND = "Item not found"
ERROR_SAVING_ORDER = "Error saving order"
ERROR_FETCHING_ORDERS = "Error fetching orders"
ERROR_UNKNOWN_ACTION = "Unknown action"


class KaliposError(Exception):
    """Base class for ordering pipeline errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class ValidationError(KaliposError):
    """Input rejected before anything is persisted."""


class EmptyCartError(ValidationError):
    def __init__(self, message: str = ERROR_EMPTY_CART) -> None:
        super().__init__(message, code="EMPTY_CART")


class MissingUserError(ValidationError):
    def __init__(self, message: str = ERROR_MISSING_USER) -> None:
        super().__init__(message, code="MISSING_USER")


class InvalidCartNameError(ValidationError):
    def __init__(self, message: str = ERROR_INVALID_CART_NAME) -> None:
        super().__init__(message, code="INVALID_CART_NAME")


class PersistenceError(KaliposError):
    """Order header write failed. No partial state exists; safe to retry."""

    def __init__(self, message: str = ERROR_ORDER_SAVE_FAILED, raw_error: Exception | None = None) -> None:
        super().__init__(message, code="PERSISTENCE")
        self.raw_error = raw_error


class PartialPersistenceError(KaliposError):
    """
    Order header committed but the line-item write failed.

    The order number already exists with zero lines. Nothing is rolled back;
    a retry creates a second order.
    """

    def __init__(self, order_number: str, raw_error: Exception | None = None) -> None:
        super().__init__(
            ERROR_ORDER_LINES_FAILED.format(order_number=order_number),
            code="PARTIAL_PERSISTENCE",
        )
        self.order_number = order_number
        self.raw_error = raw_error


class NotFoundError(KaliposError):
    """Referenced catalog item or saved cart no longer resolves."""

    def __init__(self, message: str = ERROR_ITEM_NOT_FOUND) -> None:
        super().__init__(message, code="NOT_FOUND")


class NotificationError(KaliposError):
    """Notification relay rejected the message or was unreachable."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message, code="NOTIFICATION")
        self.status_code = status_code
