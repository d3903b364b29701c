class CartError(Exception):
    """Base class for cart failures."""

    code = "CART_ERROR"


class HydrationDecodeError(CartError):
    """The stored snapshot exists but is not a valid cart."""

    code = "BAD_SNAPSHOT"


class MutationFault(CartError):
    code = "ADD_FAILED"


class ItemNotFound(CartError):
    code = "ITEM_NOT_FOUND"

    def __init__(self, item_id: str):
        super().__init__(f"No item with id {item_id!r} in the cart.")
        self.item_id = item_id


class OutOfScopeUsage(CartError):
    """The cart was used without an active store (programmer error)."""

    code = "NO_STORE"
