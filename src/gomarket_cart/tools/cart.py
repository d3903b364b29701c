import logging
from typing import Any

from gomarket_cart.errors import CartError
from gomarket_cart.state import LineItem, Product
from gomarket_cart.store import CartStore

logger = logging.getLogger(__name__)


def _item_dict(item: LineItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "title": item.title,
        "image_url": item.image_url,
        "price": item.price,
        "quantity": item.quantity,
    }


def _failure(e: CartError) -> dict[str, Any]:
    return {"success": False, "error": str(e), "code": e.code}


async def get_cart(store: CartStore) -> dict[str, Any]:
    """View the current cart contents."""
    products = store.products
    return {
        "success": True,
        "items": [_item_dict(item) for item in products],
        "item_count": len(products),
        "total_quantity": sum(item.quantity for item in products),
    }


async def add_to_cart(
    store: CartStore,
    item_id: str,
    title: str,
    image_url: str,
    price: float,
) -> dict[str, Any]:
    """Add a product, or one more of it if it is already in the cart."""
    try:
        item = store.add_to_cart(
            Product(id=item_id, title=title, image_url=image_url, price=price)
        )
        return {
            "success": True,
            "item": _item_dict(item),
            "cart_total_items": len(store.products),
        }

    except CartError as e:
        return _failure(e)
    except Exception as e:
        logger.exception("Error adding to cart")
        return {"success": False, "error": str(e), "code": "ADD_FAILED"}


async def increment_item(store: CartStore, item_id: str) -> dict[str, Any]:
    """Raise the quantity of a cart item by one."""
    try:
        item = store.increment(item_id)
        return {"success": True, "item": _item_dict(item)}

    except CartError as e:
        return _failure(e)
    except Exception as e:
        logger.exception("Error incrementing cart item")
        return {"success": False, "error": str(e), "code": "INCREMENT_FAILED"}


async def decrement_item(store: CartStore, item_id: str) -> dict[str, Any]:
    """Lower the quantity of a cart item by one, removing it at zero."""
    try:
        item = store.decrement(item_id)
        if item is None:
            return {
                "success": True,
                "removed_item": item_id,
                "cart_total_items": len(store.products),
            }
        return {"success": True, "item": _item_dict(item)}

    except CartError as e:
        return _failure(e)
    except Exception as e:
        logger.exception("Error decrementing cart item")
        return {"success": False, "error": str(e), "code": "DECREMENT_FAILED"}


async def remove_from_cart(store: CartStore, item_id: str) -> dict[str, Any]:
    """Remove an item from the cart whatever its quantity."""
    try:
        removed = store.remove(item_id)
        return {
            "success": True,
            "removed_item": removed.id,
            "cart_total_items": len(store.products),
        }

    except CartError as e:
        return _failure(e)
    except Exception as e:
        logger.exception("Error removing from cart")
        return {"success": False, "error": str(e), "code": "REMOVE_FAILED"}


async def clear_cart(store: CartStore) -> dict[str, Any]:
    """Empty the entire cart."""
    store.clear()
    return {"success": True, "message": "Cart cleared."}
