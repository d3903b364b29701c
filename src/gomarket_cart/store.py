import asyncio
import logging
from dataclasses import replace
from typing import Callable, Optional

from gomarket_cart.codec import decode_products, encode_products
from gomarket_cart.errors import (
    HydrationDecodeError,
    ItemNotFound,
    MutationFault,
    OutOfScopeUsage,
)
from gomarket_cart.state import LineItem, Product
from gomarket_cart.storage import KeyValueStore

logger = logging.getLogger(__name__)

STORAGE_KEY = "@GoMarketplace:products"

Listener = Callable[[tuple[LineItem, ...]], None]


class CartStore:
    """
    Ordered cart line items, unique by product id, persisted as one snapshot.

    Mutations update the in-memory list synchronously and hand the new
    snapshot to a single background writer task, so saves never overlap and
    the last one to finish always carries the latest state. Mutating requires
    a running event loop.

    Usage:
        store = CartStore(JsonFileStorage("/data/cart.json"))
        await store.hydrate()
        store.add_to_cart(Product(id="p1", title="Shirt", image_url="x", price=10))
        await store.flush()
    """

    def __init__(self, storage: KeyValueStore, key: str = STORAGE_KEY):
        self._storage = storage
        self._key = key
        self._items: list[LineItem] = []
        self._listeners: list[Listener] = []
        self._pending: Optional[str] = None
        self._writer: Optional[asyncio.Task] = None

    @property
    def products(self) -> tuple[LineItem, ...]:
        return tuple(self._items)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener` with the new products after every change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def hydrate(self) -> tuple[LineItem, ...]:
        """Load the saved snapshot. A corrupt snapshot is discarded, not saved over."""
        raw = await self._storage.get(self._key)
        if raw is None:
            logger.info("No saved cart under %s; starting empty", self._key)
            self._items = []
        else:
            try:
                self._items = decode_products(raw)
                logger.info("Loaded %d cart items", len(self._items))
            except HydrationDecodeError as e:
                logger.warning("Discarding saved cart: %s", e)
                self._items = []
        self._notify()
        return self.products

    def add_to_cart(self, product: Product) -> LineItem:
        """Append a new product with quantity 1, or bump the quantity of the existing one."""
        loop = self._require_loop()
        try:
            index = self._index_of(product.id)
            items = list(self._items)
            if index is None:
                item = LineItem(
                    id=product.id,
                    title=product.title,
                    image_url=product.image_url,
                    price=float(product.price),
                    quantity=1,
                )
                items.append(item)
            else:
                item = replace(items[index], quantity=items[index].quantity + 1)
                items[index] = item
        except Exception as e:
            logger.exception("Error adding product to cart")
            raise MutationFault(f"Could not add product to cart: {e}") from e

        self._commit(items, loop)
        return item

    def increment(self, item_id: str) -> LineItem:
        loop = self._require_loop()
        index = self._find(item_id)
        items = list(self._items)
        item = replace(items[index], quantity=items[index].quantity + 1)
        items[index] = item
        self._commit(items, loop)
        return item

    def decrement(self, item_id: str) -> Optional[LineItem]:
        """Lower the quantity by one; an item at quantity 1 is removed and None returned."""
        loop = self._require_loop()
        index = self._find(item_id)
        items = list(self._items)
        current = items[index]
        if current.quantity == 1:
            del items[index]
            item = None
        else:
            item = replace(current, quantity=current.quantity - 1)
            items[index] = item
        self._commit(items, loop)
        return item

    def remove(self, item_id: str) -> LineItem:
        loop = self._require_loop()
        index = self._find(item_id)
        items = list(self._items)
        removed = items.pop(index)
        self._commit(items, loop)
        return removed

    def clear(self) -> None:
        loop = self._require_loop()
        self._commit([], loop)

    async def flush(self) -> None:
        """Wait until every scheduled write-back has finished."""
        while self._writer is not None and not self._writer.done():
            await asyncio.shield(self._writer)

    def _index_of(self, item_id: str) -> Optional[int]:
        for i, item in enumerate(self._items):
            if item.id == item_id:
                return i
        return None

    def _find(self, item_id: str) -> int:
        index = self._index_of(item_id)
        if index is None:
            raise ItemNotFound(item_id)
        return index

    @staticmethod
    def _require_loop() -> asyncio.AbstractEventLoop:
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            raise OutOfScopeUsage(
                "CartStore can only be changed from inside a running event loop"
            ) from None

    def _commit(self, items: list[LineItem], loop: asyncio.AbstractEventLoop) -> None:
        self._items = items
        self._pending = encode_products(items)
        if self._writer is None or self._writer.done():
            self._writer = loop.create_task(self._write_back())
        self._notify()

    async def _write_back(self) -> None:
        while self._pending is not None:
            snapshot, self._pending = self._pending, None
            try:
                await self._storage.set(self._key, snapshot)
            except Exception:
                # Not retried; the next mutation writes a full snapshot again.
                logger.exception("Failed to persist cart snapshot")

    def _notify(self) -> None:
        products = self.products
        for listener in list(self._listeners):
            try:
                listener(products)
            except Exception:
                logger.exception("Cart listener %r failed", listener)
