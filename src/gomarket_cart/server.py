import json
import logging
import os
import sys
from contextlib import asynccontextmanager

from mcp.server.fastmcp import FastMCP, Context

from gomarket_cart.config import CartConfig, load_config
from gomarket_cart.errors import OutOfScopeUsage
from gomarket_cart.storage import JsonFileStorage, KeyValueStore, MemoryStorage
from gomarket_cart.store import CartStore
from gomarket_cart.tools.cart import (
    add_to_cart,
    clear_cart,
    decrement_item,
    get_cart,
    increment_item,
    remove_from_cart,
)

# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


def build_storage(config: CartConfig) -> KeyValueStore:
    if config.storage.backend == "memory":
        return MemoryStorage()
    if config.storage.backend == "file":
        return JsonFileStorage(config.storage.path)
    raise ValueError(f"Unknown storage backend {config.storage.backend!r}")


@asynccontextmanager
async def lifespan(server: FastMCP):
    """Load config and hydrate the cart on startup; flush it on shutdown."""
    logger.info("Starting GoMarketplace cart server...")

    try:
        config = load_config()
        logger.info("Config loaded successfully")
    except FileNotFoundError as e:
        logger.error(str(e))
        raise

    if "LOG_LEVEL" not in os.environ:
        logging.getLogger().setLevel(
            getattr(logging, config.server.log_level.upper(), logging.INFO)
        )

    store = CartStore(build_storage(config), key=config.storage.key)
    await store.hydrate()

    try:
        yield {"config": config, "store": store}
    finally:
        await store.flush()
        logger.info("Shutting down GoMarketplace cart server")


host = os.environ.get("HOST", "0.0.0.0")
port = int(os.environ.get("PORT", "8000"))

mcp = FastMCP(
    "GoMarketplace Cart MCP Server",
    lifespan=lifespan,
    host=host,
    port=port,
)


def _get_store(ctx) -> CartStore:
    """Extract the cart store from the MCP context."""
    try:
        lifespan_context = ctx.request_context.lifespan_context
    except (AttributeError, ValueError) as e:
        raise OutOfScopeUsage("The cart is only available inside a running server") from e
    store = lifespan_context.get("store") if isinstance(lifespan_context, dict) else None
    if not isinstance(store, CartStore):
        raise OutOfScopeUsage("The cart is only available inside a running server")
    return store


@mcp.tool()
async def tool_get_cart(ctx: Context) -> str:
    """View the current cart: every line item with its quantity, in the order added."""
    store = _get_store(ctx)
    result = await get_cart(store)
    return json.dumps(result)


@mcp.tool()
async def tool_add_to_cart(
    ctx: Context,
    item_id: str,
    title: str,
    image_url: str,
    price: float,
) -> str:
    """Add a product to the cart. Adding a product that is already in the cart
    raises its quantity by one and keeps the title, image and price it was first added with."""
    store = _get_store(ctx)
    result = await add_to_cart(store, item_id, title, image_url, price)
    return json.dumps(result)


@mcp.tool()
async def tool_increment_item(ctx: Context, item_id: str) -> str:
    """Raise the quantity of a cart item by one."""
    store = _get_store(ctx)
    result = await increment_item(store, item_id)
    return json.dumps(result)


@mcp.tool()
async def tool_decrement_item(ctx: Context, item_id: str) -> str:
    """Lower the quantity of a cart item by one. An item with quantity 1 is removed."""
    store = _get_store(ctx)
    result = await decrement_item(store, item_id)
    return json.dumps(result)


@mcp.tool()
async def tool_remove_from_cart(ctx: Context, item_id: str) -> str:
    """Remove an item from the cart regardless of its quantity."""
    store = _get_store(ctx)
    result = await remove_from_cart(store, item_id)
    return json.dumps(result)


@mcp.tool()
async def tool_clear_cart(ctx: Context) -> str:
    """Empty the entire cart."""
    store = _get_store(ctx)
    result = await clear_cart(store)
    return json.dumps(result)


if __name__ == "__main__":
    logger.info(f"Starting MCP server on {host}:{port}")
    mcp.run(transport="streamable-http")
