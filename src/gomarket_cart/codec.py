"""Snapshot format for the persisted cart.

A snapshot is a JSON array of line item objects:

    [{"id": "p1", "title": "Shirt", "image_url": "x", "price": 10.0, "quantity": 2}]

Prices are always written as floats so that a decoded snapshot re-encodes to
the same text.
"""

import json
from dataclasses import asdict
from typing import Iterable, Union

from pydantic import TypeAdapter, ValidationError

from gomarket_cart.errors import HydrationDecodeError
from gomarket_cart.state import LineItem

_snapshot_adapter = TypeAdapter(list[LineItem])


def encode_products(items: Iterable[LineItem]) -> str:
    return json.dumps([asdict(item) for item in items])


def decode_products(raw: Union[str, bytes]) -> list[LineItem]:
    """Parse a snapshot, raising HydrationDecodeError if it is not a valid cart."""
    try:
        items = _snapshot_adapter.validate_json(raw)
    except ValidationError as e:
        raise HydrationDecodeError(
            f"Stored cart snapshot is invalid ({e.error_count()} errors)"
        ) from e

    seen: set[str] = set()
    for item in items:
        if item.quantity < 1:
            raise HydrationDecodeError(
                f"Stored cart has quantity {item.quantity} for item {item.id!r}"
            )
        if item.id in seen:
            raise HydrationDecodeError(f"Stored cart lists item {item.id!r} twice")
        seen.add(item.id)
    return items
