"""
Tests for the cart snapshot format
"""

import json

import pytest

from gomarket_cart.codec import decode_products, encode_products
from gomarket_cart.errors import HydrationDecodeError
from gomarket_cart.state import LineItem


def _items():
    return [
        LineItem(id="p1", title="Shirt", image_url="x", price=10.0, quantity=2),
        LineItem(id="p2", title="Shoes", image_url="y", price=59.9, quantity=1),
    ]


class TestEncode:
    def test_encodes_json_array_of_records(self):
        data = json.loads(encode_products(_items()))

        assert data[0] == {
            "id": "p1",
            "title": "Shirt",
            "image_url": "x",
            "price": 10.0,
            "quantity": 2,
        }
        assert [d["id"] for d in data] == ["p1", "p2"]

    def test_empty_cart(self):
        assert encode_products([]) == "[]"


class TestDecode:
    def test_round_trip(self):
        items = _items()
        text = encode_products(items)

        assert decode_products(text) == items
        assert encode_products(decode_products(text)) == text

    def test_accepts_bytes(self):
        assert decode_products(encode_products(_items()).encode()) == _items()

    def test_integer_price_becomes_float(self):
        raw = '[{"id": "p1", "title": "Shirt", "image_url": "x", "price": 10, "quantity": 1}]'
        items = decode_products(raw)

        assert isinstance(items[0].price, float)
        assert decode_products(encode_products(items)) == items

    @pytest.mark.parametrize(
        "raw",
        [
            "not json",
            '{"id": "p1"}',
            '[{"id": "p1", "title": "Shirt"}]',
            '[{"id": "p1", "title": "Shirt", "image_url": "x", "price": "cheap", "quantity": 1}]',
            '[{"id": "p1", "title": "Shirt", "image_url": "x", "price": 1, "quantity": 1.5}]',
        ],
    )
    def test_invalid_snapshot(self, raw):
        with pytest.raises(HydrationDecodeError):
            decode_products(raw)

    def test_zero_quantity_rejected(self):
        raw = '[{"id": "p1", "title": "Shirt", "image_url": "x", "price": 1, "quantity": 0}]'
        with pytest.raises(HydrationDecodeError, match="quantity 0"):
            decode_products(raw)

    def test_duplicate_ids_rejected(self):
        record = {"id": "p1", "title": "Shirt", "image_url": "x", "price": 1, "quantity": 1}
        with pytest.raises(HydrationDecodeError, match="twice"):
            decode_products(json.dumps([record, record]))
