"""Pytest configuration and fixtures"""
import asyncio

import pytest

from gomarket_cart.state import Product
from gomarket_cart.storage import MemoryStorage
from gomarket_cart.store import CartStore


class SlowStorage(MemoryStorage):
    """Memory storage whose writes take a while, recording overlap."""

    def __init__(self, delay: float = 0.01):
        super().__init__()
        self.delay = delay
        self.writes: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def set(self, key: str, value: str) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            await super().set(key, value)
            self.writes.append(value)
        finally:
            self.in_flight -= 1


class FailingStorage(MemoryStorage):
    async def set(self, key: str, value: str) -> None:
        raise OSError("disk full")


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage):
    return CartStore(storage)


@pytest.fixture
def shirt():
    return Product(id="p1", title="Shirt", image_url="x", price=10)


@pytest.fixture
def shoes():
    return Product(id="p2", title="Shoes", image_url="y", price=59.9)


@pytest.fixture
def hat():
    return Product(id="p3", title="Hat", image_url="z", price=5.5)
