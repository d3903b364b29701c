from dataclasses import dataclass


@dataclass(frozen=True)
class Product:
    id: str
    title: str
    image_url: str
    price: float


@dataclass(frozen=True)
class LineItem(Product):
    quantity: int = 1
