"""Catalogue port — product lookups consumed by the checkout flow.

Only three facts about a product matter here: its name, its current unit
price in minor units, and how many are in stock.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class Product:
    product_id: str
    name: str
    unit_price: int
    stock_quantity: int


class CatalogPort(ABC):
    """Abstract interface for catalogue adapters."""

    @abstractmethod
    def get_product(self, product_id: str) -> Product:
        """Return the product or raise ProductNotFoundError."""
        ...
