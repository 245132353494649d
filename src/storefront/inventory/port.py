"""Inventory port — receives stock movements keyed by (product_id, variant_key)."""

from abc import ABC, abstractmethod


class InventoryPort(ABC):
    """Abstract interface for inventory adapters."""

    @abstractmethod
    def decrement(self, product_id: str, variant_key: str | None, quantity: int, reference: str) -> None:
        """Commit stock to an order whose payment was confirmed."""
        ...

    @abstractmethod
    def release(self, product_id: str, variant_key: str | None, quantity: int, reference: str) -> None:
        """Release stock held for an order cancelled before processing."""
        ...

    @abstractmethod
    def restock(self, product_id: str, variant_key: str | None, quantity: int, reference: str) -> None:
        """Return committed stock to the shelf."""
        ...
