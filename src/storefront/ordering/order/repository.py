"""Order repository — the narrow read/write contract the lifecycle depends on."""

import threading
from abc import ABC, abstractmethod

from storefront.exceptions import ConcurrentModificationError, OrderNotFoundError
from storefront.ordering.order.order import Order, OrderState


class OrderRepository(ABC):
    """Abstract order store.

    ``save`` performs an optimistic version check: the stored order must be
    at ``expected_version`` (or absent, for ``expected_version=None``).
    """

    @abstractmethod
    def get(self, order_id: str) -> Order:
        """Return the order or raise OrderNotFoundError."""
        ...

    @abstractmethod
    def save(self, order: Order, expected_version: int | None = None) -> None:
        """Store ``order``; raise ConcurrentModificationError on a version mismatch."""
        ...

    @abstractmethod
    def find_by_customer(self, customer_id: str) -> list[Order]: ...

    @abstractmethod
    def find_by_state(self, state: OrderState) -> list[Order]: ...


class InMemoryOrderRepository(OrderRepository):
    """Dict-backed store for development and tests. Thread-safe."""

    def __init__(self) -> None:
        self._orders: dict[str, Order] = {}
        self._lock = threading.Lock()

    def get(self, order_id: str) -> Order:
        with self._lock:
            order = self._orders.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def save(self, order: Order, expected_version: int | None = None) -> None:
        with self._lock:
            stored = self._orders.get(order.id)
            actual = stored.version if stored is not None else None
            if actual != expected_version:
                raise ConcurrentModificationError(order.id, expected_version or 0, actual or 0)
            self._orders[order.id] = order

    def find_by_customer(self, customer_id: str) -> list[Order]:
        with self._lock:
            orders = [o for o in self._orders.values() if o.customer_id == str(customer_id)]
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    def find_by_state(self, state: OrderState) -> list[Order]:
        with self._lock:
            orders = [o for o in self._orders.values() if o.state == state]
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    def all(self) -> list[Order]:
        with self._lock:
            return list(self._orders.values())

    def clear(self) -> None:
        with self._lock:
            self._orders.clear()
