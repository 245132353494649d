"""Fake inventory adapter — records stock movements for test assertions."""

from collections import defaultdict

from storefront.inventory.port import InventoryPort


class FakeInventory(InventoryPort):
    def __init__(self) -> None:
        self.movements: list[dict] = []
        self.levels: dict[tuple[str, str | None], int] = defaultdict(int)
        self.held: dict[tuple[str, str, str | None], int] = defaultdict(int)

    def _record(self, action: str, product_id, variant_key, quantity, reference, delta) -> None:
        self.movements.append(
            {
                "action": action,
                "product_id": product_id,
                "variant_key": variant_key,
                "quantity": quantity,
                "reference": reference,
            }
        )
        self.levels[(product_id, variant_key)] += delta

    def decrement(self, product_id, variant_key, quantity, reference):
        self.held[(reference, product_id, variant_key)] += quantity
        self._record("decrement", product_id, variant_key, quantity, reference, -quantity)

    def release(self, product_id, variant_key, quantity, reference):
        # Gives back only what this order's decrement took; unpaid orders hold nothing
        key = (reference, product_id, variant_key)
        returned = min(quantity, self.held[key])
        self.held[key] -= returned
        self._record("release", product_id, variant_key, quantity, reference, returned)

    def restock(self, product_id, variant_key, quantity, reference):
        self._record("restock", product_id, variant_key, quantity, reference, quantity)

    def actions(self) -> list[str]:
        return [movement["action"] for movement in self.movements]
