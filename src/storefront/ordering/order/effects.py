"""Effect descriptors — side effects declared by a transition, never performed by it.

Collaborators (inventory, payments, notifications) execute these records
and acknowledge them. Each descriptor is a frozen, JSON-serialisable model
tagged by ``kind``.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from storefront.ordering.order.order import OrderState, PaymentMethod
from storefront.pricing.cart import LineItem
from storefront.shared.money import Money


class Effect(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: str


class StockLine(BaseModel):
    """Inventory key plus quantity."""

    model_config = ConfigDict(frozen=True)

    product_id: str
    variant_key: str | None = None
    quantity: int = Field(ge=1)

    @classmethod
    def from_line_item(cls, item: LineItem) -> "StockLine":
        return cls(product_id=item.product_id, variant_key=item.variant_key, quantity=item.quantity)


class InventoryDecrement(Effect):
    kind: Literal["inventory_decrement"] = "inventory_decrement"
    line: StockLine


class InventoryRelease(Effect):
    """Stock held for an order that was cancelled before processing."""

    kind: Literal["inventory_release"] = "inventory_release"
    line: StockLine


class RestockAndRefund(Effect):
    """Committed stock goes back on the shelf and the captured amount is refunded."""

    kind: Literal["restock_and_refund"] = "restock_and_refund"
    lines: tuple[StockLine, ...]
    refund_amount: Money


class PaymentCaptureRequested(Effect):
    kind: Literal["payment_capture_requested"] = "payment_capture_requested"
    amount: Money
    method: PaymentMethod
    attempt: int = Field(ge=1)

    @property
    def idempotency_key(self) -> str:
        return f"{self.order_id}:{self.attempt}"


class PaymentRefundRequested(Effect):
    kind: Literal["payment_refund_requested"] = "payment_refund_requested"
    amount: Money


class NotificationRequested(Effect):
    kind: Literal["notification_requested"] = "notification_requested"
    new_state: OrderState


AnyEffect = (
    InventoryDecrement
    | InventoryRelease
    | RestockAndRefund
    | PaymentCaptureRequested
    | PaymentRefundRequested
    | NotificationRequested
)
