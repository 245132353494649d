"""Effect dispatcher — executes effect descriptors against collaborator ports.

The state machine only declares effects. This is the one place that turns
them into inventory movements, gateway calls and notifications. Timeouts
and retries of those calls are the adapters' concern.
"""

import structlog

from storefront.inventory.port import InventoryPort
from storefront.notifications.channel.port import NotificationPort
from storefront.ordering.order.effects import (
    AnyEffect,
    InventoryDecrement,
    InventoryRelease,
    NotificationRequested,
    PaymentCaptureRequested,
    PaymentRefundRequested,
    RestockAndRefund,
)
from storefront.payments.gateway.port import CaptureResult, PaymentGateway

logger = structlog.get_logger(__name__)


class EffectDispatcher:
    def __init__(self, inventory: InventoryPort, gateway: PaymentGateway, notifier: NotificationPort):
        self.inventory = inventory
        self.gateway = gateway
        self.notifier = notifier

    def dispatch(self, effect: AnyEffect) -> CaptureResult | None:
        """Execute one effect. Returns the gateway's answer for capture requests."""
        if isinstance(effect, PaymentCaptureRequested):
            result = self.gateway.capture(
                order_id=effect.order_id,
                amount=effect.amount,
                method=effect.method.value,
                idempotency_key=effect.idempotency_key,
            )
            logger.info(
                "Payment capture submitted",
                order_id=effect.order_id,
                amount=effect.amount,
                attempt=effect.attempt,
                status=result.status.value,
            )
            return result

        if isinstance(effect, InventoryDecrement):
            line = effect.line
            self.inventory.decrement(line.product_id, line.variant_key, line.quantity, reference=effect.order_id)
        elif isinstance(effect, InventoryRelease):
            line = effect.line
            self.inventory.release(line.product_id, line.variant_key, line.quantity, reference=effect.order_id)
        elif isinstance(effect, RestockAndRefund):
            for line in effect.lines:
                self.inventory.restock(line.product_id, line.variant_key, line.quantity, reference=effect.order_id)
            if effect.refund_amount:
                self._refund(effect.order_id, effect.refund_amount)
        elif isinstance(effect, PaymentRefundRequested):
            self._refund(effect.order_id, effect.amount)
        elif isinstance(effect, NotificationRequested):
            outcome = self.notifier.notify(effect.order_id, effect.new_state.value)
            if outcome.get("status") != "sent":
                logger.warning(
                    "Order notification failed",
                    order_id=effect.order_id,
                    new_state=effect.new_state.value,
                    error=outcome.get("error"),
                )
        else:
            raise TypeError(f"Unknown effect: {effect!r}")
        return None

    def _refund(self, order_id: str, amount: int) -> None:
        result = self.gateway.refund(order_id=order_id, amount=amount)
        if result.success:
            logger.info("Refund submitted", order_id=order_id, amount=amount, refund_id=result.refund_id)
        else:
            logger.error("Refund failed", order_id=order_id, amount=amount, reason=result.failure_reason)
