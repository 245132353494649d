"""Configurable fake payment gateway for development and testing.

Simulates a gateway without any external calls. It can be configured at
runtime to approve, decline or leave a capture pending, and it remembers
the outcome per idempotency key so a retried submission returns the same
result, as real gateways do.
"""

from uuid import uuid4

from storefront.payments.gateway.port import CaptureResult, CaptureStatus, PaymentGateway, RefundResult


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.outcome: CaptureStatus = CaptureStatus.APPROVED
        self.failure_reason: str = "Card declined"
        self.calls: list[dict] = []
        self._captures: dict[str, CaptureResult] = {}

    def configure(self, outcome: CaptureStatus, failure_reason: str = "Card declined") -> None:
        """Configure gateway behavior at runtime."""
        self.outcome = outcome
        self.failure_reason = failure_reason

    def capture(self, order_id: str, amount: int, method: str, idempotency_key: str) -> CaptureResult:
        self.calls.append(
            {
                "method": "capture",
                "order_id": order_id,
                "amount": amount,
                "payment_method": method,
                "idempotency_key": idempotency_key,
            }
        )

        if idempotency_key in self._captures:
            return self._captures[idempotency_key]

        if self.outcome == CaptureStatus.APPROVED:
            result = CaptureResult(status=CaptureStatus.APPROVED, transaction_id=f"fake_txn_{uuid4().hex[:12]}")
        elif self.outcome == CaptureStatus.PENDING:
            result = CaptureResult(status=CaptureStatus.PENDING, transaction_id=f"fake_txn_{uuid4().hex[:12]}")
        else:
            result = CaptureResult(status=CaptureStatus.DECLINED, failure_reason=self.failure_reason)

        self._captures[idempotency_key] = result
        return result

    def refund(self, order_id: str, amount: int) -> RefundResult:
        self.calls.append({"method": "refund", "order_id": order_id, "amount": amount})
        return RefundResult(success=True, refund_id=f"fake_ref_{uuid4().hex[:12]}")

    def verify_webhook_signature(self, payload: str, signature: str) -> bool:  # noqa: ARG002
        return signature == "test-signature"
