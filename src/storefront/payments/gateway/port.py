"""Payment gateway port (abstract interface).

Defines the contract that all payment gateway adapters must implement.
The checkout flow only ever submits a payment intent and reads back one of
three outcomes; the gateway's own protocol stays behind the adapter.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class CaptureStatus(Enum):
    APPROVED = "approved"
    DECLINED = "declined"
    PENDING = "pending"


@dataclass(frozen=True)
class CaptureResult:
    """Result of a payment capture attempt."""

    status: CaptureStatus
    transaction_id: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class RefundResult:
    success: bool
    refund_id: str | None = None
    failure_reason: str | None = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def capture(self, order_id: str, amount: int, method: str, idempotency_key: str) -> CaptureResult:
        """Submit a payment intent for ``amount`` minor units."""
        ...

    @abstractmethod
    def refund(self, order_id: str, amount: int) -> RefundResult:
        """Refund a previously captured amount."""
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        """Verify that a webhook payload is authentically from the gateway."""
        ...
