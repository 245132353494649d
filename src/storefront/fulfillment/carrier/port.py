"""Carrier port — abstract interface for shipping carrier integrations.

The checkout core only reads tracking status; shipment booking and labels
belong to the carrier integration itself.
"""

from abc import ABC, abstractmethod


class CarrierPort(ABC):
    """Abstract interface for carrier adapters."""

    @abstractmethod
    def get_tracking(self, tracking_id: str) -> str:
        """Return the carrier's raw status string for a shipment, e.g. ``"Out for Delivery"``."""
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        """Verify that a webhook callback is authentic."""
        ...
