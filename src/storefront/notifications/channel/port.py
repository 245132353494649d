"""Notification channel port — abstract interface for order status messages."""

from abc import ABC, abstractmethod


class NotificationPort(ABC):
    """Abstract interface for notification adapters."""

    @abstractmethod
    def notify(self, order_id: str, new_state: str) -> dict:
        """Tell the customer (and admins) that an order changed state.

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error (optional)
        """
        ...
