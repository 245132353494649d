"""Fake notification adapter — records messages for testing."""

from uuid import uuid4

from storefront.notifications.channel.port import NotificationPort


class FakeNotifier(NotificationPort):
    """Notification adapter that records messages in memory for test assertions."""

    def __init__(self):
        self.sent: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Notification delivery failed"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Notification delivery failed"):
        """Configure the fake adapter behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def notify(self, order_id: str, new_state: str) -> dict:
        if not self.should_succeed:
            return {
                "message_id": None,
                "status": "failed",
                "error": self.failure_reason,
            }

        message_id = f"notif-{uuid4().hex[:12]}"
        self.sent.append({"message_id": message_id, "order_id": order_id, "new_state": new_state})
        return {"message_id": message_id, "status": "sent"}
