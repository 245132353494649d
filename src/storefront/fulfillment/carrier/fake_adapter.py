"""Fake carrier adapter — deterministic carrier for testing and development.

Tracking statuses are set per tracking id; unknown ids report
``"In Transit"``.
"""

from storefront.fulfillment.carrier.port import CarrierPort


class FakeCarrier(CarrierPort):
    def __init__(self):
        self.statuses: dict[str, str] = {}

    def set_status(self, tracking_id: str, status: str) -> None:
        self.statuses[tracking_id] = status

    def get_tracking(self, tracking_id: str) -> str:
        return self.statuses.get(tracking_id, "In Transit")

    def verify_webhook_signature(self, payload: str, signature: str) -> bool:  # noqa: ARG002
        return signature == "test-signature"
