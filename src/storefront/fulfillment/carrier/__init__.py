"""Carrier adapter abstraction — pluggable shipping carrier integration."""

from storefront.config import get_settings

_carrier_instance = None


def get_carrier():
    """Return the configured carrier adapter (singleton).

    Uses FakeCarrier by default. Configure via STOREFRONT_CARRIER_ADAPTER.
    """
    global _carrier_instance
    if _carrier_instance is None:
        adapter = get_settings().carrier_adapter
        if adapter == "fake":
            from storefront.fulfillment.carrier.fake_adapter import FakeCarrier

            _carrier_instance = FakeCarrier()
        else:
            raise ValueError(f"Unknown carrier adapter: {adapter}")
    return _carrier_instance


def set_carrier(carrier) -> None:
    global _carrier_instance
    _carrier_instance = carrier


def reset_carrier():
    """Reset the carrier singleton (useful for testing)."""
    global _carrier_instance
    _carrier_instance = None
