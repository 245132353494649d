"""Carrier status normalisation and the mapping onto order events."""

import re

from storefront.ordering.order.transitions import TRANSITIONS, OrderEvent

# Raw carrier labels that don't normalise mechanically
_CARRIER_STATUS_MAP = {
    "In Transit": "in_transit",
    "Delivered": "delivered",
    "Out for Delivery": "out_for_delivery",
    "Picked Up": "picked_up",
    "In Transit - Out for Delivery": "out_for_delivery",
    "Delivered - Signed by": "delivered",
    "Exception": "exception",
    "Returned": "returned",
}

_STATUS_EVENTS = {
    "picked_up": OrderEvent.SHIP,
    "in_transit": OrderEvent.SHIP,
    "out_for_delivery": OrderEvent.DISPATCH_FOR_DELIVERY,
    "delivered": OrderEvent.DELIVER,
}


def normalize_status(raw_status: str) -> str:
    """``"Out for Delivery"`` → ``"out_for_delivery"``."""
    raw_status = raw_status.strip()
    if raw_status in _CARRIER_STATUS_MAP:
        return _CARRIER_STATUS_MAP[raw_status]
    return re.sub(r"\s+", "_", raw_status.lower())


def event_for_status(raw_status: str) -> OrderEvent | None:
    """The order event a carrier status implies, or None for statuses the order ignores."""
    return _STATUS_EVENTS.get(normalize_status(raw_status))


# Carrier updates can skip intermediate scans, so the order walks the chain
FULFILLMENT_EVENTS = (OrderEvent.SHIP, OrderEvent.DISPATCH_FOR_DELIVERY, OrderEvent.DELIVER)


def catch_up_events(state, target: OrderEvent) -> list[OrderEvent]:
    """Events that take an order in ``state`` to ``target``'s state along the fulfillment chain.

    When ``state`` is not on the chain only ``target`` is returned, leaving
    the state machine to accept it as a replay or reject it.
    """
    if target not in FULFILLMENT_EVENTS:
        return [target]
    end = FULFILLMENT_EVENTS.index(target)
    for start, event in enumerate(FULFILLMENT_EVENTS[: end + 1]):
        if (state, event) in TRANSITIONS:
            return list(FULFILLMENT_EVENTS[start : end + 1])
    return [target]
