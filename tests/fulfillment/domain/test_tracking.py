"""Tests for carrier status normalisation and the events it maps to."""

import pytest

from storefront.fulfillment.tracking import catch_up_events, event_for_status, normalize_status
from storefront.ordering.order.order import OrderState
from storefront.ordering.order.transitions import OrderEvent


class TestNormalizeStatus:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("In Transit", "in_transit"),
            ("Out for Delivery", "out_for_delivery"),
            ("In Transit - Out for Delivery", "out_for_delivery"),
            ("Delivered - Signed by", "delivered"),
            ("  Picked Up ", "picked_up"),
            ("RTO Initiated", "rto_initiated"),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize_status(raw) == expected


class TestEventForStatus:
    def test_pickup_and_transit_ship(self):
        assert event_for_status("Picked Up") == OrderEvent.SHIP
        assert event_for_status("in_transit") == OrderEvent.SHIP

    def test_out_for_delivery(self):
        assert event_for_status("Out for Delivery") == OrderEvent.DISPATCH_FOR_DELIVERY

    def test_delivered(self):
        assert event_for_status("Delivered") == OrderEvent.DELIVER

    @pytest.mark.parametrize("raw", ["Exception", "Returned", "Manifested"])
    def test_unmapped_statuses(self, raw):
        assert event_for_status(raw) is None


class TestCatchUpEvents:
    def test_next_step_only(self):
        assert catch_up_events(OrderState.SHIPPED, OrderEvent.DISPATCH_FOR_DELIVERY) == [
            OrderEvent.DISPATCH_FOR_DELIVERY
        ]

    def test_skipped_scans_are_filled_in(self):
        assert catch_up_events(OrderState.PROCESSING, OrderEvent.DELIVER) == [
            OrderEvent.SHIP,
            OrderEvent.DISPATCH_FOR_DELIVERY,
            OrderEvent.DELIVER,
        ]

    def test_off_chain_state_gets_target_only(self):
        assert catch_up_events(OrderState.PAYMENT_CONFIRMED, OrderEvent.SHIP) == [OrderEvent.SHIP]

    def test_already_there(self):
        assert catch_up_events(OrderState.DELIVERED, OrderEvent.DELIVER) == [OrderEvent.DELIVER]

    def test_non_fulfillment_event(self):
        assert catch_up_events(OrderState.CREATED, OrderEvent.CANCEL) == [OrderEvent.CANCEL]
