from decimal import Decimal

import pytest

from storefront.pricing.shipping import ShippingMethod, ShippingRate, ShippingRateTable
from storefront.shared.money import format_money, percent_of, to_major


class TestMoney:
    def test_percent_of_rounds_down_by_default(self):
        assert percent_of(999, 10) == 99

    def test_percent_of_half_up(self):
        assert percent_of(25, 18, round_half_up=True) == 5
        assert percent_of(24, 18, round_half_up=True) == 4

    def test_percent_of_accepts_decimal(self):
        assert percent_of(10000, Decimal("12.5")) == 1250

    def test_to_major(self):
        assert to_major(141600) == Decimal("1416.00")

    @pytest.mark.parametrize(
        ("amount", "currency", "expected"),
        [
            (141600, "INR", "₹1,416.00"),
            (5, "INR", "₹0.05"),
            (0, "INR", "₹0.00"),
            (123456789, "USD", "$1,234,567.89"),
            (100, "JPY", "JPY 1.00"),
        ],
    )
    def test_format_money(self, amount, currency, expected):
        assert format_money(amount, currency) == expected


class TestShippingRateTable:
    def test_from_settings(self, settings):
        table = ShippingRateTable.from_settings(settings)
        assert table.rates[ShippingMethod.STANDARD] == ShippingRate(base_fee=10000)
        assert table.rates[ShippingMethod.OVERNIGHT].premium == 40000
        assert table.free_shipping_threshold == 100000

    def test_no_threshold_never_waives(self):
        table = ShippingRateTable(rates={ShippingMethod.STANDARD: ShippingRate(base_fee=4900)})
        assert table.fee_for(ShippingMethod.STANDARD, 10_000_000) == 4900

    def test_waiver_keeps_premium(self, settings):
        table = ShippingRateTable.from_settings(settings)
        assert table.fee_for(ShippingMethod.EXPRESS, 100000) == 20000
        assert table.fee_for(ShippingMethod.EXPRESS, 99999) == 30000
