"""Tests for the pricing engine."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from storefront.config import StorefrontSettings
from storefront.exceptions import EmptyCartError, InvalidCouponError
from storefront.pricing.cart import Cart, LineItem
from storefront.pricing.coupons import Coupon, CouponKind
from storefront.pricing.engine import PriceSummary, PricingEngine
from storefront.pricing.shipping import ShippingMethod

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
def engine(settings):
    return PricingEngine.from_settings(settings)


def _cart(*lines, coupon_code=None):
    cart = Cart()
    for product_id, unit_price, quantity in lines:
        cart.add_item(product_id, unit_price, quantity)
    if coupon_code:
        cart.apply_coupon(coupon_code)
    return cart


def _coupon(code="SAVE10", kind=CouponKind.PERCENTAGE, value="10", **overrides):
    return Coupon(
        code=code,
        kind=kind,
        value=Decimal(value),
        valid_from=overrides.pop("valid_from", NOW - timedelta(days=1)),
        valid_to=overrides.pop("valid_to", NOW + timedelta(days=30)),
        **overrides,
    )


class TestWorkedExample:
    def test_two_kurtas_and_a_dupatta_with_save10(self, engine):
        cart = _cart(("prod-001", 50000, 2), ("prod-002", 30000, 1), coupon_code="SAVE10")
        coupon = _coupon(max_discount=10000)

        summary = engine.compute_summary(cart, coupon, now=NOW)

        assert summary.subtotal == 130000
        assert summary.discount == 10000
        assert summary.shipping_fee == 0
        assert summary.tax == 21600
        assert summary.total == 141600
        assert summary.item_count == 3
        assert summary.coupon_code == "SAVE10"
        assert summary.net_subtotal == 120000


class TestShipping:
    def test_free_shipping_uses_post_discount_subtotal(self, engine):
        cart = _cart(("prod-001", 120000, 1))
        coupon = _coupon(kind=CouponKind.FIXED_AMOUNT, value="30000")

        summary = engine.compute_summary(cart, coupon, now=NOW)

        assert summary.discount == 30000
        assert summary.shipping_fee == 10000
        assert summary.tax == 16200
        assert summary.total == 116200

    def test_threshold_is_inclusive(self, engine):
        summary = engine.compute_summary(_cart(("prod-001", 100000, 1)), now=NOW)
        assert summary.shipping_fee == 0

    def test_below_threshold_pays_standard_fee(self, engine):
        summary = engine.compute_summary(_cart(("prod-001", 99999, 1)), now=NOW)
        assert summary.shipping_fee == 10000

    def test_express_premium_is_never_waived(self, engine):
        summary = engine.compute_summary(_cart(("prod-001", 150000, 1)), shipping_method=ShippingMethod.EXPRESS, now=NOW)
        assert summary.shipping_fee == 20000
        assert summary.shipping_method == ShippingMethod.EXPRESS

    def test_overnight_below_threshold(self, engine):
        summary = engine.compute_summary(_cart(("prod-001", 5000, 1)), shipping_method=ShippingMethod.OVERNIGHT, now=NOW)
        assert summary.shipping_fee == 50000


class TestTax:
    def test_tax_excludes_shipping(self, engine):
        summary = engine.compute_summary(_cart(("prod-001", 10000, 1)), now=NOW)
        assert summary.shipping_fee == 10000
        assert summary.tax == 1800
        assert summary.total == 21800

    def test_tax_rounds_half_up(self, engine):
        # 18% of 25 is 4.5
        summary = engine.compute_summary(_cart(("prod-001", 25, 1)), now=NOW)
        assert summary.tax == 5

    def test_tax_rate_from_settings(self):
        engine = PricingEngine.from_settings(StorefrontSettings(tax_rate_percent=5, _env_file=None))
        summary = engine.compute_summary(_cart(("prod-001", 200000, 1)), now=NOW)
        assert summary.tax == 10000

    def test_negative_tax_rate_rejected(self, engine):
        with pytest.raises(ValueError):
            PricingEngine(engine.rate_table, tax_rate_percent=-1)


class TestCoupons:
    def test_expired_coupon(self, engine):
        cart = _cart(("prod-001", 50000, 2), coupon_code="SAVE10")
        coupon = _coupon(valid_from=NOW - timedelta(days=30), valid_to=NOW - timedelta(days=1))

        with pytest.raises(InvalidCouponError) as exc:
            engine.compute_summary(cart, coupon, now=NOW)

        assert exc.value.reason == "expired"

    def test_coupon_for_a_different_code(self, engine):
        cart = _cart(("prod-001", 50000, 2), coupon_code="WELCOME")
        with pytest.raises(InvalidCouponError) as exc:
            engine.compute_summary(cart, _coupon(), now=NOW)
        assert exc.value.reason == "code_mismatch"

    def test_lowercase_cart_code_matches_coupon(self, engine):
        cart = Cart(items=[LineItem(product_id="prod-001", unit_price=50000, quantity=2)], coupon_code="save10")
        summary = engine.compute_summary(cart, _coupon(), now=NOW)
        assert summary.discount > 0

    def test_discount_never_exceeds_subtotal(self, engine):
        cart = _cart(("prod-001", 50000, 2), ("prod-002", 30000, 1))
        coupon = _coupon(kind=CouponKind.FIXED_AMOUNT, value="500000")

        summary = engine.compute_summary(cart, coupon, now=NOW)

        assert summary.discount == summary.subtotal
        assert summary.tax == 0
        assert summary.total == 10000


class TestEmptyCart:
    def test_preview_of_empty_cart_is_zero(self, engine):
        summary = engine.compute_summary(Cart(), now=NOW)
        assert summary == PriceSummary()

    def test_checkout_of_empty_cart_raises(self, engine):
        with pytest.raises(EmptyCartError):
            engine.compute_summary(Cart(), now=NOW, for_checkout=True)


class TestPurity:
    def test_same_inputs_same_summary(self, engine):
        cart = _cart(("prod-001", 50000, 2), ("prod-002", 30000, 1), coupon_code="SAVE10")
        coupon = _coupon(max_discount=10000)

        first = engine.compute_summary(cart, coupon, now=NOW)
        second = engine.compute_summary(cart, coupon, now=NOW)

        assert first == second

    def test_cart_is_not_mutated(self, engine):
        cart = _cart(("prod-001", 50000, 2), coupon_code="SAVE10")
        before = cart.model_dump()
        engine.compute_summary(cart, _coupon(), now=NOW)
        assert cart.model_dump() == before

    def test_rejected_coupon_leaves_cart_intact(self, engine):
        cart = _cart(("prod-001", 50000, 2), coupon_code="SAVE10")
        before = cart.model_dump()
        with pytest.raises(InvalidCouponError):
            engine.compute_summary(cart, _coupon(usage_limit=1, used_count=1), now=NOW)
        assert cart.model_dump() == before

    @pytest.mark.parametrize(
        "lines",
        [
            [("prod-001", 1, 1)],
            [("prod-001", 99999, 3), ("prod-002", 1, 7)],
            [("prod-001", 333333, 1)],
        ],
    )
    def test_total_covers_net_subtotal(self, engine, lines):
        summary = engine.compute_summary(_cart(*lines), _coupon(value="33"), now=NOW)
        assert 0 <= summary.discount <= summary.subtotal
        assert summary.total >= summary.subtotal - summary.discount
        assert summary.total == summary.net_subtotal + summary.shipping_fee + summary.tax
