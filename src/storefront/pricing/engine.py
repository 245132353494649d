"""Pricing engine — turns a cart into a checkout total.

The engine is a pure function of ``(cart, coupon, shipping method, now)``
and its configuration. It never mutates the cart, keeps no state between
calls and performs no I/O, so it is safe to call from any number of threads.

Formula (all amounts in integer minor units)::

    subtotal     = Σ unit_price × quantity
    discount     = coupon discount, 0 ≤ discount ≤ subtotal
    net          = subtotal − discount
    shipping_fee = rate table lookup; base fee waived when net ≥ threshold
    tax          = tax_rate % of net (shipping is not taxed), half-up
    total        = net + shipping_fee + tax
"""

from datetime import UTC, datetime

import structlog
from pydantic import BaseModel, ConfigDict, Field

from storefront.config import StorefrontSettings, get_settings
from storefront.exceptions import EmptyCartError, InvalidCouponError
from storefront.pricing.cart import Cart
from storefront.pricing.coupons import Coupon, CouponRejection
from storefront.pricing.shipping import ShippingMethod, ShippingRateTable
from storefront.shared.money import Money, percent_of

logger = structlog.get_logger(__name__)


class PriceSummary(BaseModel):
    """Derived totals for a cart. A projection, never authoritative state."""

    model_config = ConfigDict(frozen=True)

    subtotal: Money = 0
    discount: Money = 0
    shipping_fee: Money = 0
    tax: Money = 0
    total: Money = 0
    item_count: int = Field(default=0, ge=0)
    coupon_code: str | None = None
    shipping_method: ShippingMethod = ShippingMethod.STANDARD

    @property
    def net_subtotal(self) -> int:
        return self.subtotal - self.discount


class PricingEngine:
    def __init__(self, rate_table: ShippingRateTable, tax_rate_percent: float = 18.0):
        if tax_rate_percent < 0:
            raise ValueError("tax_rate_percent cannot be negative")
        self.rate_table = rate_table
        self.tax_rate_percent = tax_rate_percent

    @classmethod
    def from_settings(cls, settings: StorefrontSettings | None = None) -> "PricingEngine":
        settings = settings or get_settings()
        return cls(
            rate_table=ShippingRateTable.from_settings(settings),
            tax_rate_percent=settings.tax_rate_percent,
        )

    def compute_summary(
        self,
        cart: Cart,
        coupon: Coupon | None = None,
        shipping_method: ShippingMethod = ShippingMethod.STANDARD,
        *,
        now: datetime | None = None,
        for_checkout: bool = False,
    ) -> PriceSummary:
        """Price ``cart``.

        Raises:
            EmptyCartError: the cart is empty and ``for_checkout`` is set.
                An empty preview returns an all-zero summary instead.
            InvalidCouponError: the coupon fails a validity check. The
                ``reason`` names the first check that failed.
        """
        if cart.is_empty:
            if for_checkout:
                raise EmptyCartError()
            return PriceSummary(shipping_method=shipping_method)

        now = now or datetime.now(UTC)
        subtotal = sum(item.line_total for item in cart.items)

        discount = 0
        if coupon is not None:
            if cart.coupon_code is not None and cart.coupon_code != coupon.code.upper():
                raise InvalidCouponError(CouponRejection.CODE_MISMATCH, code=coupon.code)
            coupon.validate_for(subtotal, now)
            discount = coupon.discount_for(subtotal)

        net = subtotal - discount
        shipping_fee = self.rate_table.fee_for(shipping_method, net)
        tax = percent_of(net, self.tax_rate_percent, round_half_up=True)

        total = net + shipping_fee + tax
        if total < 0:
            logger.error(
                "Negative cart total clamped to zero",
                subtotal=subtotal,
                discount=discount,
                shipping_fee=shipping_fee,
                tax=tax,
            )
            total = 0

        return PriceSummary(
            subtotal=subtotal,
            discount=discount,
            shipping_fee=shipping_fee,
            tax=tax,
            total=total,
            item_count=cart.item_count,
            coupon_code=coupon.code if coupon is not None else None,
            shipping_method=shipping_method,
        )
