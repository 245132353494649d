"""Checkout coordinator — wires the pricing engine and the order lifecycle to collaborators.

Flow:
    1. Cart items are priced against the catalogue and the coupon store
    2. checkout() re-reads prices and stock, creates the order (CREATED),
       records the coupon use and clears the cart
    3. The payment intent is submitted → PAYMENT_PENDING → capture effect
    4a. Approved → CONFIRM_PAYMENT → inventory decrement
    4b. Declined → FAIL_PAYMENT (the customer may retry, up to the limit)
    4c. Pending → the order waits for the gateway webhook
    5. Carrier updates drive SHIP → DISPATCH_FOR_DELIVERY → DELIVER
"""

from dataclasses import dataclass
from datetime import UTC, datetime

import structlog

from storefront.catalogue.port import CatalogPort
from storefront.exceptions import (
    AuthenticationRequiredError,
    CouponNotFoundError,
    EmptyCartError,
    InvalidCouponError,
    OutOfStockError,
    ValidationError,
)
from storefront.fulfillment.carrier.port import CarrierPort
from storefront.fulfillment.tracking import catch_up_events, event_for_status
from storefront.ordering.checkout.dispatch import EffectDispatcher
from storefront.ordering.lifecycle import OrderLifecycleManager
from storefront.ordering.order.effects import PaymentCaptureRequested
from storefront.ordering.order.order import Order, OrderState
from storefront.ordering.order.transitions import OrderEvent, TransitionResult
from storefront.payments.gateway.port import CaptureStatus
from storefront.pricing.cart import Cart, LineItem
from storefront.pricing.coupon_store import CouponStorePort
from storefront.pricing.coupons import Coupon, CouponRejection
from storefront.pricing.engine import PriceSummary, PricingEngine
from storefront.pricing.shipping import ShippingMethod
from storefront.shared.actors import Actor, ActorRole

logger = structlog.get_logger(__name__)

PAYMENT_ACTOR = Actor.system("payment-gateway")
CARRIER_ACTOR = Actor.system("carrier")


@dataclass(frozen=True)
class CheckoutResult:
    order: Order
    summary: PriceSummary


class CheckoutService:
    def __init__(
        self,
        engine: PricingEngine,
        lifecycle: OrderLifecycleManager,
        catalog: CatalogPort,
        coupons: CouponStorePort,
        dispatcher: EffectDispatcher,
        carrier: CarrierPort | None = None,
    ):
        self.engine = engine
        self.lifecycle = lifecycle
        self.catalog = catalog
        self.coupons = coupons
        self.dispatcher = dispatcher
        self.carrier = carrier

    # -------------------------------------------------------------------
    # Cart
    # -------------------------------------------------------------------
    def add_to_cart(self, cart: Cart, product_id: str, quantity: int = 1, variant_key: str | None = None) -> LineItem:
        """Add a catalogue product to ``cart`` at its current price, within stock."""
        product = self.catalog.get_product(product_id)
        wanted = cart.quantity_of(product_id) + quantity
        if wanted > product.stock_quantity:
            raise OutOfStockError(product_id, wanted, product.stock_quantity)
        return cart.add_item(
            product_id=product_id,
            unit_price=product.unit_price,
            quantity=quantity,
            variant_key=variant_key,
            name=product.name,
        )

    def resolve_coupon(self, cart: Cart) -> Coupon | None:
        if cart.coupon_code is None:
            return None
        try:
            return self.coupons.get_coupon(cart.coupon_code)
        except CouponNotFoundError:
            raise InvalidCouponError(CouponRejection.NOT_FOUND, code=cart.coupon_code) from None

    def preview(self, cart: Cart, shipping_method=ShippingMethod.STANDARD, *, now=None) -> PriceSummary:
        """Price a cart for display. An empty cart prices to all zeros."""
        return self.engine.compute_summary(cart, self.resolve_coupon(cart), shipping_method, now=now)

    # -------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------
    def _refreshed_cart(self, cart: Cart) -> Cart:
        """Copy of ``cart`` at current catalogue prices, checked against stock.

        Stock is per product, so variants of one product share it.
        """
        products = {}
        items = []
        for item in cart.items:
            product = products.get(item.product_id) or self.catalog.get_product(item.product_id)
            products[item.product_id] = product
            items.append(item.model_copy(update={"unit_price": product.unit_price, "name": product.name}))
        for product_id, product in products.items():
            wanted = cart.quantity_of(product_id)
            if wanted > product.stock_quantity:
                raise OutOfStockError(product_id, wanted, product.stock_quantity)
        return Cart(items=items, coupon_code=cart.coupon_code)

    def checkout(
        self,
        cart: Cart,
        customer: Actor,
        shipping_address,
        payment_method,
        shipping_method=ShippingMethod.STANDARD,
        *,
        submit_payment: bool = True,
        now: datetime | None = None,
    ) -> CheckoutResult:
        """Turn ``cart`` into an order.

        The caller's cart is cleared only once the order exists; any failure
        before that leaves it untouched.
        """
        if not customer.authenticated or customer.role != ActorRole.CUSTOMER:
            raise AuthenticationRequiredError()
        if cart.is_empty:
            raise EmptyCartError()

        now = now or datetime.now(UTC)
        snapshot = self._refreshed_cart(cart)
        coupon = self.resolve_coupon(snapshot)
        summary = self.engine.compute_summary(snapshot, coupon, shipping_method, now=now, for_checkout=True)

        order = self.lifecycle.create_order(snapshot, summary, shipping_address, payment_method, customer, now=now)
        if coupon is not None:
            self.coupons.increment_usage(coupon.code)
        cart.clear()

        if submit_payment:
            order = self.submit_payment(order.id, customer).order

        return CheckoutResult(order=order, summary=summary)

    # -------------------------------------------------------------------
    # Transitions with effect handling
    # -------------------------------------------------------------------
    def transition(self, order_id: str, event: OrderEvent, actor: Actor, *, note="", tracking_id=None):
        result = self.lifecycle.apply(order_id, event, actor, note=note, tracking_id=tracking_id)
        return self._run_effects(result)

    def cancel(self, order_id: str, actor: Actor, reason: str = "") -> TransitionResult:
        return self._run_effects(self.lifecycle.cancel(order_id, actor, reason))

    def _run_effects(self, result: TransitionResult) -> TransitionResult:
        # Captures go last: their outcome starts the next transition
        latest = result
        effects = sorted(result.effects, key=lambda e: isinstance(e, PaymentCaptureRequested))
        for effect in effects:
            outcome = self.dispatcher.dispatch(effect)
            if isinstance(effect, PaymentCaptureRequested) and outcome is not None:
                follow_up = self.record_payment_result(effect.order_id, outcome.status, outcome.failure_reason)
                if follow_up is not None:
                    latest = follow_up
        return latest

    # -------------------------------------------------------------------
    # Payments
    # -------------------------------------------------------------------
    def submit_payment(self, order_id: str, actor: Actor) -> TransitionResult:
        """Submit (or, after a failure, retry) the payment intent for an order."""
        order = self.lifecycle.get(order_id)
        event = OrderEvent.RETRY_PAYMENT if order.state == OrderState.PAYMENT_FAILED else OrderEvent.SUBMIT_PAYMENT
        return self.transition(order_id, event, actor)

    def record_payment_result(self, order_id: str, status: CaptureStatus, reason: str | None = None):
        """Feed a gateway outcome back into the order. A pending capture changes nothing."""
        if status == CaptureStatus.PENDING:
            logger.info("Payment capture pending", order_id=order_id)
            return None
        if status == CaptureStatus.APPROVED:
            return self.transition(order_id, OrderEvent.CONFIRM_PAYMENT, PAYMENT_ACTOR)
        return self.transition(order_id, OrderEvent.FAIL_PAYMENT, PAYMENT_ACTOR, note=reason or "Payment declined")

    # -------------------------------------------------------------------
    # Shipping
    # -------------------------------------------------------------------
    def apply_carrier_status(self, order_id: str, raw_status: str, tracking_id: str | None = None):
        """Advance an order from a carrier status string.

        Statuses with no order counterpart (exceptions, returns) are logged
        and ignored. Returns the last transition result, or None.
        """
        target = event_for_status(raw_status)
        if target is None:
            logger.info("Carrier status ignored", order_id=order_id, status=raw_status)
            return None

        order = self.lifecycle.get(order_id)
        result = None
        for event in catch_up_events(order.state, target):
            result = self.transition(
                order_id,
                event,
                CARRIER_ACTOR,
                note=f"Carrier: {raw_status}",
                tracking_id=tracking_id if event == OrderEvent.SHIP else None,
            )
        return result

    def refresh_tracking(self, order_id: str):
        """Poll the carrier for a shipped order and apply what it reports."""
        if self.carrier is None:
            raise ValidationError({"carrier": ["No carrier adapter configured"]})
        order = self.lifecycle.get(order_id)
        if order.tracking_id is None:
            raise ValidationError({"tracking_id": [f"Order {order_id} has no tracking id"]})
        return self.apply_carrier_status(order_id, self.carrier.get_tracking(order.tracking_id))
