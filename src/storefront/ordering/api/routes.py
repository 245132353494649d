"""FastAPI routes for the checkout core — carts, orders, and gateway/carrier webhooks."""

import json

from fastapi import APIRouter, Depends, Header, HTTPException

from storefront.exceptions import AuthenticationRequiredError, PermissionDeniedError
from storefront.ordering.api.schemas import (
    CancelOrderRequest,
    CartRequest,
    CheckoutRequest,
    ConfigureGatewayRequest,
    GatewayConfigResponse,
    OrderListResponse,
    OrderResponse,
    PaymentWebhookRequest,
    PriceSummaryResponse,
    ShipmentWebhookRequest,
    StatusResponse,
    TransitionRequest,
    TransitionResponse,
)
from storefront.ordering.order.order import OrderState, ShippingAddress
from storefront.payments.gateway.fake_adapter import FakeGateway
from storefront.pricing.cart import Cart
from storefront.services import Services, get_services
from storefront.shared.actors import Actor, ActorRole

_HEADER_ROLES = {
    "customer": ActorRole.CUSTOMER,
    "admin": ActorRole.ADMIN,
}


def current_actor(
    x_user_id: str | None = Header(default=None),
    x_user_role: str = Header(default="customer"),
) -> Actor:
    """The caller as identified by the authentication layer's headers."""
    if not x_user_id:
        raise AuthenticationRequiredError()
    role = _HEADER_ROLES.get(x_user_role.strip().lower())
    if role is None:
        raise PermissionDeniedError(f"Unknown role: {x_user_role}")
    return Actor(id=x_user_id, role=role)


def _cart_from(body: CartRequest, services: Services) -> Cart:
    """Build a cart at current catalogue prices, checking stock on the way."""
    cart = Cart()
    for item in body.items:
        services.checkout.add_to_cart(cart, item.product_id, item.quantity, item.variant_key)
    if body.coupon_code:
        cart.apply_coupon(body.coupon_code)
    return cart


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


@cart_router.post("/summary", response_model=PriceSummaryResponse)
async def cart_summary(body: CartRequest) -> PriceSummaryResponse:
    """Price a cart without placing an order."""
    services = get_services()
    cart = _cart_from(body, services)
    summary = services.checkout.preview(cart, body.shipping_method)
    return PriceSummaryResponse.from_summary(summary, services.settings.currency)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("/checkout", status_code=201, response_model=OrderResponse)
async def checkout(body: CheckoutRequest, actor: Actor = Depends(current_actor)) -> OrderResponse:
    """Place an order from a cart and submit its payment.

    1. Price the cart against the catalogue and coupon store
    2. Create the order in Created
    3. Submit the payment intent; the gateway's answer moves the order on
    """
    services = get_services()
    cart = _cart_from(body, services)
    result = services.checkout.checkout(
        cart,
        actor,
        ShippingAddress(**body.shipping_address.model_dump()),
        body.payment_method,
        body.shipping_method,
    )
    return OrderResponse.from_order(services.lifecycle.get(result.order.id))


@order_router.get("", response_model=OrderListResponse)
async def list_orders(state: OrderState | None = None, actor: Actor = Depends(current_actor)) -> OrderListResponse:
    """Customers see their own orders; admins see every order, optionally by state."""
    lifecycle = get_services().lifecycle
    if actor.role == ActorRole.CUSTOMER:
        orders = lifecycle.list_for_customer(actor.id)
        if state is not None:
            orders = [order for order in orders if order.state == state]
    elif state is not None:
        orders = lifecycle.list_by_state(state)
    else:
        orders = sorted(
            (order for s in OrderState for order in lifecycle.list_by_state(s)),
            key=lambda order: order.created_at,
            reverse=True,
        )
    return OrderListResponse(orders=[OrderResponse.from_order(order) for order in orders], count=len(orders))


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, actor: Actor = Depends(current_actor)) -> OrderResponse:
    order = get_services().lifecycle.get_for(order_id, actor)
    return OrderResponse.from_order(order)


@order_router.post("/{order_id}/transitions", response_model=TransitionResponse)
async def transition_order(
    order_id: str, body: TransitionRequest, actor: Actor = Depends(current_actor)
) -> TransitionResponse:
    """Apply a lifecycle event. Replaying an event already applied is a no-op."""
    result = get_services().checkout.transition(
        order_id, body.event, actor, note=body.note, tracking_id=body.tracking_id
    )
    return TransitionResponse.from_result(result)


@order_router.post("/{order_id}/cancel", response_model=TransitionResponse)
async def cancel_order(
    order_id: str, body: CancelOrderRequest, actor: Actor = Depends(current_actor)
) -> TransitionResponse:
    result = get_services().checkout.cancel(order_id, actor, body.reason)
    return TransitionResponse.from_result(result)


@order_router.post("/{order_id}/payment", response_model=TransitionResponse)
async def submit_payment(order_id: str, actor: Actor = Depends(current_actor)) -> TransitionResponse:
    """Submit the payment intent, or retry it after a failure."""
    result = get_services().checkout.submit_payment(order_id, actor)
    return TransitionResponse.from_result(result)


@order_router.post("/{order_id}/tracking/refresh", response_model=StatusResponse)
async def refresh_tracking(order_id: str, actor: Actor = Depends(current_actor)) -> StatusResponse:
    """Poll the carrier for a shipped order (admin only)."""
    if not actor.is_admin:
        raise PermissionDeniedError("Only admins may refresh tracking")
    result = get_services().checkout.refresh_tracking(order_id)
    return StatusResponse(status="ignored" if result is None else "tracking_updated")


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/webhook", response_model=StatusResponse)
async def payment_webhook(
    body: PaymentWebhookRequest,
    x_gateway_signature: str = Header(default=""),
) -> StatusResponse:
    """Process a payment gateway webhook callback."""
    services = get_services()
    if not services.gateway.verify_webhook_signature(json.dumps(body.model_dump(mode="json")), x_gateway_signature):
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    result = services.checkout.record_payment_result(body.order_id, body.status, body.failure_reason)
    return StatusResponse(status="pending" if result is None else "processed")


@payment_router.post("/gateway/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Configure the FakeGateway behavior (non-production only)."""
    services = get_services()
    if services.settings.environment == "production":
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    gateway = services.gateway
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeGateway")

    gateway.configure(outcome=body.outcome, failure_reason=body.failure_reason)
    return GatewayConfigResponse(
        gateway=type(gateway).__name__,
        outcome=gateway.outcome,
        failure_reason=gateway.failure_reason,
    )


# ---------------------------------------------------------------------------
# Shipment Router
# ---------------------------------------------------------------------------
shipment_router = APIRouter(prefix="/shipments", tags=["shipments"])


@shipment_router.post("/webhook", response_model=StatusResponse)
async def shipment_webhook(
    body: ShipmentWebhookRequest,
    x_carrier_signature: str = Header(default=""),
) -> StatusResponse:
    """Process a carrier tracking webhook callback."""
    services = get_services()
    if not services.carrier.verify_webhook_signature(json.dumps(body.model_dump(mode="json")), x_carrier_signature):
        raise HTTPException(status_code=401, detail="Invalid carrier webhook signature")

    result = services.checkout.apply_carrier_status(body.order_id, body.status, body.tracking_id)
    return StatusResponse(status="ignored" if result is None else "tracking_updated")
