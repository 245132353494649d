"""Pydantic request/response schemas for the checkout API.

These are external contracts — separate from the internal Order and Cart
models. Money is always rendered twice: integer minor units for machines
and a formatted string for display.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from storefront.ordering.order.order import Order, OrderState, PaymentMethod, PaymentState
from storefront.ordering.order.transitions import OrderEvent, TransitionResult, allowed_events
from storefront.payments.gateway.port import CaptureStatus
from storefront.pricing.engine import PriceSummary
from storefront.pricing.shipping import ShippingMethod
from storefront.shared.money import format_money


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class CartItemSchema(BaseModel):
    product_id: str = Field(min_length=1)
    variant_key: str | None = None
    quantity: int = Field(ge=1, default=1)


class AddressSchema(BaseModel):
    full_name: str = Field(min_length=2, max_length=100)
    phone: str = Field(pattern=r"^[0-9]{10}$")
    street: str = Field(min_length=5, max_length=200)
    city: str = Field(min_length=2, max_length=50)
    state: str = Field(min_length=2, max_length=50)
    pincode: str = Field(pattern=r"^[0-9]{6}$")
    country: str = "India"


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class CartRequest(BaseModel):
    items: list[CartItemSchema]
    coupon_code: str | None = None
    shipping_method: ShippingMethod = ShippingMethod.STANDARD

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [
                        {"product_id": "prod-001", "quantity": 2},
                        {"product_id": "prod-002", "variant_key": "size-m", "quantity": 1},
                    ],
                    "coupon_code": "SAVE10",
                    "shipping_method": "standard",
                }
            ]
        }
    }


class CheckoutRequest(CartRequest):
    shipping_address: AddressSchema
    payment_method: PaymentMethod = PaymentMethod.PHONEPE


class TransitionRequest(BaseModel):
    event: OrderEvent
    note: str = ""
    tracking_id: str | None = None


class CancelOrderRequest(BaseModel):
    reason: str = ""


class PaymentWebhookRequest(BaseModel):
    order_id: str
    status: CaptureStatus
    transaction_id: str | None = None
    failure_reason: str | None = None


class ShipmentWebhookRequest(BaseModel):
    order_id: str
    status: str
    tracking_id: str | None = None


class ConfigureGatewayRequest(BaseModel):
    outcome: CaptureStatus = CaptureStatus.APPROVED
    failure_reason: str = "Card declined"


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"


class PriceSummaryResponse(BaseModel):
    subtotal: int
    discount: int
    shipping_fee: int
    tax: int
    total: int
    item_count: int
    coupon_code: str | None = None
    shipping_method: ShippingMethod
    currency: str
    display: dict[str, str]

    @classmethod
    def from_summary(cls, summary: PriceSummary, currency: str = "INR") -> "PriceSummaryResponse":
        amounts = {
            "subtotal": summary.subtotal,
            "discount": summary.discount,
            "shipping_fee": summary.shipping_fee,
            "tax": summary.tax,
            "total": summary.total,
        }
        return cls(
            **amounts,
            item_count=summary.item_count,
            coupon_code=summary.coupon_code,
            shipping_method=summary.shipping_method,
            currency=currency,
            display={name: format_money(value, currency) for name, value in amounts.items()},
        )


class OrderLineResponse(BaseModel):
    product_id: str
    variant_key: str | None = None
    name: str
    unit_price: int
    quantity: int
    line_total: int


class HistoryEntryResponse(BaseModel):
    from_state: OrderState | None = None
    to_state: OrderState
    event: str | None = None
    timestamp: datetime
    actor_id: str
    actor_role: str
    note: str = ""


class OrderResponse(BaseModel):
    order_id: str
    customer_id: str
    state: OrderState
    payment_state: PaymentState
    payment_method: PaymentMethod
    payment_attempts: int
    tracking_id: str | None = None
    version: int
    items: list[OrderLineResponse]
    summary: PriceSummaryResponse
    history: list[HistoryEntryResponse]
    allowed_events: list[OrderEvent]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        return cls(
            order_id=order.id,
            customer_id=order.customer_id,
            state=order.state,
            payment_state=order.payment_state,
            payment_method=order.payment_method,
            payment_attempts=order.payment_attempts,
            tracking_id=order.tracking_id,
            version=order.version,
            items=[
                OrderLineResponse(
                    product_id=item.product_id,
                    variant_key=item.variant_key,
                    name=item.name,
                    unit_price=item.unit_price,
                    quantity=item.quantity,
                    line_total=item.line_total,
                )
                for item in order.line_items
            ],
            summary=PriceSummaryResponse.from_summary(order.price_summary, order.currency),
            history=[
                HistoryEntryResponse(
                    from_state=entry.from_state,
                    to_state=entry.to_state,
                    event=entry.event,
                    timestamp=entry.timestamp,
                    actor_id=entry.actor_id,
                    actor_role=entry.actor_role.value,
                    note=entry.note,
                )
                for entry in order.history
            ],
            allowed_events=allowed_events(order.state),
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class TransitionResponse(BaseModel):
    applied: bool
    effects: list[str]
    order: OrderResponse

    @classmethod
    def from_result(cls, result: TransitionResult) -> "TransitionResponse":
        return cls(
            applied=result.applied,
            effects=[effect.kind for effect in result.effects],
            order=OrderResponse.from_order(result.order),
        )


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]
    count: int


class GatewayConfigResponse(BaseModel):
    gateway: str
    outcome: CaptureStatus
    failure_reason: str
