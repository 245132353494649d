"""Order aggregate — the authoritative record of a placed order.

An Order is an immutable value: every accepted transition produces a new
Order with one more history entry and a bumped ``version``. Line items and
the price summary are frozen copies taken at checkout, so later catalogue
price changes never alter a placed order.

State Machine (9 states):
    CREATED → PAYMENT_PENDING → PAYMENT_CONFIRMED → PROCESSING →
    SHIPPED → OUT_FOR_DELIVERY → DELIVERED
    PAYMENT_PENDING → PAYMENT_FAILED → PAYMENT_PENDING (retry, capped)
    CANCELLED (from CREATED, PAYMENT_PENDING, PAYMENT_CONFIRMED by customer;
               from PROCESSING, SHIPPED by admin)

The transition table itself lives in ``ordering.order.transitions``.
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from storefront.pricing.cart import LineItem
from storefront.pricing.engine import PriceSummary
from storefront.pricing.shipping import ShippingMethod
from storefront.shared.actors import ActorRole


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderState(Enum):
    CREATED = "Created"
    PAYMENT_PENDING = "Payment_Pending"
    PAYMENT_CONFIRMED = "Payment_Confirmed"
    PAYMENT_FAILED = "Payment_Failed"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    OUT_FOR_DELIVERY = "Out_For_Delivery"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


TERMINAL_STATES = frozenset({OrderState.DELIVERED, OrderState.CANCELLED})

# Inventory is committed from PROCESSING onwards
COMMITTED_STATES = frozenset(
    {
        OrderState.PROCESSING,
        OrderState.SHIPPED,
        OrderState.OUT_FOR_DELIVERY,
        OrderState.DELIVERED,
    }
)


class PaymentState(Enum):
    UNPAID = "Unpaid"
    PENDING = "Pending"
    CAPTURED = "Captured"
    FAILED = "Failed"
    REFUND_PENDING = "Refund_Pending"


class PaymentMethod(Enum):
    PHONEPE = "phonepe"
    CASH_ON_DELIVERY = "cod"
    BANK_TRANSFER = "bank_transfer"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
class ShippingAddress(BaseModel):
    """Delivery address captured at checkout; never follows later profile edits."""

    model_config = ConfigDict(frozen=True)

    full_name: str = Field(min_length=2, max_length=100)
    phone: str = Field(pattern=r"^[0-9]{10}$")
    street: str = Field(min_length=5, max_length=200)
    city: str = Field(min_length=2, max_length=50)
    state: str = Field(min_length=2, max_length=50)
    pincode: str = Field(pattern=r"^[0-9]{6}$")
    country: str = "India"


class HistoryEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    from_state: OrderState | None
    to_state: OrderState
    event: str | None = None
    timestamp: datetime
    actor_id: str
    actor_role: ActorRole
    note: str = ""


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
class Order(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    customer_id: str
    line_items: tuple[LineItem, ...]
    price_summary: PriceSummary
    shipping_address: ShippingAddress
    payment_method: PaymentMethod
    shipping_method: ShippingMethod = ShippingMethod.STANDARD
    currency: str = "INR"
    state: OrderState = OrderState.CREATED
    payment_state: PaymentState = PaymentState.UNPAID
    payment_attempts: int = 0
    tracking_id: str | None = None
    history: tuple[HistoryEntry, ...] = ()
    version: int = 1
    created_at: datetime
    updated_at: datetime

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        customer_id,
        line_items,
        price_summary,
        shipping_address,
        payment_method,
        *,
        actor_role=ActorRole.CUSTOMER,
        currency="INR",
        now=None,
        order_id=None,
    ):
        """Create an order in CREATED from a priced cart snapshot.

        Args:
            customer_id: The customer placing the order.
            line_items: The cart's line items; copied into a tuple.
            price_summary: The summary computed for exactly these items.
            shipping_address: A ShippingAddress.
            payment_method: A PaymentMethod.
        """
        now = now or datetime.now(UTC)
        return cls(
            id=order_id or f"ORD-{uuid4().hex[:12].upper()}",
            customer_id=str(customer_id),
            line_items=tuple(line_items),
            price_summary=price_summary,
            shipping_address=shipping_address,
            payment_method=payment_method,
            shipping_method=price_summary.shipping_method,
            currency=currency,
            history=(
                HistoryEntry(
                    from_state=None,
                    to_state=OrderState.CREATED,
                    timestamp=now,
                    actor_id=str(customer_id),
                    actor_role=actor_role,
                    note="Order placed",
                ),
            ),
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def total(self) -> int:
        return self.price_summary.total

    @property
    def payment_retries(self) -> int:
        return max(0, self.payment_attempts - 1)

    def is_owned_by(self, actor_id: str) -> bool:
        return self.customer_id == str(actor_id)
