"""Typed errors raised by the pricing engine and the order lifecycle.

Every error carries a ``messages`` dict keyed by the offending field, the
same shape the HTTP layer renders back to callers.
"""


class StorefrontError(Exception):
    """Base class for all checkout-core errors."""

    def __init__(self, messages: dict[str, list[str]] | None = None):
        self.messages = messages or {}
        super().__init__(self.messages)


class ValidationError(StorefrontError):
    """Input failed a domain rule (bad quantity, malformed address, ...)."""


# ---------------------------------------------------------------------------
# Pricing errors — always recoverable, never corrupt the cart
# ---------------------------------------------------------------------------
class EmptyCartError(StorefrontError):
    def __init__(self):
        super().__init__({"cart": ["Cannot check out an empty cart"]})


class InvalidCouponError(StorefrontError):
    """A coupon was rejected. ``reason`` names the first failed check."""

    def __init__(self, reason: str, code: str | None = None):
        self.reason = reason
        self.code = code
        label = f"Coupon {code}" if code else "Coupon"
        super().__init__({"coupon_code": [f"{label} rejected: {reason}"]})


class CartItemNotFoundError(StorefrontError):
    def __init__(self, product_id: str, variant_key: str | None = None):
        self.product_id = product_id
        self.variant_key = variant_key
        super().__init__({"item": [f"No line for product {product_id} (variant {variant_key}) in cart"]})


class OutOfStockError(StorefrontError):
    def __init__(self, product_id: str, requested: int, available: int):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__({"quantity": [f"Only {available} of product {product_id} in stock, {requested} requested"]})


# ---------------------------------------------------------------------------
# Lifecycle errors — rejected transitions never mutate the order
# ---------------------------------------------------------------------------
class InvalidTransitionError(StorefrontError):
    """The (state, event) pair is not in the transition table."""

    def __init__(self, from_state, event, detail: str | None = None):
        self.from_state = from_state
        self.event = event
        message = detail or f"Cannot apply {event.value} to an order in {from_state.value}"
        super().__init__({"status": [message]})


class TransitionNotPermittedError(InvalidTransitionError):
    """The edge exists but the requesting actor may not take it."""

    def __init__(self, from_state, event, actor):
        self.actor = actor
        super().__init__(
            from_state,
            event,
            detail=f"{actor.role.value} {actor.id} may not apply {event.value} to an order in {from_state.value}",
        )


class PaymentRetryLimitError(InvalidTransitionError):
    def __init__(self, from_state, event, limit: int):
        self.limit = limit
        super().__init__(from_state, event, detail=f"Payment retry limit of {limit} reached")


class TerminalStateError(StorefrontError):
    def __init__(self, state, event):
        self.state = state
        self.event = event
        super().__init__({"status": [f"Order is {state.value}; no transition ({event.value}) may leave it"]})


class ConcurrentModificationError(StorefrontError):
    """Optimistic version check failed. Retry by re-reading the order."""

    def __init__(self, order_id: str, expected: int, actual: int):
        self.order_id = order_id
        self.expected = expected
        self.actual = actual
        super().__init__({"version": [f"Order {order_id} is at version {actual}, expected {expected}"]})


# ---------------------------------------------------------------------------
# Lookup / access errors
# ---------------------------------------------------------------------------
class OrderNotFoundError(StorefrontError):
    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__({"order_id": [f"Order {order_id} not found"]})


class ProductNotFoundError(StorefrontError):
    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__({"product_id": [f"Product {product_id} not found"]})


class CouponNotFoundError(StorefrontError):
    def __init__(self, code: str):
        self.code = code
        super().__init__({"coupon_code": [f"Coupon {code} not found"]})


class AuthenticationRequiredError(StorefrontError):
    def __init__(self):
        super().__init__({"user": ["An authenticated customer is required"]})


class PermissionDeniedError(StorefrontError):
    def __init__(self, detail: str = "Not allowed"):
        super().__init__({"user": [detail]})
