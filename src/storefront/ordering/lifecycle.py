"""Order Lifecycle Manager — creates orders and serialises transitions per order.

Transitions for the same order id run one at a time behind a per-key lock,
and every save carries an optimistic version check so that a second process
writing to the same store is caught as a ConcurrentModificationError.
Transitions for different orders never wait on each other.
"""

import threading
from contextlib import contextmanager
from datetime import UTC, datetime

import structlog

from storefront.config import StorefrontSettings, get_settings
from storefront.exceptions import (
    AuthenticationRequiredError,
    ConcurrentModificationError,
    EmptyCartError,
    InvalidTransitionError,
    PermissionDeniedError,
    TerminalStateError,
    ValidationError,
)
from storefront.ordering.order.order import COMMITTED_STATES, Order, OrderState
from storefront.ordering.order.repository import OrderRepository
from storefront.ordering.order.transitions import OrderEvent, TransitionResult, apply_transition
from storefront.shared.actors import Actor, ActorRole

logger = structlog.get_logger(__name__)


class KeyedLock:
    """One mutex per key, dropped once no caller holds or waits on it."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, list] = {}  # key -> [lock, users]

    @contextmanager
    def hold(self, key: str):
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


class OrderLifecycleManager:
    def __init__(self, repository: OrderRepository, settings: StorefrontSettings | None = None):
        self.repository = repository
        self.settings = settings or get_settings()
        self._locks = KeyedLock()

    # -------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------
    def create_order(self, cart, price_summary, shipping_address, payment_method, customer: Actor, *, now=None):
        """Persist a new order in CREATED from a priced cart."""
        if not customer.authenticated:
            raise AuthenticationRequiredError()
        if customer.role != ActorRole.CUSTOMER:
            raise ValidationError({"customer": ["Orders are placed by customers"]})
        if cart.is_empty:
            raise EmptyCartError()
        if price_summary.item_count != cart.item_count:
            raise ValidationError({"price_summary": ["Price summary was computed for a different cart"]})

        order = Order.create(
            customer_id=customer.id,
            line_items=cart.items,
            price_summary=price_summary,
            shipping_address=shipping_address,
            payment_method=payment_method,
            currency=self.settings.currency,
            now=now,
        )
        self.repository.save(order, expected_version=None)

        logger.info(
            "Order created",
            order_id=order.id,
            customer_id=order.customer_id,
            total=order.total,
            item_count=price_summary.item_count,
        )
        return order

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def get(self, order_id: str) -> Order:
        return self.repository.get(order_id)

    def get_for(self, order_id: str, actor: Actor) -> Order:
        """Read an order on behalf of ``actor``. Customers may only read their own."""
        order = self.repository.get(order_id)
        if actor.role == ActorRole.CUSTOMER and not order.is_owned_by(actor.id):
            raise PermissionDeniedError(f"Order {order_id} belongs to another customer")
        return order

    def list_for_customer(self, customer_id: str) -> list[Order]:
        return self.repository.find_by_customer(customer_id)

    def list_by_state(self, state: OrderState) -> list[Order]:
        return self.repository.find_by_state(state)

    # -------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------
    def apply(
        self,
        order_id: str,
        event: OrderEvent,
        actor: Actor,
        *,
        note: str = "",
        tracking_id: str | None = None,
        now: datetime | None = None,
    ) -> TransitionResult:
        """Apply ``event`` to the stored order and persist the result.

        Version conflicts are retried by re-reading the order, up to
        ``max_concurrency_retries`` attempts; the last conflict is re-raised.
        """
        return self._apply(order_id, lambda order: event, actor, note=note, tracking_id=tracking_id, now=now)

    def cancel(self, order_id: str, actor: Actor, reason: str = "") -> TransitionResult:
        """Cancel through whichever edge fits the order's state.

        Orders whose inventory is committed take the admin-only edge; the
        state machine rejects non-admin actors there. The edge is chosen
        under the order's lock, from the same read the transition uses.
        """
        return self._apply(order_id, _cancel_event_for, actor, note=reason)

    def _apply(self, order_id, choose_event, actor: Actor, *, note="", tracking_id=None, now=None):
        attempts = self.settings.max_concurrency_retries
        with self._locks.hold(order_id):
            for attempt in range(1, attempts + 1):
                order = self.repository.get(order_id)
                event = choose_event(order)
                try:
                    result = apply_transition(
                        order,
                        event,
                        actor,
                        note=note,
                        tracking_id=tracking_id,
                        now=now or datetime.now(UTC),
                        max_payment_retries=self.settings.max_payment_retries,
                    )
                except (InvalidTransitionError, TerminalStateError) as exc:
                    logger.warning(
                        "Transition rejected",
                        order_id=order_id,
                        transition=event.value,
                        state=order.state.value,
                        actor_id=actor.id,
                        error=type(exc).__name__,
                    )
                    raise

                if not result.applied:
                    return result

                try:
                    self.repository.save(result.order, expected_version=order.version)
                except ConcurrentModificationError:
                    logger.warning(
                        "Order modified concurrently",
                        order_id=order_id,
                        transition=event.value,
                        attempt=attempt,
                    )
                    if attempt == attempts:
                        raise
                    continue

                logger.info(
                    "Order transitioned",
                    order_id=order_id,
                    transition=event.value,
                    from_state=order.state.value,
                    to_state=result.order.state.value,
                    actor_id=actor.id,
                    effects=[effect.kind for effect in result.effects],
                )
                return result

        raise AssertionError("unreachable")  # pragma: no cover


def _cancel_event_for(order: Order) -> OrderEvent:
    return OrderEvent.ADMIN_CANCEL if order.state in COMMITTED_STATES else OrderEvent.CANCEL
