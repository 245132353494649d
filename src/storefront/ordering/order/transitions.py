"""Order state machine — the transition table and the pure transition function.

``apply_transition`` never mutates its input. A rejected request raises and
leaves the order exactly as it was; an accepted one returns a new Order plus
the effect descriptors the caller must hand to collaborators.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

import structlog

from storefront.exceptions import (
    InvalidTransitionError,
    PaymentRetryLimitError,
    TerminalStateError,
    TransitionNotPermittedError,
)
from storefront.ordering.order.effects import (
    AnyEffect,
    InventoryDecrement,
    InventoryRelease,
    NotificationRequested,
    PaymentCaptureRequested,
    PaymentRefundRequested,
    RestockAndRefund,
    StockLine,
)
from storefront.ordering.order.order import HistoryEntry, Order, OrderState, PaymentState
from storefront.shared.actors import Actor, ActorRole

logger = structlog.get_logger(__name__)

DEFAULT_MAX_PAYMENT_RETRIES = 3


class OrderEvent(Enum):
    SUBMIT_PAYMENT = "SubmitPayment"
    CONFIRM_PAYMENT = "ConfirmPayment"
    FAIL_PAYMENT = "FailPayment"
    RETRY_PAYMENT = "RetryPayment"
    START_PROCESSING = "StartProcessing"
    SHIP = "Ship"
    DISPATCH_FOR_DELIVERY = "DispatchForDelivery"
    DELIVER = "Deliver"
    CANCEL = "Cancel"
    ADMIN_CANCEL = "AdminCancel"


@dataclass(frozen=True)
class Edge:
    target: OrderState
    roles: frozenset[ActorRole]


_CUSTOMER_OR_SYSTEM = frozenset({ActorRole.CUSTOMER, ActorRole.SYSTEM})
_OPERATIONS = frozenset({ActorRole.SYSTEM, ActorRole.ADMIN})
_ANYONE = frozenset(ActorRole)
_ADMIN_ONLY = frozenset({ActorRole.ADMIN})

# (current state, event) → edge
TRANSITIONS: dict[tuple[OrderState, OrderEvent], Edge] = {
    (OrderState.CREATED, OrderEvent.SUBMIT_PAYMENT): Edge(OrderState.PAYMENT_PENDING, _CUSTOMER_OR_SYSTEM),
    (OrderState.PAYMENT_PENDING, OrderEvent.CONFIRM_PAYMENT): Edge(OrderState.PAYMENT_CONFIRMED, _OPERATIONS),
    (OrderState.PAYMENT_PENDING, OrderEvent.FAIL_PAYMENT): Edge(OrderState.PAYMENT_FAILED, _OPERATIONS),
    (OrderState.PAYMENT_FAILED, OrderEvent.RETRY_PAYMENT): Edge(OrderState.PAYMENT_PENDING, _CUSTOMER_OR_SYSTEM),
    (OrderState.PAYMENT_CONFIRMED, OrderEvent.START_PROCESSING): Edge(OrderState.PROCESSING, _OPERATIONS),
    (OrderState.PROCESSING, OrderEvent.SHIP): Edge(OrderState.SHIPPED, _OPERATIONS),
    (OrderState.SHIPPED, OrderEvent.DISPATCH_FOR_DELIVERY): Edge(OrderState.OUT_FOR_DELIVERY, _OPERATIONS),
    (OrderState.OUT_FOR_DELIVERY, OrderEvent.DELIVER): Edge(OrderState.DELIVERED, _OPERATIONS),
    # Cancellation before inventory is committed
    (OrderState.CREATED, OrderEvent.CANCEL): Edge(OrderState.CANCELLED, _ANYONE),
    (OrderState.PAYMENT_PENDING, OrderEvent.CANCEL): Edge(OrderState.CANCELLED, _ANYONE),
    (OrderState.PAYMENT_CONFIRMED, OrderEvent.CANCEL): Edge(OrderState.CANCELLED, _ANYONE),
    # Cancellation after inventory is committed
    (OrderState.PROCESSING, OrderEvent.ADMIN_CANCEL): Edge(OrderState.CANCELLED, _ADMIN_ONLY),
    (OrderState.SHIPPED, OrderEvent.ADMIN_CANCEL): Edge(OrderState.CANCELLED, _ADMIN_ONLY),
}

# Every event leads to exactly one state, which makes replays detectable
EVENT_TARGETS: dict[OrderEvent, OrderState] = {event: edge.target for (_, event), edge in TRANSITIONS.items()}


def allowed_events(state: OrderState) -> list[OrderEvent]:
    """Events the table accepts from ``state``, in declaration order."""
    return [event for (source, event) in TRANSITIONS if source == state]


def reachable_states(state: OrderState) -> set[OrderState]:
    return {TRANSITIONS[(state, event)].target for event in allowed_events(state)}


@dataclass(frozen=True)
class TransitionResult:
    order: Order
    effects: tuple[AnyEffect, ...] = field(default_factory=tuple)
    applied: bool = True


# ---------------------------------------------------------------------------
# Payment state and effects per edge
# ---------------------------------------------------------------------------
def _next_payment_state(order: Order, event: OrderEvent) -> PaymentState:
    if event in (OrderEvent.SUBMIT_PAYMENT, OrderEvent.RETRY_PAYMENT):
        return PaymentState.PENDING
    if event == OrderEvent.CONFIRM_PAYMENT:
        return PaymentState.CAPTURED
    if event == OrderEvent.FAIL_PAYMENT:
        return PaymentState.FAILED
    if event in (OrderEvent.CANCEL, OrderEvent.ADMIN_CANCEL) and order.payment_state == PaymentState.CAPTURED:
        return PaymentState.REFUND_PENDING
    return order.payment_state


def _effects_for(order: Order, event: OrderEvent, updated: Order) -> tuple:
    lines = [StockLine.from_line_item(item) for item in order.line_items]
    effects = []

    if updated.state == OrderState.PAYMENT_PENDING:
        effects.append(
            PaymentCaptureRequested(
                order_id=order.id,
                amount=order.total,
                method=order.payment_method,
                attempt=updated.payment_attempts,
            )
        )
    elif updated.state == OrderState.PAYMENT_CONFIRMED:
        effects.extend(InventoryDecrement(order_id=order.id, line=line) for line in lines)
    elif event == OrderEvent.CANCEL:
        effects.extend(InventoryRelease(order_id=order.id, line=line) for line in lines)
        if order.payment_state == PaymentState.CAPTURED:
            effects.append(PaymentRefundRequested(order_id=order.id, amount=order.total))
    elif event == OrderEvent.ADMIN_CANCEL:
        refund = order.total if order.payment_state == PaymentState.CAPTURED else 0
        effects.append(RestockAndRefund(order_id=order.id, lines=tuple(lines), refund_amount=refund))

    effects.append(NotificationRequested(order_id=order.id, new_state=updated.state))
    return tuple(effects)


# ---------------------------------------------------------------------------
# Transition function
# ---------------------------------------------------------------------------
def apply_transition(
    order: Order,
    event: OrderEvent,
    actor: Actor,
    *,
    note: str = "",
    tracking_id: str | None = None,
    now: datetime | None = None,
    max_payment_retries: int = DEFAULT_MAX_PAYMENT_RETRIES,
) -> TransitionResult:
    """Apply ``event`` to ``order`` on behalf of ``actor``.

    Replaying an event against an order already in that event's target state
    is a successful no-op (``applied`` is False): webhooks may be delivered
    more than once.

    Raises:
        TerminalStateError: the order is DELIVERED or CANCELLED.
        InvalidTransitionError: ``(order.state, event)`` is not in the table.
        TransitionNotPermittedError: the actor may not take this edge.
        PaymentRetryLimitError: the payment retry budget is spent.
    """
    current = order.state

    if actor.role == ActorRole.CUSTOMER and not order.is_owned_by(actor.id):
        raise TransitionNotPermittedError(current, event, actor)

    if EVENT_TARGETS[event] == current:
        logger.debug("Transition replay ignored", order_id=order.id, transition=event.value, state=current.value)
        return TransitionResult(order=order, effects=(), applied=False)

    if order.is_terminal:
        raise TerminalStateError(current, event)

    edge = TRANSITIONS.get((current, event))
    if edge is None:
        raise InvalidTransitionError(current, event)

    if actor.role not in edge.roles:
        raise TransitionNotPermittedError(current, event, actor)

    if event == OrderEvent.RETRY_PAYMENT and order.payment_retries >= max_payment_retries:
        raise PaymentRetryLimitError(current, event, max_payment_retries)

    now = now or datetime.now(UTC)
    entry = HistoryEntry(
        from_state=current,
        to_state=edge.target,
        event=event.value,
        timestamp=now,
        actor_id=actor.id,
        actor_role=actor.role,
        note=note,
    )

    changes = {
        "state": edge.target,
        "payment_state": _next_payment_state(order, event),
        "history": (*order.history, entry),
        "version": order.version + 1,
        "updated_at": now,
    }
    if edge.target == OrderState.PAYMENT_PENDING:
        changes["payment_attempts"] = order.payment_attempts + 1
    if tracking_id is not None:
        changes["tracking_id"] = tracking_id

    updated = order.model_copy(update=changes)
    return TransitionResult(order=updated, effects=_effects_for(order, event, updated), applied=True)
