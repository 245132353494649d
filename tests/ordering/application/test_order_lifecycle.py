"""Tests for OrderLifecycleManager — creation, persistence and per-order serialisation."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from storefront.config import StorefrontSettings
from storefront.exceptions import (
    AuthenticationRequiredError,
    ConcurrentModificationError,
    EmptyCartError,
    OrderNotFoundError,
    PermissionDeniedError,
    TransitionNotPermittedError,
    ValidationError,
)
from storefront.ordering.lifecycle import KeyedLock, OrderLifecycleManager
from storefront.ordering.order.order import OrderState, PaymentMethod
from storefront.ordering.order.repository import InMemoryOrderRepository
from storefront.ordering.order.transitions import OrderEvent
from storefront.pricing.cart import Cart
from storefront.pricing.engine import PricingEngine
from storefront.shared.actors import Actor


class ConflictingRepository(InMemoryOrderRepository):
    """Simulates another writer bumping the version before the first ``conflicts`` saves."""

    def __init__(self, conflicts):
        super().__init__()
        self.conflicts = conflicts
        self.save_attempts = 0

    def save(self, order, expected_version=None):
        if expected_version is not None:
            self.save_attempts += 1
            if self.save_attempts <= self.conflicts:
                raise ConcurrentModificationError(order.id, expected_version, expected_version + 1)
        super().save(order, expected_version)


class StaleReadRepository(InMemoryOrderRepository):
    """Serves ``stale`` once, as if another writer saved right after the read."""

    def __init__(self):
        super().__init__()
        self.stale = None

    def get(self, order_id):
        if self.stale is not None:
            order, self.stale = self.stale, None
            return order
        return super().get(order_id)


@pytest.fixture
def cart():
    cart = Cart()
    cart.add_item("prod-001", 50000, quantity=2, name="Block Print Kurta")
    cart.add_item("prod-002", 30000, quantity=1, name="Silk Dupatta")
    return cart


@pytest.fixture
def summary(cart, settings):
    return PricingEngine.from_settings(settings).compute_summary(cart)


@pytest.fixture
def lifecycle(settings):
    return OrderLifecycleManager(InMemoryOrderRepository(), settings)


def _place(lifecycle, cart, summary, address, customer):
    return lifecycle.create_order(cart, summary, address, PaymentMethod.PHONEPE, customer)


class TestCreateOrder:
    def test_order_is_created_and_stored(self, lifecycle, cart, summary, address, customer):
        order = _place(lifecycle, cart, summary, address, customer)

        assert order.state == OrderState.CREATED
        assert order.version == 1
        assert order.customer_id == "cust-001"
        assert order.total == summary.total
        assert lifecycle.get(order.id) == order

    def test_order_snapshots_line_items(self, lifecycle, cart, summary, address, customer):
        order = _place(lifecycle, cart, summary, address, customer)
        cart.clear()
        assert len(order.line_items) == 2

    def test_unauthenticated_customer_rejected(self, lifecycle, cart, summary, address):
        guest = Actor(id="guest", authenticated=False)
        with pytest.raises(AuthenticationRequiredError):
            _place(lifecycle, cart, summary, address, guest)

    def test_admin_cannot_place_orders(self, lifecycle, cart, summary, address, admin):
        with pytest.raises(ValidationError):
            _place(lifecycle, cart, summary, address, admin)

    def test_empty_cart_rejected(self, lifecycle, summary, address, customer):
        with pytest.raises(EmptyCartError):
            _place(lifecycle, Cart(), summary, address, customer)

    def test_summary_must_match_cart(self, lifecycle, cart, summary, address, customer):
        cart.add_item("prod-003", 2500)
        with pytest.raises(ValidationError) as exc:
            _place(lifecycle, cart, summary, address, customer)
        assert "price_summary" in exc.value.messages
        assert lifecycle.repository.all() == []


class TestReads:
    def test_unknown_order(self, lifecycle):
        with pytest.raises(OrderNotFoundError):
            lifecycle.get("ORD-MISSING")

    def test_customer_reads_own_order(self, lifecycle, cart, summary, address, customer):
        order = _place(lifecycle, cart, summary, address, customer)
        assert lifecycle.get_for(order.id, customer).id == order.id

    def test_customer_cannot_read_other_orders(self, lifecycle, cart, summary, address, customer, other_customer):
        order = _place(lifecycle, cart, summary, address, customer)
        with pytest.raises(PermissionDeniedError):
            lifecycle.get_for(order.id, other_customer)

    def test_admin_reads_any_order(self, lifecycle, cart, summary, address, customer, admin):
        order = _place(lifecycle, cart, summary, address, customer)
        assert lifecycle.get_for(order.id, admin).id == order.id

    def test_list_for_customer_and_state(self, lifecycle, cart, summary, address, customer):
        first = _place(lifecycle, cart, summary, address, customer)
        second = _place(lifecycle, cart, summary, address, customer)
        lifecycle.apply(second.id, OrderEvent.SUBMIT_PAYMENT, customer)

        assert {o.id for o in lifecycle.list_for_customer("cust-001")} == {first.id, second.id}
        assert [o.id for o in lifecycle.list_by_state(OrderState.PAYMENT_PENDING)] == [second.id]
        assert lifecycle.list_for_customer("cust-999") == []


class TestApply:
    def test_transition_is_persisted(self, lifecycle, cart, summary, address, customer):
        order = _place(lifecycle, cart, summary, address, customer)
        result = lifecycle.apply(order.id, OrderEvent.SUBMIT_PAYMENT, customer)

        stored = lifecycle.get(order.id)
        assert stored.state == OrderState.PAYMENT_PENDING
        assert stored.version == 2
        assert stored == result.order

    def test_rejected_transition_leaves_store_untouched(self, lifecycle, cart, summary, address, customer):
        order = _place(lifecycle, cart, summary, address, customer)
        with pytest.raises(TransitionNotPermittedError):
            lifecycle.apply(order.id, OrderEvent.START_PROCESSING, customer)
        assert lifecycle.get(order.id) == order

    def test_replay_does_not_bump_version(self, lifecycle, cart, summary, address, customer, system):
        order = _place(lifecycle, cart, summary, address, customer)
        lifecycle.apply(order.id, OrderEvent.SUBMIT_PAYMENT, customer)
        lifecycle.apply(order.id, OrderEvent.CONFIRM_PAYMENT, system)

        result = lifecycle.apply(order.id, OrderEvent.CONFIRM_PAYMENT, system)

        assert result.applied is False
        assert lifecycle.get(order.id).version == 3

    def test_locks_are_released(self, lifecycle, cart, summary, address, customer):
        order = _place(lifecycle, cart, summary, address, customer)
        lifecycle.apply(order.id, OrderEvent.SUBMIT_PAYMENT, customer)
        assert len(lifecycle._locks) == 0


class TestCancel:
    def test_customer_cancel_before_processing(self, lifecycle, cart, summary, address, customer):
        order = _place(lifecycle, cart, summary, address, customer)
        result = lifecycle.cancel(order.id, customer, "Ordered by mistake")
        assert result.order.state == OrderState.CANCELLED
        assert result.order.history[-1].event == "Cancel"

    def test_processing_order_needs_admin(self, lifecycle, cart, summary, address, customer, system, admin):
        order = _place(lifecycle, cart, summary, address, customer)
        for event in (OrderEvent.SUBMIT_PAYMENT, OrderEvent.CONFIRM_PAYMENT, OrderEvent.START_PROCESSING):
            lifecycle.apply(order.id, event, system)

        with pytest.raises(TransitionNotPermittedError):
            lifecycle.cancel(order.id, customer)

        result = lifecycle.cancel(order.id, admin, "Out of stock at warehouse")
        assert result.order.state == OrderState.CANCELLED
        assert result.order.history[-1].event == "AdminCancel"


class TestConcurrency:
    def test_version_conflict_is_retried(self, settings, cart, summary, address, customer):
        repository = ConflictingRepository(conflicts=1)
        lifecycle = OrderLifecycleManager(repository, settings)
        order = _place(lifecycle, cart, summary, address, customer)

        result = lifecycle.apply(order.id, OrderEvent.SUBMIT_PAYMENT, customer)

        assert result.order.state == OrderState.PAYMENT_PENDING
        assert repository.save_attempts == 2

    def test_persistent_conflict_is_raised(self, cart, summary, address, customer):
        settings = StorefrontSettings(max_concurrency_retries=2, _env_file=None)
        repository = ConflictingRepository(conflicts=10)
        lifecycle = OrderLifecycleManager(repository, settings)
        order = _place(lifecycle, cart, summary, address, customer)

        with pytest.raises(ConcurrentModificationError) as exc:
            lifecycle.apply(order.id, OrderEvent.SUBMIT_PAYMENT, customer)

        assert exc.value.order_id == order.id
        assert repository.save_attempts == 2
        assert lifecycle.get(order.id).state == OrderState.CREATED

    def test_stale_save_is_rejected(self, lifecycle, cart, summary, address, customer):
        order = _place(lifecycle, cart, summary, address, customer)
        with pytest.raises(ConcurrentModificationError):
            lifecycle.repository.save(order, expected_version=None)

    def test_parallel_confirmations_apply_once(self, lifecycle, cart, summary, address, customer, system):
        order = _place(lifecycle, cart, summary, address, customer)
        lifecycle.apply(order.id, OrderEvent.SUBMIT_PAYMENT, customer)

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: lifecycle.apply(order.id, OrderEvent.CONFIRM_PAYMENT, system), range(16)))

        assert sum(result.applied for result in results) == 1
        stored = lifecycle.get(order.id)
        assert stored.state == OrderState.PAYMENT_CONFIRMED
        assert [entry.to_state for entry in stored.history].count(OrderState.PAYMENT_CONFIRMED) == 1

    def test_different_orders_do_not_share_locks(self):
        locks = KeyedLock()
        with locks.hold("ORD-A"), locks.hold("ORD-B"):
            assert len(locks) == 2
        assert len(locks) == 0

    def test_cancel_edge_follows_the_reread_state(self, settings, cart, summary, address, customer, system, admin):
        repository = StaleReadRepository()
        lifecycle = OrderLifecycleManager(repository, settings)
        order = _place(lifecycle, cart, summary, address, customer)
        lifecycle.apply(order.id, OrderEvent.SUBMIT_PAYMENT, customer)
        confirmed = lifecycle.apply(order.id, OrderEvent.CONFIRM_PAYMENT, system).order
        lifecycle.apply(order.id, OrderEvent.START_PROCESSING, admin)
        repository.stale = confirmed

        result = lifecycle.cancel(order.id, admin, "Warehouse damage")

        assert result.order.state == OrderState.CANCELLED
        assert result.order.history[-1].event == "AdminCancel"
        kinds = [effect.kind for effect in result.effects]
        assert "restock_and_refund" in kinds
        assert "inventory_release" not in kinds
