from datetime import UTC, datetime

import pytest

from storefront.ordering.order.order import Order, PaymentMethod
from storefront.pricing.cart import LineItem
from storefront.pricing.engine import PriceSummary
from storefront.shared.actors import Actor, ActorRole

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
def customer():
    return Actor(id="cust-001")


@pytest.fixture
def other_customer():
    return Actor(id="cust-999")


@pytest.fixture
def admin():
    return Actor(id="admin-001", role=ActorRole.ADMIN)


@pytest.fixture
def system():
    return Actor.system("payment-gateway")


@pytest.fixture
def order(address):
    """An order for two kurtas and a dupatta, in Created."""
    items = (
        LineItem(product_id="prod-001", name="Block Print Kurta", unit_price=50000, quantity=2),
        LineItem(product_id="prod-002", name="Silk Dupatta", unit_price=30000, quantity=1, variant_key="red"),
    )
    summary = PriceSummary(
        subtotal=130000,
        discount=10000,
        shipping_fee=0,
        tax=21600,
        total=141600,
        item_count=3,
        coupon_code="SAVE10",
    )
    return Order.create("cust-001", items, summary, address, PaymentMethod.PHONEPE, now=NOW)
