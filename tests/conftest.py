from datetime import UTC, datetime, timedelta
from decimal import Decimal
from pathlib import Path

import pytest

from storefront.catalogue.memory_adapter import InMemoryCatalog
from storefront.catalogue.port import Product
from storefront.config import StorefrontSettings, get_settings
from storefront.fulfillment.carrier import reset_carrier
from storefront.ordering.order.order import ShippingAddress
from storefront.payments.gateway import reset_gateway
from storefront.pricing.coupons import Coupon, CouponKind
from storefront.services import reset_services


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(autouse=True)
def run_around_tests():
    """Drop process-wide adapters and cached settings after every test"""
    yield

    reset_gateway()
    reset_carrier()
    reset_services()
    get_settings.cache_clear()


@pytest.fixture
def settings():
    return StorefrontSettings(environment="test", _env_file=None)


@pytest.fixture
def address():
    return ShippingAddress(
        full_name="Asha Rao",
        phone="9876543210",
        street="12 MG Road, Indiranagar",
        city="Bengaluru",
        state="Karnataka",
        pincode="560038",
    )


@pytest.fixture
def catalog():
    return InMemoryCatalog(
        [
            Product(product_id="prod-001", name="Block Print Kurta", unit_price=50000, stock_quantity=10),
            Product(product_id="prod-002", name="Silk Dupatta", unit_price=30000, stock_quantity=5),
            Product(product_id="prod-003", name="Cotton Scarf", unit_price=2500, stock_quantity=1),
        ]
    )


@pytest.fixture
def save10():
    """10% off, capped at ₹100, valid around the current time."""
    now = datetime.now(UTC)
    return Coupon(
        code="SAVE10",
        kind=CouponKind.PERCENTAGE,
        value=Decimal("10"),
        max_discount=10000,
        valid_from=now - timedelta(days=1),
        valid_to=now + timedelta(days=30),
    )


@pytest.fixture
def expired_coupon():
    now = datetime.now(UTC)
    return Coupon(
        code="OLDSALE",
        kind=CouponKind.PERCENTAGE,
        value=Decimal("20"),
        valid_from=now - timedelta(days=60),
        valid_to=now - timedelta(days=1),
    )
