"""Service wiring — one set of collaborators per process.

Provides get_services() / set_services() / reset_services() the same way
the gateway and carrier factories do. The HTTP layer reads everything it
needs from here; tests replace the whole set in one call.
"""

from dataclasses import dataclass

from storefront.catalogue.memory_adapter import InMemoryCatalog
from storefront.catalogue.port import CatalogPort
from storefront.config import StorefrontSettings, get_settings
from storefront.fulfillment.carrier import get_carrier
from storefront.fulfillment.carrier.port import CarrierPort
from storefront.inventory.fake_adapter import FakeInventory
from storefront.inventory.port import InventoryPort
from storefront.notifications.channel.fake_adapter import FakeNotifier
from storefront.notifications.channel.port import NotificationPort
from storefront.ordering.checkout.dispatch import EffectDispatcher
from storefront.ordering.checkout.service import CheckoutService
from storefront.ordering.lifecycle import OrderLifecycleManager
from storefront.ordering.order.repository import InMemoryOrderRepository, OrderRepository
from storefront.payments.gateway import get_gateway
from storefront.payments.gateway.port import PaymentGateway
from storefront.pricing.coupon_store import CouponStorePort, InMemoryCouponStore
from storefront.pricing.engine import PricingEngine


@dataclass
class Services:
    settings: StorefrontSettings
    catalog: CatalogPort
    coupons: CouponStorePort
    repository: OrderRepository
    inventory: InventoryPort
    notifier: NotificationPort
    gateway: PaymentGateway
    carrier: CarrierPort
    engine: PricingEngine
    lifecycle: OrderLifecycleManager
    checkout: CheckoutService

    @classmethod
    def build(
        cls,
        settings: StorefrontSettings | None = None,
        *,
        catalog: CatalogPort | None = None,
        coupons: CouponStorePort | None = None,
        repository: OrderRepository | None = None,
        inventory: InventoryPort | None = None,
        notifier: NotificationPort | None = None,
        gateway: PaymentGateway | None = None,
        carrier: CarrierPort | None = None,
    ) -> "Services":
        """Wire the services, using in-memory adapters for anything not given."""
        settings = settings or get_settings()
        catalog = catalog or InMemoryCatalog()
        coupons = coupons or InMemoryCouponStore()
        repository = repository or InMemoryOrderRepository()
        inventory = inventory or FakeInventory()
        notifier = notifier or FakeNotifier()
        gateway = gateway or get_gateway()
        carrier = carrier or get_carrier()

        engine = PricingEngine.from_settings(settings)
        lifecycle = OrderLifecycleManager(repository, settings)
        dispatcher = EffectDispatcher(inventory, gateway, notifier)
        checkout = CheckoutService(engine, lifecycle, catalog, coupons, dispatcher, carrier)

        return cls(
            settings=settings,
            catalog=catalog,
            coupons=coupons,
            repository=repository,
            inventory=inventory,
            notifier=notifier,
            gateway=gateway,
            carrier=carrier,
            engine=engine,
            lifecycle=lifecycle,
            checkout=checkout,
        )


_current_services: Services | None = None


def get_services() -> Services:
    global _current_services
    if _current_services is None:
        _current_services = Services.build()
    return _current_services


def set_services(services: Services) -> None:
    global _current_services
    _current_services = services


def reset_services() -> None:
    """Drop the wired services (useful for testing)."""
    global _current_services
    _current_services = None
