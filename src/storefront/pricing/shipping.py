"""Shipping methods and the fixed rate table."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from storefront.config import StorefrontSettings


class ShippingMethod(Enum):
    STANDARD = "standard"
    EXPRESS = "express"
    OVERNIGHT = "overnight"


class ShippingRate(BaseModel):
    """Fee for one method: a base fee that free shipping can waive, plus a premium that it cannot."""

    model_config = ConfigDict(frozen=True)

    base_fee: int = Field(ge=0)
    premium: int = Field(default=0, ge=0)


class ShippingRateTable(BaseModel):
    model_config = ConfigDict(frozen=True)

    rates: dict[ShippingMethod, ShippingRate]
    free_shipping_threshold: int | None = Field(default=None, ge=0)

    @classmethod
    def from_settings(cls, settings: StorefrontSettings) -> "ShippingRateTable":
        base = settings.standard_shipping_fee
        return cls(
            rates={
                ShippingMethod.STANDARD: ShippingRate(base_fee=base),
                ShippingMethod.EXPRESS: ShippingRate(base_fee=base, premium=settings.express_shipping_premium),
                ShippingMethod.OVERNIGHT: ShippingRate(base_fee=base, premium=settings.overnight_shipping_premium),
            },
            free_shipping_threshold=settings.free_shipping_threshold,
        )

    def fee_for(self, method: ShippingMethod, net_subtotal: int) -> int:
        """Shipping fee given the post-discount subtotal."""
        rate = self.rates[method]
        qualifies_for_free = self.free_shipping_threshold is not None and net_subtotal >= self.free_shipping_threshold
        base = 0 if qualifies_for_free else rate.base_fee
        return base + rate.premium
