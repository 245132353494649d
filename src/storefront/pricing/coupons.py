"""Coupons — immutable snapshots validated against a cart at pricing time."""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from storefront.exceptions import InvalidCouponError
from storefront.shared.money import Money, percent_of


class CouponKind(Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed"


class CouponRejection:
    """Reasons a coupon can be rejected, in the order they are checked."""

    NOT_YET_VALID = "not_yet_valid"
    EXPIRED = "expired"
    USAGE_LIMIT_REACHED = "usage_limit_reached"
    MINIMUM_ORDER_NOT_MET = "minimum_order_not_met"
    NOT_FOUND = "not_found"
    CODE_MISMATCH = "code_mismatch"


class Coupon(BaseModel):
    """A coupon as fetched from the coupon store.

    ``value`` is a percentage for PERCENTAGE coupons and paise for
    FIXED_AMOUNT coupons.
    """

    model_config = ConfigDict(frozen=True)

    code: str = Field(min_length=1)
    kind: CouponKind
    value: Decimal = Field(gt=0)
    min_order_amount: Money = 0
    max_discount: Money | None = None
    valid_from: datetime
    valid_to: datetime
    usage_limit: int | None = Field(default=None, ge=0)
    used_count: int = Field(default=0, ge=0)

    @field_validator("valid_from", "valid_to")
    @classmethod
    def naive_datetimes_are_utc(cls, value: datetime) -> datetime:
        return value if value.tzinfo else value.replace(tzinfo=UTC)

    @model_validator(mode="after")
    def validity_window_must_be_ordered(self):
        if self.valid_to < self.valid_from:
            raise ValueError("valid_to must not precede valid_from")
        if self.kind == CouponKind.PERCENTAGE and self.value > 100:
            raise ValueError("Percentage coupons cannot exceed 100")
        if self.kind == CouponKind.FIXED_AMOUNT and self.value != self.value.to_integral_value():
            raise ValueError("Fixed-amount coupons are expressed in whole minor units")
        return self

    def rejection_reason(self, subtotal: int, now: datetime) -> str | None:
        """Return the first failed check, or None when the coupon applies."""
        if now < self.valid_from:
            return CouponRejection.NOT_YET_VALID
        if now > self.valid_to:
            return CouponRejection.EXPIRED
        if self.usage_limit is not None and self.used_count >= self.usage_limit:
            return CouponRejection.USAGE_LIMIT_REACHED
        if subtotal < self.min_order_amount:
            return CouponRejection.MINIMUM_ORDER_NOT_MET
        return None

    def validate_for(self, subtotal: int, now: datetime) -> None:
        reason = self.rejection_reason(subtotal, now)
        if reason is not None:
            raise InvalidCouponError(reason, code=self.code)

    def discount_for(self, subtotal: int) -> int:
        """Discount in minor units. Never exceeds ``subtotal``."""
        if self.kind == CouponKind.PERCENTAGE:
            discount = percent_of(subtotal, self.value)
            if self.max_discount is not None:
                discount = min(discount, self.max_discount)
        else:
            discount = int(self.value)
        return max(0, min(discount, subtotal))
