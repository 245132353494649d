"""Coupon store port and its in-memory adapter."""

import threading
from abc import ABC, abstractmethod

from storefront.exceptions import CouponNotFoundError
from storefront.pricing.coupons import Coupon


class CouponStorePort(ABC):
    @abstractmethod
    def get_coupon(self, code: str) -> Coupon:
        """Return a snapshot of the coupon or raise CouponNotFoundError."""
        ...

    @abstractmethod
    def increment_usage(self, code: str) -> None:
        """Record one use. Called only after a checkout that used the coupon succeeds."""
        ...


class InMemoryCouponStore(CouponStorePort):
    def __init__(self, coupons: list[Coupon] | None = None) -> None:
        self._coupons: dict[str, Coupon] = {}
        self._lock = threading.Lock()
        for coupon in coupons or []:
            self.add(coupon)

    def add(self, coupon: Coupon) -> None:
        with self._lock:
            self._coupons[coupon.code.upper()] = coupon

    def get_coupon(self, code: str) -> Coupon:
        with self._lock:
            coupon = self._coupons.get(code.upper())
        if coupon is None:
            raise CouponNotFoundError(code)
        return coupon

    def increment_usage(self, code: str) -> None:
        with self._lock:
            coupon = self._coupons.get(code.upper())
            if coupon is None:
                raise CouponNotFoundError(code)
            self._coupons[code.upper()] = coupon.model_copy(update={"used_count": coupon.used_count + 1})
