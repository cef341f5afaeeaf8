"""Coupon eligibility checks and discount computation.

Both functions are pure: coupon rows are loaded by the caller and handed in as
``CouponSnapshot`` values, and the current time is always an argument.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from app.services.money import Money
from app.services.pricing_errors import CouponRejected, CouponRejectionReason, InvalidAmount
from app.utils.time import as_utc

logger = logging.getLogger(__name__)

PERCENT_DIVISOR: Decimal = Decimal(100)


class DiscountType(str, Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED = "FIXED"


@dataclass(frozen=True)
class CouponSnapshot:
    """Read-only view of a coupon row at pricing time.

    ``discount_value`` is a percentage for PERCENTAGE coupons and a whole
    number of minor units for FIXED coupons.
    """

    code: str
    discount_type: DiscountType
    discount_value: Decimal
    start_date: datetime
    end_date: datetime
    restaurant_id: int | None = None
    is_active: bool = True
    min_order_amount: Money | None = None
    max_discount_amount: Money | None = None
    usage_limit: int | None = None
    usage_count: int = 0
    id: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "discount_type", DiscountType(self.discount_type))
        object.__setattr__(self, "discount_value", Decimal(self.discount_value))
        object.__setattr__(self, "start_date", as_utc(self.start_date))
        object.__setattr__(self, "end_date", as_utc(self.end_date))
        if self.discount_value < 0:
            raise InvalidAmount(f"Coupon {self.code} has a negative discount value")
        if self.discount_type is DiscountType.PERCENTAGE and self.discount_value > PERCENT_DIVISOR:
            raise InvalidAmount(f"Coupon {self.code} percentage exceeds 100")
        if self.discount_type is DiscountType.FIXED and self.discount_value != self.discount_value.to_integral_value():
            raise InvalidAmount(f"Coupon {self.code} fixed value must be a whole number of minor units")

    @property
    def is_global(self) -> bool:
        return self.restaurant_id is None


def find_coupon(code: str, restaurant_id: int | None, coupons: Iterable[CouponSnapshot]) -> CouponSnapshot | None:
    """Return the coupon matching ``code`` exactly within the restaurant scope.

    A coupon owned by the restaurant takes precedence over a platform-global
    coupon carrying the same code.
    """
    global_match: CouponSnapshot | None = None
    for coupon in coupons:
        if coupon.code != code:
            continue
        if coupon.restaurant_id is not None and coupon.restaurant_id == restaurant_id:
            return coupon
        if coupon.restaurant_id is None and global_match is None:
            global_match = coupon
    return global_match


def resolve_coupon(
    code: str,
    *,
    restaurant_id: int | None,
    now: datetime,
    subtotal: Money,
    coupons: Iterable[CouponSnapshot],
) -> CouponSnapshot:
    """Validate a coupon code, raising ``CouponRejected`` on the first failed check."""
    coupon = find_coupon(code, restaurant_id, coupons)
    if coupon is None:
        raise CouponRejected(
            CouponRejectionReason.NOT_FOUND,
            f"Coupon {code} does not exist for this restaurant.",
            coupon_code=code,
        )

    if not coupon.is_active:
        raise CouponRejected(CouponRejectionReason.INACTIVE, f"Coupon {code} is not active.", coupon_code=code)

    moment = as_utc(now)
    if moment < coupon.start_date:
        raise CouponRejected(
            CouponRejectionReason.NOT_YET_VALID,
            f"Coupon {code} is valid from {coupon.start_date.isoformat()}.",
            coupon_code=code,
        )
    if moment > coupon.end_date:
        raise CouponRejected(
            CouponRejectionReason.EXPIRED,
            f"Coupon {code} expired on {coupon.end_date.isoformat()}.",
            coupon_code=code,
        )

    if coupon.usage_limit is not None and coupon.usage_count >= coupon.usage_limit:
        raise CouponRejected(
            CouponRejectionReason.EXHAUSTED,
            f"Coupon {code} has reached its usage limit.",
            coupon_code=code,
        )

    if coupon.min_order_amount is not None and subtotal < coupon.min_order_amount:
        shortfall = coupon.min_order_amount - subtotal
        raise CouponRejected(
            CouponRejectionReason.MINIMUM_NOT_MET,
            f"Add {shortfall.format()} more to use coupon {code} "
            f"(minimum order {coupon.min_order_amount.format()}).",
            coupon_code=code,
            shortfall=shortfall,
        )

    logger.debug("[COUPON] %s accepted for restaurant_id=%s subtotal=%s", code, restaurant_id, subtotal.amount)
    return coupon


def calculate_discount(coupon: CouponSnapshot, subtotal: Money) -> Money:
    """Convert an eligible coupon into a discount bounded by ``[0, subtotal]``."""
    if subtotal.amount <= 0:
        return Money.zero(subtotal.currency)

    if coupon.discount_type is DiscountType.PERCENTAGE:
        discount = subtotal.multiply_rate(coupon.discount_value / PERCENT_DIVISOR)
        if coupon.max_discount_amount is not None:
            discount = discount.min(coupon.max_discount_amount)
    else:
        discount = Money(int(coupon.discount_value), subtotal.currency)

    return discount.min(subtotal)
