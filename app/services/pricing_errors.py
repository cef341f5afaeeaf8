"""Structured errors raised by the pricing core.

Every error carries a category (``ErrorKind``) and a human-readable reason so
the HTTP layer can pick a status code without inspecting exception types.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from app.services.money import Money


class ErrorKind(str, Enum):
    INPUT_VALIDATION = "INPUT_VALIDATION"
    COUPON_REJECTED = "COUPON_REJECTED"
    STATE_VIOLATION = "STATE_VIOLATION"


class CouponRejectionReason(str, Enum):
    NOT_FOUND = "COUPON_NOT_FOUND"
    INACTIVE = "COUPON_INACTIVE"
    NOT_YET_VALID = "COUPON_NOT_YET_VALID"
    EXPIRED = "COUPON_EXPIRED"
    EXHAUSTED = "COUPON_EXHAUSTED"
    MINIMUM_NOT_MET = "COUPON_MINIMUM_NOT_MET"


class PricingError(Exception):
    """Base class for pricing failures reported back to the caller."""

    kind: ErrorKind = ErrorKind.INPUT_VALIDATION
    code: str = "PRICING_ERROR"

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "code": self.code, "reason": self.reason}


class InvalidAmount(PricingError):
    """Raised for negative, non-integer or mixed-currency money values."""

    kind = ErrorKind.INPUT_VALIDATION
    code = "INVALID_AMOUNT"


class InvalidQuantity(PricingError):
    """Raised when a line item quantity is not a positive integer."""

    kind = ErrorKind.INPUT_VALIDATION
    code = "INVALID_QUANTITY"


class InvalidFulfillmentMode(PricingError):
    """Raised for a fulfillment mode other than DELIVERY or PICKUP."""

    kind = ErrorKind.INPUT_VALIDATION
    code = "INVALID_FULFILLMENT_MODE"


class CouponRejected(PricingError):
    """Raised when a coupon fails one of the eligibility checks."""

    kind = ErrorKind.COUPON_REJECTED

    def __init__(
        self,
        reason_code: CouponRejectionReason,
        reason: str,
        *,
        coupon_code: str | None = None,
        shortfall: Money | None = None,
    ) -> None:
        super().__init__(reason)
        self.reason_code = reason_code
        self.code = reason_code.value
        self.coupon_code = coupon_code
        self.shortfall = shortfall

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["coupon_code"] = self.coupon_code
        if self.shortfall is not None:
            payload["shortfall_cents"] = self.shortfall.amount
            payload["currency"] = self.shortfall.currency
        return payload


class OrderNotMutable(PricingError):
    """Raised when pricing or cart edits are attempted on a submitted order."""

    kind = ErrorKind.STATE_VIOLATION
    code = "ORDER_NOT_MUTABLE"

    def __init__(self, status: str) -> None:
        super().__init__(f"Order in status {status} can no longer be changed.")
        self.status = status


class InvalidStatusTransition(PricingError):
    """Raised when an order status change skips checkout, goes backwards or leaves a final status."""

    kind = ErrorKind.STATE_VIOLATION
    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(f"Order in status {current} cannot move to {requested}.")
        self.current = current
        self.requested = requested
