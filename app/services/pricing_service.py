"""Order pricing: line-item aggregation and the pricing orchestrator.

Every surface that shows or charges a total (cart, checkout and the
operator console) goes through ``price_order``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from app.services.coupon_service import CouponSnapshot, calculate_discount, resolve_coupon
from app.services.fee_service import FeeBreakdown, FeePolicy, FulfillmentMode, calculate_fees, parse_fulfillment_mode
from app.services.money import DEFAULT_CURRENCY, Money
from app.services.order_status import CART, ensure_mutable
from app.services.pricing_errors import InvalidAmount, InvalidQuantity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AddonSelection:
    name: str
    unit_price: Money

    def __post_init__(self) -> None:
        if self.unit_price.amount < 0:
            raise InvalidAmount(f"Add-on {self.name} price must not be negative")


@dataclass(frozen=True)
class LineItem:
    """Menu item snapshot with its chosen add-ons and quantity."""

    menu_item_id: int
    unit_price: Money
    quantity: int
    addons: tuple[AddonSelection, ...] = ()

    def __post_init__(self) -> None:
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int) or self.quantity <= 0:
            raise InvalidQuantity(f"Quantity for menu item {self.menu_item_id} must be a positive integer, got {self.quantity!r}")
        if self.unit_price.amount < 0:
            raise InvalidAmount(f"Unit price for menu item {self.menu_item_id} must not be negative")
        object.__setattr__(self, "addons", tuple(self.addons))
        for addon in self.addons:
            if addon.unit_price.currency != self.unit_price.currency:
                raise InvalidAmount(f"Add-on {addon.name} currency differs from menu item {self.menu_item_id}")

    @property
    def unit_total(self) -> Money:
        total = self.unit_price
        for addon in self.addons:
            total = total + addon.unit_price
        return total

    @property
    def line_total(self) -> Money:
        return self.unit_total * self.quantity


def aggregate_subtotal(line_items: Iterable[LineItem], currency: str = DEFAULT_CURRENCY) -> Money:
    """Sum ``(unit price + add-ons) * quantity`` over all line items."""
    subtotal = Money.zero(currency)
    for item in line_items:
        subtotal = subtotal + item.line_total
    return subtotal


@dataclass(frozen=True)
class OrderDraft:
    """Everything the orchestrator needs to know about an order."""

    line_items: Sequence[LineItem]
    fulfillment_mode: FulfillmentMode | str
    coupon_code: str | None = None
    restaurant_id: int | None = None
    status: str = CART
    currency: str = DEFAULT_CURRENCY
    order_id: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "line_items", tuple(self.line_items))
        object.__setattr__(self, "fulfillment_mode", parse_fulfillment_mode(self.fulfillment_mode))
        if self.coupon_code is not None and not self.coupon_code.strip():
            object.__setattr__(self, "coupon_code", None)


@dataclass(frozen=True)
class PricingResult:
    subtotal: Money
    delivery_charge: Money
    processing_fee: Money
    platform_fee: Money
    discount: Money
    grand_total: Money
    coupon_code: str | None = None
    coupon: CouponSnapshot | None = field(default=None, compare=False, repr=False)

    @property
    def fulfillment_charges(self) -> Money:
        return self.delivery_charge + self.processing_fee + self.platform_fee

    @property
    def currency(self) -> str:
        return self.grand_total.currency

    def to_dict(self) -> dict[str, Any]:
        return {
            "currency": self.currency,
            "subtotal_cents": self.subtotal.amount,
            "delivery_charge_cents": self.delivery_charge.amount,
            "processing_fee_cents": self.processing_fee.amount,
            "platform_fee_cents": self.platform_fee.amount,
            "fulfillment_charges_cents": self.fulfillment_charges.amount,
            "discount_cents": self.discount.amount,
            "grand_total_cents": self.grand_total.amount,
            "coupon_code": self.coupon_code,
        }


def price_order(
    order: OrderDraft,
    *,
    policy: FeePolicy,
    now: datetime,
    coupons: Iterable[CouponSnapshot] = (),
) -> PricingResult:
    """Price a mutable order.

    Steps: subtotal from line items, fees from subtotal and fulfillment mode,
    discount from the coupon (merchandise only, never fees), then the grand
    total. Raises ``OrderNotMutable`` for submitted orders and
    ``CouponRejected`` when the order's coupon no longer qualifies.
    """
    ensure_mutable(order.status)
    if policy.currency != order.currency:
        raise InvalidAmount(f"Currency mismatch: order {order.currency} vs fee policy {policy.currency}")

    subtotal = aggregate_subtotal(order.line_items, order.currency)
    fees: FeeBreakdown = calculate_fees(subtotal, order.fulfillment_mode, policy)

    discount = Money.zero(order.currency)
    coupon: CouponSnapshot | None = None
    if order.coupon_code is not None:
        coupon = resolve_coupon(
            order.coupon_code,
            restaurant_id=order.restaurant_id,
            now=now,
            subtotal=subtotal,
            coupons=coupons,
        )
        discount = calculate_discount(coupon, subtotal)

    grand_total = subtotal + fees.total - discount
    logger.debug(
        "[PRICING] order_id=%s subtotal=%s fees=%s discount=%s total=%s",
        order.order_id,
        subtotal.amount,
        fees.total.amount,
        discount.amount,
        grand_total.amount,
    )
    return PricingResult(
        subtotal=subtotal,
        delivery_charge=fees.delivery_charge,
        processing_fee=fees.processing_fee,
        platform_fee=fees.platform_fee,
        discount=discount,
        grand_total=grand_total,
        coupon_code=coupon.code if coupon is not None else None,
        coupon=coupon,
    )
