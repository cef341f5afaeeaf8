"""Pricing orchestrator tests."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.services.coupon_service import CouponSnapshot, DiscountType
from app.services.fee_service import FeePolicy, FulfillmentMode
from app.services.money import Money
from app.services.order_status import PENDING
from app.services.pricing_errors import CouponRejected, CouponRejectionReason, InvalidAmount, InvalidQuantity, OrderNotMutable
from app.services.pricing_service import AddonSelection, LineItem, OrderDraft, aggregate_subtotal, price_order

NOW = datetime(2026, 6, 15, 12, 0, 0, tzinfo=timezone.utc)
POLICY = FeePolicy()


def _coupon(**overrides) -> CouponSnapshot:
    values = {
        "id": 1,
        "code": "WELCOME10",
        "restaurant_id": None,
        "discount_type": DiscountType.PERCENTAGE,
        "discount_value": Decimal("10"),
        "max_discount_amount": Money(500),
        "start_date": NOW - timedelta(days=1),
        "end_date": NOW + timedelta(days=1),
    }
    values.update(overrides)
    return CouponSnapshot(**values)


def _draft(subtotal_cents: int, mode: str = "PICKUP", coupon_code: str | None = None, **kwargs) -> OrderDraft:
    return OrderDraft(
        line_items=[LineItem(menu_item_id=1, unit_price=Money(subtotal_cents), quantity=1)],
        fulfillment_mode=mode,
        coupon_code=coupon_code,
        restaurant_id=3,
        **kwargs,
    )


def test_pickup_without_coupon() -> None:
    result = price_order(_draft(1999), policy=POLICY, now=NOW)

    assert result.subtotal == Money(1999)
    assert result.delivery_charge == Money(0)
    assert result.processing_fee == Money(88)
    assert result.platform_fee == Money(199)
    assert result.discount == Money(0)
    assert result.grand_total == Money(2286)
    assert result.coupon_code is None


def test_percentage_coupon_capped_at_max_discount() -> None:
    result = price_order(_draft(5000, coupon_code="WELCOME10"), policy=POLICY, now=NOW, coupons=[_coupon()])

    assert result.discount == Money(500)
    assert result.coupon_code == "WELCOME10"
    assert result.grand_total == result.subtotal + result.fulfillment_charges - Money(500)


def test_fixed_coupon_larger_than_subtotal_leaves_only_fees() -> None:
    coupon = _coupon(code="BIG", discount_type=DiscountType.FIXED, discount_value=Decimal("1000"), max_discount_amount=None)

    result = price_order(_draft(800, mode="DELIVERY", coupon_code="BIG"), policy=POLICY, now=NOW, coupons=[coupon])

    assert result.discount == Money(800)
    assert result.grand_total == result.fulfillment_charges
    assert result.grand_total.amount > 0


def test_fees_are_never_discounted() -> None:
    without = price_order(_draft(3000, mode="DELIVERY"), policy=POLICY, now=NOW)
    coupon = _coupon(max_discount_amount=None, discount_value=Decimal("100"))

    result = price_order(_draft(3000, mode="DELIVERY", coupon_code="WELCOME10"), policy=POLICY, now=NOW, coupons=[coupon])

    assert result.discount == Money(3000)
    assert result.fulfillment_charges == without.fulfillment_charges
    assert result.grand_total == without.fulfillment_charges


def test_exhausted_coupon_fails_pricing() -> None:
    coupon = _coupon(usage_limit=3, usage_count=3)

    with pytest.raises(CouponRejected) as exc_info:
        price_order(_draft(5000, coupon_code="WELCOME10"), policy=POLICY, now=NOW, coupons=[coupon])

    assert exc_info.value.reason_code is CouponRejectionReason.EXHAUSTED


def test_minimum_not_met_fails_pricing_with_shortfall() -> None:
    coupon = _coupon(min_order_amount=Money(2000))

    with pytest.raises(CouponRejected) as exc_info:
        price_order(_draft(1500, coupon_code="WELCOME10"), policy=POLICY, now=NOW, coupons=[coupon])

    assert exc_info.value.reason_code is CouponRejectionReason.MINIMUM_NOT_MET
    assert exc_info.value.shortfall == Money(500)


def test_pricing_is_idempotent() -> None:
    draft = _draft(4321, mode="DELIVERY", coupon_code="WELCOME10")
    coupons = [_coupon()]

    first = price_order(draft, policy=POLICY, now=NOW, coupons=coupons)
    second = price_order(draft, policy=POLICY, now=NOW, coupons=coupons)

    assert first == second
    assert first.to_dict() == second.to_dict()


def test_submitted_order_cannot_be_priced() -> None:
    with pytest.raises(OrderNotMutable):
        price_order(_draft(1000, status=PENDING), policy=POLICY, now=NOW)


def test_empty_cart_prices_to_fees_only() -> None:
    draft = OrderDraft(line_items=[], fulfillment_mode=FulfillmentMode.PICKUP)

    result = price_order(draft, policy=POLICY, now=NOW)

    assert result.subtotal == Money(0)
    assert result.grand_total == Money(30 + 199)


def test_subtotal_aggregates_addons_and_quantities_exactly() -> None:
    items = [
        LineItem(
            menu_item_id=1,
            unit_price=Money(1299),
            quantity=2,
            addons=(AddonSelection("Extra Cheese", Money(150)), AddonSelection("Bacon", Money(200))),
        ),
        LineItem(menu_item_id=2, unit_price=Money(399), quantity=3),
    ]

    assert aggregate_subtotal(items) == Money((1299 + 150 + 200) * 2 + 399 * 3)


def test_ten_thousand_single_cents_sum_without_drift() -> None:
    items = [LineItem(menu_item_id=index, unit_price=Money(1), quantity=1) for index in range(10_000)]

    assert aggregate_subtotal(items) == Money(10_000)


def test_line_item_validation() -> None:
    with pytest.raises(InvalidQuantity):
        LineItem(menu_item_id=1, unit_price=Money(100), quantity=0)
    with pytest.raises(InvalidAmount):
        LineItem(menu_item_id=1, unit_price=Money(-100), quantity=1)


def test_grand_total_is_never_negative() -> None:
    coupon = _coupon(code="ALL", discount_type=DiscountType.FIXED, discount_value=Decimal("100000"), max_discount_amount=None)
    for subtotal in (0, 1, 99, 800, 5000):
        draft = OrderDraft(
            line_items=[LineItem(menu_item_id=1, unit_price=Money(subtotal), quantity=1)],
            fulfillment_mode="PICKUP",
            coupon_code="ALL",
        )
        result = price_order(draft, policy=FeePolicy(processing_fixed_fee_cents=0, platform_fee_cents=0), now=NOW, coupons=[coupon])
        assert result.grand_total.amount >= 0
