"""Fulfillment fee tests."""

from decimal import Decimal

import pytest

from app.services.fee_service import FeePolicy, FulfillmentMode, calculate_fees, parse_fulfillment_mode
from app.services.money import Money
from app.services.pricing_errors import InvalidAmount, InvalidFulfillmentMode


def test_pickup_order_has_no_delivery_charge() -> None:
    fees = calculate_fees(Money(1999), FulfillmentMode.PICKUP, FeePolicy())

    assert fees.delivery_charge == Money(0)
    assert fees.processing_fee == Money(88)
    assert fees.platform_fee == Money(199)
    assert fees.total == Money(287)


def test_delivery_order_adds_delivery_fee() -> None:
    fees = calculate_fees(Money(5000), "delivery", FeePolicy())

    assert fees.delivery_charge == Money(299)
    # 5000 * 0.029 = 145, plus the 30 cent fixed part.
    assert fees.processing_fee == Money(175)
    assert fees.total == Money(299 + 175 + 199)


def test_empty_cart_still_pays_fixed_fees() -> None:
    fees = calculate_fees(Money(0), FulfillmentMode.PICKUP, FeePolicy())

    assert fees.processing_fee == Money(30)
    assert fees.platform_fee == Money(199)


def test_policy_overrides_keep_unset_values() -> None:
    policy = FeePolicy().with_overrides(delivery_fee_cents=0, processing_rate="0.05")

    assert policy.delivery_fee_cents == 0
    assert policy.processing_rate == Decimal("0.05")
    assert policy.platform_fee_cents == 199


def test_policy_rejects_negative_values() -> None:
    with pytest.raises(InvalidAmount):
        FeePolicy(delivery_fee_cents=-1)
    with pytest.raises(InvalidAmount):
        FeePolicy(processing_rate=Decimal("-0.01"))


def test_unknown_fulfillment_mode() -> None:
    assert parse_fulfillment_mode(" pickup ") is FulfillmentMode.PICKUP
    with pytest.raises(InvalidFulfillmentMode):
        parse_fulfillment_mode("DRONE")
