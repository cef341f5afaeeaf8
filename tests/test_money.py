"""Money arithmetic and rounding tests."""

from decimal import Decimal

import pytest

from app.services.money import Money, to_rate
from app.services.pricing_errors import ErrorKind, InvalidAmount


def test_add_subtract_and_multiply_stay_in_minor_units() -> None:
    price = Money(1999)

    assert price + Money(1) == Money(2000)
    assert price - Money(999) == Money(1000)
    assert price * 3 == Money(5997)


def test_multiply_rate_rounds_half_up() -> None:
    assert Money(1999).multiply_rate(Decimal("0.029")) == Money(58)
    assert Money(50).multiply_rate("0.01") == Money(1)
    assert Money(150).multiply_rate("0.01") == Money(2)
    assert Money(149).multiply_rate("0.01") == Money(1)


def test_float_amounts_and_rates_are_refused() -> None:
    with pytest.raises(InvalidAmount):
        Money(19.99)  # type: ignore[arg-type]
    with pytest.raises(InvalidAmount):
        Money(100).multiply_rate(0.029)  # type: ignore[arg-type]
    with pytest.raises(InvalidAmount):
        to_rate("not-a-number")


def test_non_negative_rejects_negative_prices() -> None:
    with pytest.raises(InvalidAmount) as exc_info:
        Money.non_negative(-1, label="unit price")

    assert exc_info.value.kind is ErrorKind.INPUT_VALIDATION
    assert "unit price" in exc_info.value.reason


def test_currency_mismatch_is_an_error() -> None:
    with pytest.raises(InvalidAmount):
        Money(100, "USD") + Money(100, "EUR")
    with pytest.raises(InvalidAmount):
        Money(100, "USD") < Money(100, "EUR")


def test_comparisons_and_min() -> None:
    assert Money(500) < Money(800)
    assert Money(800) >= Money(800)
    assert Money(800).min(Money(1000)) == Money(800)
    assert Money(0).is_zero()


def test_format() -> None:
    assert Money(1999).format() == "$19.99"
    assert str(Money(-500)) == "-$5.00"
    assert Money(7, "CHF").format() == "0.07 CHF"
