"""Integer minor-unit money type used by every pricing computation."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from app.services.pricing_errors import InvalidAmount

DEFAULT_CURRENCY: str = "USD"
CURRENCY_SYMBOLS: dict[str, str] = {"USD": "$", "EUR": "€", "GBP": "£", "PLN": "zł"}

Rate = Decimal | int | str


def to_rate(value: Rate) -> Decimal:
    """Convert a configured rate to ``Decimal``; floats are refused."""
    if isinstance(value, bool) or isinstance(value, float):
        raise InvalidAmount(f"Rate must be a Decimal, int or decimal string, got {value!r}")
    try:
        rate = Decimal(value)
    except (InvalidOperation, TypeError) as exc:
        raise InvalidAmount(f"Invalid rate {value!r}") from exc
    if not rate.is_finite():
        raise InvalidAmount(f"Invalid rate {value!r}")
    return rate


@dataclass(frozen=True, order=False)
class Money:
    """Amount of money as an integer count of minor units (cents)."""

    amount: int
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self) -> None:
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise InvalidAmount(f"Money amount must be an integer count of minor units, got {self.amount!r}")
        if not self.currency:
            raise InvalidAmount("Money requires a currency code")

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> Money:
        return cls(0, currency)

    @classmethod
    def non_negative(cls, amount: int, currency: str = DEFAULT_CURRENCY, *, label: str = "amount") -> Money:
        """Build money for values that may never be negative (prices, fees)."""
        money = cls(amount, currency)
        if money.amount < 0:
            raise InvalidAmount(f"{label} must not be negative, got {amount}")
        return money

    def _check_currency(self, other: Money) -> None:
        if not isinstance(other, Money):
            raise InvalidAmount(f"Expected Money, got {type(other).__name__}")
        if other.currency != self.currency:
            raise InvalidAmount(f"Currency mismatch: {self.currency} vs {other.currency}")

    def add(self, other: Money) -> Money:
        self._check_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def subtract(self, other: Money) -> Money:
        self._check_currency(other)
        return Money(self.amount - other.amount, self.currency)

    def multiply(self, quantity: int) -> Money:
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise InvalidAmount(f"Quantity multiplier must be an integer, got {quantity!r}")
        return Money(self.amount * quantity, self.currency)

    def multiply_rate(self, rate: Rate) -> Money:
        """Multiply by a rational rate and round half-up to a whole minor unit."""
        product = Decimal(self.amount) * to_rate(rate)
        return Money(int(product.quantize(Decimal(1), rounding=ROUND_HALF_UP)), self.currency)

    def min(self, other: Money) -> Money:
        self._check_currency(other)
        return self if self.amount <= other.amount else other

    def is_zero(self) -> bool:
        return self.amount == 0

    def format(self) -> str:
        symbol = CURRENCY_SYMBOLS.get(self.currency)
        sign = "-" if self.amount < 0 else ""
        units, cents = divmod(abs(self.amount), 100)
        if symbol is None:
            return f"{sign}{units}.{cents:02d} {self.currency}"
        return f"{sign}{symbol}{units}.{cents:02d}"

    __add__ = add
    __sub__ = subtract

    def __mul__(self, quantity: int) -> Money:
        return self.multiply(quantity)

    def __lt__(self, other: Money) -> bool:
        self._check_currency(other)
        return self.amount < other.amount

    def __le__(self, other: Money) -> bool:
        self._check_currency(other)
        return self.amount <= other.amount

    def __gt__(self, other: Money) -> bool:
        self._check_currency(other)
        return self.amount > other.amount

    def __ge__(self, other: Money) -> bool:
        self._check_currency(other)
        return self.amount >= other.amount

    def __str__(self) -> str:
        return self.format()
