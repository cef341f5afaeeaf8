"""Fulfillment fee policy and calculation."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from app.services.money import DEFAULT_CURRENCY, Money, Rate, to_rate
from app.services.pricing_errors import InvalidAmount, InvalidFulfillmentMode

DEFAULT_DELIVERY_FEE_CENTS: int = 299
DEFAULT_PROCESSING_RATE: Decimal = Decimal("0.029")
DEFAULT_PROCESSING_FIXED_FEE_CENTS: int = 30
DEFAULT_PLATFORM_FEE_CENTS: int = 199


class FulfillmentMode(str, Enum):
    DELIVERY = "DELIVERY"
    PICKUP = "PICKUP"


def parse_fulfillment_mode(value: str | FulfillmentMode) -> FulfillmentMode:
    """Normalize user-provided fulfillment mode text."""
    if isinstance(value, FulfillmentMode):
        return value
    try:
        return FulfillmentMode(str(value or "").strip().upper())
    except ValueError as exc:
        raise InvalidFulfillmentMode(f"Unknown fulfillment mode: {value!r}") from exc


@dataclass(frozen=True)
class FeePolicy:
    """Named fee parameters; amounts are minor units of ``currency``."""

    delivery_fee_cents: int = DEFAULT_DELIVERY_FEE_CENTS
    processing_rate: Decimal = DEFAULT_PROCESSING_RATE
    processing_fixed_fee_cents: int = DEFAULT_PROCESSING_FIXED_FEE_CENTS
    platform_fee_cents: int = DEFAULT_PLATFORM_FEE_CENTS
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self) -> None:
        Money.non_negative(self.delivery_fee_cents, self.currency, label="delivery fee")
        Money.non_negative(self.processing_fixed_fee_cents, self.currency, label="processing fixed fee")
        Money.non_negative(self.platform_fee_cents, self.currency, label="platform fee")
        rate = to_rate(self.processing_rate)
        if rate < 0:
            raise InvalidAmount(f"processing rate must not be negative, got {rate}")
        object.__setattr__(self, "processing_rate", rate)

    def with_overrides(
        self,
        *,
        delivery_fee_cents: int | None = None,
        processing_rate: Rate | None = None,
        processing_fixed_fee_cents: int | None = None,
        platform_fee_cents: int | None = None,
    ) -> FeePolicy:
        """Return a copy with every non-None override applied."""
        return FeePolicy(
            delivery_fee_cents=self.delivery_fee_cents if delivery_fee_cents is None else delivery_fee_cents,
            processing_rate=self.processing_rate if processing_rate is None else to_rate(processing_rate),
            processing_fixed_fee_cents=(
                self.processing_fixed_fee_cents if processing_fixed_fee_cents is None else processing_fixed_fee_cents
            ),
            platform_fee_cents=self.platform_fee_cents if platform_fee_cents is None else platform_fee_cents,
            currency=self.currency,
        )


@dataclass(frozen=True)
class FeeBreakdown:
    delivery_charge: Money
    processing_fee: Money
    platform_fee: Money

    @property
    def total(self) -> Money:
        return self.delivery_charge + self.processing_fee + self.platform_fee


def calculate_fees(subtotal: Money, fulfillment_mode: str | FulfillmentMode, policy: FeePolicy) -> FeeBreakdown:
    """Compute delivery, processing and platform fees for a merchandise subtotal."""
    if subtotal.currency != policy.currency:
        raise InvalidAmount(f"Currency mismatch: subtotal {subtotal.currency} vs fee policy {policy.currency}")
    if subtotal.amount < 0:
        raise InvalidAmount(f"subtotal must not be negative, got {subtotal.amount}")

    mode = parse_fulfillment_mode(fulfillment_mode)
    currency = policy.currency
    if mode is FulfillmentMode.DELIVERY:
        delivery_charge = Money(policy.delivery_fee_cents, currency)
    else:
        delivery_charge = Money.zero(currency)

    processing_fee = subtotal.multiply_rate(policy.processing_rate) + Money(policy.processing_fixed_fee_cents, currency)
    return FeeBreakdown(
        delivery_charge=delivery_charge,
        processing_fee=processing_fee,
        platform_fee=Money(policy.platform_fee_cents, currency),
    )
