"""Fee settings schemas."""

from decimal import Decimal

from pydantic import BaseModel, Field


class FeeSettingsUpdate(BaseModel):
    """Fee overrides; omitted or null fields fall back to the next level."""

    restaurant_id: int | None = None
    delivery_fee_cents: int | None = Field(default=None, ge=0)
    processing_rate: Decimal | None = Field(default=None, ge=0, le=1)
    processing_fixed_fee_cents: int | None = Field(default=None, ge=0)
    platform_fee_cents: int | None = Field(default=None, ge=0)


class FeeSettingsResponse(BaseModel):
    restaurant_id: int | None
    currency: str
    delivery_fee_cents: int
    processing_rate: Decimal
    processing_fixed_fee_cents: int
    platform_fee_cents: int
