"""Coupon API schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.utils.time import as_utc


class CouponBase(BaseModel):
    """Shared coupon fields; FIXED values are minor units, PERCENTAGE values are percent."""

    code: str = Field(min_length=1, max_length=64)
    discount_type: Literal["PERCENTAGE", "FIXED"]
    discount_value: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    min_order_amount_cents: int | None = Field(default=None, ge=0)
    max_discount_amount_cents: int | None = Field(default=None, ge=0)
    start_date: datetime
    end_date: datetime
    is_active: bool = True
    usage_limit: int | None = Field(default=None, ge=0)

    @field_validator("start_date", "end_date")
    @classmethod
    def _normalize_to_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @model_validator(mode="after")
    def _check_consistency(self) -> "CouponBase":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        if self.discount_type == "PERCENTAGE" and self.discount_value > 100:
            raise ValueError("percentage discount must not exceed 100")
        if self.discount_type == "FIXED" and self.discount_value != self.discount_value.to_integral_value():
            raise ValueError("fixed discount_value is a whole number of minor units")
        if self.discount_type == "FIXED" and self.max_discount_amount_cents is not None:
            raise ValueError("max_discount_amount_cents applies to PERCENTAGE coupons only")
        return self


class CouponCreate(CouponBase):
    restaurant_id: int | None = None


class CouponUpdate(CouponBase):
    pass


class CouponRead(CouponCreate):
    id: int
    usage_count: int

    model_config = ConfigDict(from_attributes=True)


class CouponApplyRequest(BaseModel):
    """Preview a coupon against a merchandise subtotal."""

    code: str = Field(min_length=1)
    restaurant_slug: str
    subtotal_cents: int = Field(ge=0)


class CouponApplyResponse(BaseModel):
    valid: bool
    code: str
    discount_type: str | None = None
    discount_cents: int = 0
    subtotal_cents: int
    discounted_subtotal_cents: int
    error: dict | None = None
