"""Cart, pricing and tracking API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.services.order_status import normalize_status


class CartCreate(BaseModel):
    branch_id: int
    fulfillment_mode: str = "DELIVERY"


class CartItemAdd(BaseModel):
    menu_item_id: int
    quantity: int = 1
    addon_ids: list[int] = Field(default_factory=list)


class CartItemUpdate(BaseModel):
    quantity: int


class FulfillmentUpdate(BaseModel):
    fulfillment_mode: str


class CouponCodeRequest(BaseModel):
    code: str = Field(min_length=1)


class CheckoutRequest(BaseModel):
    payment_method: str = "CARD"


class OrderStatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def _known_status(cls, value: str) -> str:
        return normalize_status(value)


class AddonSnapshot(BaseModel):
    addon_id: int
    name: str
    price_cents: int


class OrderItemResponse(BaseModel):
    id: int
    menu_item_id: int | None
    name: str
    unit_price_cents: int
    quantity: int
    addons: list[AddonSnapshot]

    model_config = ConfigDict(from_attributes=True)


class PricingResponse(BaseModel):
    """Price breakdown; every amount is in minor units of ``currency``."""

    currency: str
    subtotal_cents: int
    delivery_charge_cents: int
    processing_fee_cents: int
    platform_fee_cents: int
    fulfillment_charges_cents: int
    discount_cents: int
    grand_total_cents: int
    coupon_code: str | None = None


class OrderResponse(BaseModel):
    id: int
    branch_id: int
    restaurant_id: int
    status: str
    fulfillment_mode: str
    currency: str
    coupon_code: str | None
    payment_method: str | None
    items: list[OrderItemResponse]
    created_at: datetime
    submitted_at: datetime | None
    totals: PricingResponse | None = None


class TrackingStep(BaseModel):
    status: str
    label: str
    completed: bool
    current: bool


class TrackingResponse(BaseModel):
    order_id: int
    status: str
    label: str
    fulfillment_mode: str
    steps: list[TrackingStep]
    totals: PricingResponse | None = None
