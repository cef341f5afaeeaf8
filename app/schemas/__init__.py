"""Schema exports."""

from app.schemas.auth import AuthUserResponse, LoginRequest, RegisterRequest, TokenResponse
from app.schemas.coupon import CouponApplyRequest, CouponApplyResponse, CouponCreate, CouponRead, CouponUpdate
from app.schemas.menu import AddonCreate, AddonRead, MenuItemCreate, MenuItemRead
from app.schemas.order import (
    CartCreate,
    CartItemAdd,
    CartItemUpdate,
    CheckoutRequest,
    CouponCodeRequest,
    FulfillmentUpdate,
    OrderItemResponse,
    OrderResponse,
    PricingResponse,
    TrackingResponse,
)
from app.schemas.settings import FeeSettingsResponse, FeeSettingsUpdate

__all__ = [
    "AuthUserResponse",
    "LoginRequest",
    "RegisterRequest",
    "TokenResponse",
    "CouponApplyRequest",
    "CouponApplyResponse",
    "CouponCreate",
    "CouponRead",
    "CouponUpdate",
    "AddonCreate",
    "AddonRead",
    "MenuItemCreate",
    "MenuItemRead",
    "CartCreate",
    "CartItemAdd",
    "CartItemUpdate",
    "CheckoutRequest",
    "CouponCodeRequest",
    "FulfillmentUpdate",
    "OrderItemResponse",
    "OrderResponse",
    "PricingResponse",
    "TrackingResponse",
    "FeeSettingsResponse",
    "FeeSettingsUpdate",
]
