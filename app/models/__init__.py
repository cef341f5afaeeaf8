"""Application models package."""

from app.models.app_setting import AppSetting
from app.models.audit_log import AuditLog
from app.models.coupon import Coupon
from app.models.menu import Addon, MenuItem, MenuItemAddon
from app.models.order import Order, OrderItem
from app.models.restaurant import Branch, BranchManager, Restaurant, RestaurantAdmin
from app.models.restaurant_setting import RestaurantSetting
from app.models.user import Customer, User

__all__ = [
    "User", "Customer", "Restaurant", "Branch", "RestaurantAdmin", "BranchManager", "MenuItem", "Addon",
    "MenuItemAddon", "Coupon", "Order", "OrderItem", "AppSetting", "RestaurantSetting", "AuditLog",
]
