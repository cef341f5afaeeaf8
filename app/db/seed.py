"""Database seeding helpers."""

import logging
from datetime import timedelta
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import get_password_hash
from app.models.coupon import Coupon
from app.models.menu import Addon, MenuItem, MenuItemAddon
from app.models.restaurant import Branch, Restaurant
from app.services.user_service import create_user, get_user_by_email
from app.utils.time import utc_now

logger = logging.getLogger(__name__)

DEMO_RESTAURANT_SLUG: str = "demo-burger-house"
DEMO_MENU: tuple[tuple[str, str, int], ...] = (
    ("Classic Burger", "Burgers", 1299),
    ("Veggie Burger", "Burgers", 1199),
    ("Fries", "Sides", 399),
    ("Cola", "Drinks", 249),
)
DEMO_ADDONS: tuple[tuple[str, int], ...] = (
    ("Extra Cheese", 150),
    ("Bacon", 200),
)


def ensure_admin_user(session: Session) -> None:
    """Ensure the configured super admin exists in development only."""
    if settings.app_env != "dev":
        return
    if not settings.admin_email or not settings.admin_password:
        return

    existing_user = get_user_by_email(db=session, email=settings.admin_email)
    if existing_user is not None:
        return

    try:
        hashed_password = get_password_hash(settings.admin_password)
    except ValueError as exc:
        logger.warning("[BOOTSTRAP] Skipping admin seed: %s", exc)
        return

    create_user(
        db=session,
        email=settings.admin_email,
        hashed_password=hashed_password,
        role="SUPER_ADMIN",
        name="Administrator",
    )
    logger.warning("[BOOTSTRAP] Super admin %s created from environment; rotate the password.", settings.admin_email)


def ensure_demo_data(session: Session) -> bool:
    """Create one demo restaurant with a menu and the launch coupons.

    Returns:
        bool: True when demo data was created by this call.
    """
    existing = session.scalar(select(Restaurant).where(Restaurant.slug == DEMO_RESTAURANT_SLUG).limit(1))
    if existing is not None:
        return False

    restaurant = Restaurant(name="Demo Burger House", slug=DEMO_RESTAURANT_SLUG, is_active=True)
    session.add(restaurant)
    session.flush()
    session.add(Branch(restaurant_id=restaurant.id, name="Downtown", address="1 Main Street", is_active=True))

    menu_items = [
        MenuItem(restaurant_id=restaurant.id, name=name, category=category, price_cents=price_cents, is_active=True)
        for name, category, price_cents in DEMO_MENU
    ]
    addons = [
        Addon(restaurant_id=restaurant.id, name=name, price_cents=price_cents, is_active=True)
        for name, price_cents in DEMO_ADDONS
    ]
    session.add_all([*menu_items, *addons])
    session.flush()
    for menu_item in menu_items:
        if menu_item.category == "Burgers":
            session.add_all(MenuItemAddon(menu_item_id=menu_item.id, addon_id=addon.id) for addon in addons)

    now = utc_now()
    session.add_all(
        [
            Coupon(
                restaurant_id=None,
                code="WELCOME10",
                discount_type="PERCENTAGE",
                discount_value=Decimal("10"),
                min_order_amount_cents=2000,
                max_discount_amount_cents=500,
                start_date=now,
                end_date=now + timedelta(days=365),
                is_active=True,
                usage_limit=100,
                usage_count=0,
            ),
            Coupon(
                restaurant_id=restaurant.id,
                code="SUMMER2023",
                discount_type="FIXED",
                discount_value=Decimal("500"),
                min_order_amount_cents=3000,
                start_date=now,
                end_date=now + timedelta(days=90),
                is_active=True,
                usage_limit=200,
                usage_count=0,
            ),
        ]
    )
    session.commit()
    logger.info("[BOOTSTRAP] Demo restaurant %s seeded", DEMO_RESTAURANT_SLUG)
    return True


def ensure_seed_data(session: Session) -> None:
    ensure_admin_user(session)
    if settings.seed_demo_data:
        ensure_demo_data(session)
