"""Cart and checkout operations backed by the database.

This module is the persistence side of pricing: it loads rows, turns them
into pricing values, calls ``price_order`` and writes the outcome back.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.menu import Addon, MenuItem, MenuItemAddon
from app.models.order import Order, OrderItem
from app.models.restaurant import Branch
from app.models.user import Customer, User
from app.services.audit_service import log_action
from app.services.coupon_redemption import load_coupon_candidates, redeem_coupon
from app.services.fee_service import FulfillmentMode, parse_fulfillment_mode
from app.services.money import Money
from app.services.order_status import CART, PENDING, ensure_mutable, set_status
from app.services.pricing_errors import CouponRejected, InvalidQuantity
from app.services.pricing_service import AddonSelection, LineItem, OrderDraft, PricingResult, price_order
from app.services.settings_service import get_fee_policy

logger = logging.getLogger(__name__)

PAYMENT_METHODS: tuple[str, ...] = ("CARD", "CASH", "WALLET")


class OrderingError(Exception):
    """Raised when a cart change refers to something that cannot be ordered."""


def order_restaurant_id(order: Order) -> int:
    return order.branch.restaurant_id


def _validate_quantity(quantity: int) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantity(f"Quantity must be a positive integer, got {quantity!r}")
    return quantity


def line_items_from_rows(items: Iterable[OrderItem], currency: str) -> list[LineItem]:
    """Convert order item rows into pricing line items."""
    return [
        LineItem(
            menu_item_id=item.menu_item_id or 0,
            unit_price=Money.non_negative(item.unit_price_cents, currency, label=f"price of {item.name}"),
            quantity=item.quantity,
            addons=tuple(
                AddonSelection(
                    name=str(addon["name"]),
                    unit_price=Money.non_negative(int(addon["price_cents"]), currency, label=f"price of {addon['name']}"),
                )
                for addon in (item.addons or [])
            ),
        )
        for item in items
    ]


def build_draft(order: Order, coupon_code: str | None = None) -> OrderDraft:
    """Build the pricing input for ``order``; ``coupon_code`` overrides the stored coupon."""
    if coupon_code is None and order.coupon is not None:
        coupon_code = order.coupon.code
    return OrderDraft(
        order_id=order.id,
        line_items=line_items_from_rows(order.items, order.currency),
        fulfillment_mode=order.fulfillment_mode,
        coupon_code=coupon_code,
        restaurant_id=order_restaurant_id(order),
        status=order.status,
        currency=order.currency,
    )


def quote_order(db: Session, order: Order, *, now: datetime, coupon_code: str | None = None) -> PricingResult:
    """Price ``order`` with the restaurant's fee policy and current coupon rows."""
    draft = build_draft(order, coupon_code=coupon_code)
    policy = get_fee_policy(db, draft.restaurant_id)
    coupons = []
    if draft.coupon_code is not None:
        coupons = load_coupon_candidates(db, draft.coupon_code, draft.restaurant_id, draft.currency)
    return price_order(draft, policy=policy, now=now, coupons=coupons)


def create_cart(db: Session, *, customer: Customer, branch: Branch, fulfillment_mode: str | FulfillmentMode, currency: str) -> Order:
    """Open a new cart for ``customer`` at ``branch``."""
    if not branch.is_active or not branch.restaurant.is_active:
        raise OrderingError("Branch is not accepting orders")
    mode = parse_fulfillment_mode(fulfillment_mode)
    order = Order(
        customer_id=customer.id,
        branch_id=branch.id,
        status=CART,
        fulfillment_mode=mode.value,
        currency=currency,
    )
    db.add(order)
    db.commit()
    db.refresh(order)
    logger.info("[CART] Created order_id=%s customer_id=%s branch_id=%s", order.id, customer.id, branch.id)
    return order


def _load_addons(db: Session, menu_item: MenuItem, addon_ids: Sequence[int]) -> list[Addon]:
    if not addon_ids:
        return []
    unique_ids = list(dict.fromkeys(addon_ids))
    addons = db.scalars(
        select(Addon)
        .join(MenuItemAddon, MenuItemAddon.addon_id == Addon.id)
        .where(
            MenuItemAddon.menu_item_id == menu_item.id,
            Addon.id.in_(unique_ids),
            Addon.is_active.is_(True),
        )
    ).all()
    by_id = {addon.id: addon for addon in addons}
    missing = [addon_id for addon_id in unique_ids if addon_id not in by_id]
    if missing:
        raise OrderingError(f"Add-ons {missing} are not available for {menu_item.name}")
    return [by_id[addon_id] for addon_id in unique_ids]


def add_item(
    db: Session,
    order: Order,
    *,
    menu_item: MenuItem,
    quantity: int,
    addon_ids: Sequence[int] = (),
) -> OrderItem:
    """Add a menu item with add-ons, snapshotting current prices.

    Adding an item that is already in the cart with the same add-ons bumps
    its quantity instead of creating a second line.
    """
    ensure_mutable(order.status)
    _validate_quantity(quantity)
    if menu_item.restaurant_id != order_restaurant_id(order) or not menu_item.is_active:
        raise OrderingError(f"Menu item {menu_item.id} is not available")

    addons = _load_addons(db, menu_item, addon_ids)
    addon_payload = [{"addon_id": addon.id, "name": addon.name, "price_cents": addon.price_cents} for addon in addons]
    selected_ids = sorted(addon.id for addon in addons)

    for existing in order.items:
        existing_ids = sorted(int(addon["addon_id"]) for addon in (existing.addons or []))
        if existing.menu_item_id == menu_item.id and existing_ids == selected_ids and existing.unit_price_cents == menu_item.price_cents:
            existing.quantity += quantity
            db.commit()
            db.refresh(existing)
            return existing

    item = OrderItem(
        order_id=order.id,
        menu_item_id=menu_item.id,
        name=menu_item.name,
        unit_price_cents=menu_item.price_cents,
        quantity=quantity,
        addons=addon_payload,
    )
    # Fails fast on negative prices before the row is persisted.
    line_items_from_rows([item], order.currency)
    order.items.append(item)
    db.commit()
    db.refresh(item)
    return item


def update_item_quantity(db: Session, order: Order, item: OrderItem, quantity: int) -> OrderItem:
    ensure_mutable(order.status)
    item.quantity = _validate_quantity(quantity)
    db.commit()
    db.refresh(item)
    return item


def remove_item(db: Session, order: Order, item: OrderItem) -> None:
    ensure_mutable(order.status)
    order.items.remove(item)
    db.commit()


def set_fulfillment_mode(db: Session, order: Order, fulfillment_mode: str | FulfillmentMode) -> Order:
    ensure_mutable(order.status)
    order.fulfillment_mode = parse_fulfillment_mode(fulfillment_mode).value
    db.commit()
    db.refresh(order)
    return order


def apply_coupon_code(db: Session, order: Order, *, code: str, now: datetime) -> PricingResult:
    """Validate ``code`` against the cart and attach it when eligible."""
    ensure_mutable(order.status)
    try:
        pricing = quote_order(db, order, now=now, coupon_code=code)
    except CouponRejected as exc:
        logger.info("[COUPON] Rejected %s for order_id=%s: %s", code, order.id, exc.code)
        raise
    order.coupon_id = pricing.coupon.id if pricing.coupon is not None else None
    db.commit()
    db.refresh(order)
    logger.info("[COUPON] Applied %s to order_id=%s discount=%s", code, order.id, pricing.discount.amount)
    return pricing


def clear_coupon(db: Session, order: Order) -> Order:
    ensure_mutable(order.status)
    order.coupon_id = None
    db.commit()
    db.refresh(order)
    return order


def checkout_order(
    db: Session,
    order: Order,
    *,
    now: datetime,
    payment_method: str,
    actor: User | None = None,
) -> PricingResult:
    """Finalize the cart: price it, count the coupon use and freeze the totals.

    The coupon increment, the stored totals and the status change are
    committed together; a coupon exhausted by a concurrent checkout rolls the
    whole operation back.
    """
    ensure_mutable(order.status)
    method = str(payment_method or "").strip().upper()
    if method not in PAYMENT_METHODS:
        raise OrderingError(f"Unsupported payment method: {payment_method}")
    if not order.items:
        raise OrderingError("Cannot check out an empty cart")

    pricing = quote_order(db, order, now=now)
    try:
        if pricing.coupon is not None:
            redeem_coupon(db, pricing.coupon)

        order.subtotal_cents = pricing.subtotal.amount
        order.delivery_charge_cents = pricing.delivery_charge.amount
        order.processing_fee_cents = pricing.processing_fee.amount
        order.platform_fee_cents = pricing.platform_fee.amount
        order.discount_cents = pricing.discount.amount
        order.total_cents = pricing.grand_total.amount
        order.payment_method = method
        order.status = PENDING
        order.submitted_at = now
        order.status_updated_at = now
        log_action(
            db,
            actor=actor,
            action_type="ORDER_CHECKOUT",
            order_id=order.id,
            coupon_id=pricing.coupon.id if pricing.coupon is not None else None,
            before_snapshot={"status": CART},
            after_snapshot={"status": PENDING, "payment_method": method, **pricing.to_dict()},
        )
        db.commit()
    except CouponRejected:
        db.rollback()
        raise

    db.refresh(order)
    logger.info(
        "[CHECKOUT] order_id=%s total=%s discount=%s coupon=%s",
        order.id,
        pricing.grand_total.amount,
        pricing.discount.amount,
        pricing.coupon_code,
    )
    return pricing


def update_order_status(
    db: Session,
    order: Order,
    *,
    new_status: str,
    now: datetime,
    actor: User | None = None,
) -> Order:
    """Advance a submitted order along its tracking steps, or cancel it."""
    previous = order.status
    set_status(order, new_status, now)
    log_action(
        db,
        actor=actor,
        action_type="ORDER_STATUS_CHANGED",
        order_id=order.id,
        before_snapshot={"status": previous},
        after_snapshot={"status": order.status},
    )
    db.commit()
    db.refresh(order)
    logger.info("[ORDER] order_id=%s status %s -> %s", order.id, previous, order.status)
    return order
