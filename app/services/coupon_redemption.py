"""Coupon persistence helpers: loading snapshots and atomic usage increments."""

from __future__ import annotations

import logging

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session

from app.models.coupon import Coupon
from app.services.coupon_service import CouponSnapshot, DiscountType
from app.services.money import Money
from app.services.pricing_errors import CouponRejected, CouponRejectionReason

logger = logging.getLogger(__name__)


def snapshot_from_row(coupon: Coupon, currency: str) -> CouponSnapshot:
    """Convert a coupon row into the read-only value used by pricing."""
    return CouponSnapshot(
        id=coupon.id,
        code=coupon.code,
        restaurant_id=coupon.restaurant_id,
        discount_type=DiscountType(coupon.discount_type),
        discount_value=coupon.discount_value,
        min_order_amount=(
            Money(coupon.min_order_amount_cents, currency) if coupon.min_order_amount_cents is not None else None
        ),
        max_discount_amount=(
            Money(coupon.max_discount_amount_cents, currency) if coupon.max_discount_amount_cents is not None else None
        ),
        is_active=coupon.is_active,
        start_date=coupon.start_date,
        end_date=coupon.end_date,
        usage_limit=coupon.usage_limit,
        usage_count=coupon.usage_count,
    )


def load_coupon_candidates(db: Session, code: str, restaurant_id: int | None, currency: str) -> list[CouponSnapshot]:
    """Load restaurant-scoped and platform-global coupons carrying ``code``."""
    scope_filter = Coupon.restaurant_id.is_(None)
    if restaurant_id is not None:
        scope_filter = or_(Coupon.restaurant_id == restaurant_id, Coupon.restaurant_id.is_(None))
    rows = db.scalars(select(Coupon).where(Coupon.code == code, scope_filter).order_by(Coupon.id.asc())).all()
    return [snapshot_from_row(row, currency) for row in rows]


def redeem_coupon(db: Session, coupon: CouponSnapshot) -> None:
    """Count one use of ``coupon`` with a single conditional UPDATE.

    The limit check and the increment happen in the same statement, so two
    concurrent checkouts can never push ``usage_count`` past ``usage_limit``.
    The caller owns the transaction.
    """
    result = db.execute(
        update(Coupon)
        .where(
            Coupon.id == coupon.id,
            or_(Coupon.usage_limit.is_(None), Coupon.usage_count < Coupon.usage_limit),
        )
        .values(usage_count=Coupon.usage_count + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.warning("[COUPON] Redemption refused for coupon_id=%s code=%s: usage limit reached", coupon.id, coupon.code)
        raise CouponRejected(
            CouponRejectionReason.EXHAUSTED,
            f"Coupon {coupon.code} has reached its usage limit.",
            coupon_code=coupon.code,
        )
    logger.info("[COUPON] Redeemed coupon_id=%s code=%s", coupon.id, coupon.code)


def list_coupons(db: Session, restaurant_ids: set[int] | None = None, include_global: bool = True) -> list[Coupon]:
    """List coupons, optionally restricted to a set of restaurants."""
    query = select(Coupon)
    if restaurant_ids is not None:
        conditions = [Coupon.restaurant_id.in_(restaurant_ids)]
        if include_global:
            conditions.append(Coupon.restaurant_id.is_(None))
        query = query.where(or_(*conditions))
    return list(db.scalars(query.order_by(Coupon.restaurant_id.asc(), Coupon.code.asc())).all())


def code_exists(db: Session, code: str, restaurant_id: int | None, exclude_id: int | None = None) -> bool:
    """Return whether ``code`` is already used within the same restaurant scope."""
    if restaurant_id is None:
        query = select(Coupon.id).where(Coupon.code == code, Coupon.restaurant_id.is_(None))
    else:
        query = select(Coupon.id).where(Coupon.code == code, Coupon.restaurant_id == restaurant_id)
    if exclude_id is not None:
        query = query.where(Coupon.id != exclude_id)
    return db.scalar(query.limit(1)) is not None
