"""Coupon management and preview endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.auth import AuthContext, get_auth_context
from app.core.config import settings
from app.db.session import get_db
from app.models.coupon import Coupon
from app.models.order import Order
from app.models.restaurant import Restaurant
from app.models.user import User
from app.schemas.coupon import CouponApplyRequest, CouponApplyResponse, CouponCreate, CouponRead, CouponUpdate
from app.services.audit_service import log_action
from app.services.coupon_redemption import code_exists, list_coupons, load_coupon_candidates
from app.services.coupon_service import calculate_discount, resolve_coupon
from app.services.money import Money
from app.services.order_status import CART
from app.services.pricing_errors import CouponRejected
from app.utils.time import utc_now

router: APIRouter = APIRouter()
logger = logging.getLogger(__name__)


def _coupon_snapshot(coupon: Coupon) -> dict[str, object]:
    return CouponRead.model_validate(coupon).model_dump(mode="json")


def _get_editable_coupon(db: Session, coupon_id: int, auth: AuthContext) -> Coupon:
    coupon: Coupon | None = db.get(Coupon, coupon_id)
    if coupon is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Coupon not found")
    if not auth.can_edit(coupon.restaurant_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return coupon


@router.get("", response_model=list[CouponRead])
def get_coupons(
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
) -> list[Coupon]:
    """List coupons the caller administers; restaurant admins also see global ones."""
    if auth.is_super_admin:
        return list_coupons(db)
    if not auth.restaurant_ids:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return list_coupons(db, restaurant_ids=set(auth.restaurant_ids))


@router.post("", response_model=CouponRead, status_code=status.HTTP_201_CREATED)
def create_coupon(
    payload: CouponCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
) -> Coupon:
    if not auth.can_edit(payload.restaurant_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    if payload.restaurant_id is not None and db.get(Restaurant, payload.restaurant_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Restaurant not found")
    code = payload.code.strip()
    if code_exists(db, code, payload.restaurant_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Coupon code {code} already exists")

    coupon = Coupon(**payload.model_dump(exclude={"code"}), code=code, usage_count=0)
    db.add(coupon)
    db.flush()
    log_action(
        db,
        actor=db.get(User, auth.user_id),
        action_type="COUPON_CREATED",
        coupon_id=coupon.id,
        after_snapshot=_coupon_snapshot(coupon),
    )
    db.commit()
    db.refresh(coupon)
    logger.info("[COUPON] Created coupon_id=%s code=%s restaurant_id=%s", coupon.id, coupon.code, coupon.restaurant_id)
    return coupon


@router.put("/{coupon_id}", response_model=CouponRead)
def update_coupon(
    coupon_id: int,
    payload: CouponUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
) -> Coupon:
    """Replace a coupon's terms; the owning restaurant and usage count are kept."""
    coupon = _get_editable_coupon(db, coupon_id, auth)
    code = payload.code.strip()
    if code_exists(db, code, coupon.restaurant_id, exclude_id=coupon.id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Coupon code {code} already exists")

    before = _coupon_snapshot(coupon)
    for field_name, value in payload.model_dump(exclude={"code"}).items():
        setattr(coupon, field_name, value)
    coupon.code = code
    db.flush()
    log_action(
        db,
        actor=db.get(User, auth.user_id),
        action_type="COUPON_UPDATED",
        coupon_id=coupon.id,
        before_snapshot=before,
        after_snapshot=_coupon_snapshot(coupon),
    )
    db.commit()
    db.refresh(coupon)
    return coupon


@router.delete("/{coupon_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_coupon(
    coupon_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
) -> None:
    coupon = _get_editable_coupon(db, coupon_id, auth)
    if coupon.usage_count > 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Coupon has been redeemed; deactivate it instead",
        )
    db.execute(update(Order).where(Order.coupon_id == coupon.id, Order.status == CART).values(coupon_id=None))
    log_action(
        db,
        actor=db.get(User, auth.user_id),
        action_type="COUPON_DELETED",
        before_snapshot=_coupon_snapshot(coupon),
    )
    db.delete(coupon)
    db.commit()
    logger.info("[COUPON] Deleted coupon_id=%s", coupon_id)


@router.post("/apply", response_model=CouponApplyResponse)
def apply_coupon(payload: CouponApplyRequest, db: Session = Depends(get_db)) -> CouponApplyResponse:
    """Preview a coupon against a subtotal without touching any order."""
    restaurant: Restaurant | None = db.scalar(select(Restaurant).where(Restaurant.slug == payload.restaurant_slug).limit(1))
    if restaurant is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Restaurant not found")

    code = payload.code.strip()
    subtotal = Money(payload.subtotal_cents, settings.currency)
    try:
        coupon = resolve_coupon(
            code,
            restaurant_id=restaurant.id,
            now=utc_now(),
            subtotal=subtotal,
            coupons=load_coupon_candidates(db, code, restaurant.id, settings.currency),
        )
    except CouponRejected as exc:
        return CouponApplyResponse(
            valid=False,
            code=code,
            subtotal_cents=subtotal.amount,
            discounted_subtotal_cents=subtotal.amount,
            error=exc.to_dict(),
        )

    discount = calculate_discount(coupon, subtotal)
    return CouponApplyResponse(
        valid=True,
        code=coupon.code,
        discount_type=coupon.discount_type.value,
        discount_cents=discount.amount,
        subtotal_cents=subtotal.amount,
        discounted_subtotal_cents=(subtotal - discount).amount,
    )
