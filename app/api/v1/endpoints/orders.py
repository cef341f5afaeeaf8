"""Cart, pricing, checkout and tracking endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.auth import AuthContext, get_auth_context, require_customer
from app.core.config import settings
from app.db.session import get_db
from app.models.menu import MenuItem
from app.models.order import Order, OrderItem
from app.models.restaurant import Branch
from app.models.user import Customer, User
from app.schemas.order import (
    CartCreate,
    CartItemAdd,
    CartItemUpdate,
    CheckoutRequest,
    CouponCodeRequest,
    FulfillmentUpdate,
    OrderItemResponse,
    OrderResponse,
    OrderStatusUpdate,
    PricingResponse,
    TrackingResponse,
)
from app.services.order_service import (
    OrderingError,
    add_item,
    apply_coupon_code,
    checkout_order,
    clear_coupon,
    create_cart,
    quote_order,
    remove_item,
    set_fulfillment_mode,
    update_item_quantity,
    update_order_status,
)
from app.services.order_status import CART, TRACKING_LABELS, tracking_timeline
from app.utils.time import utc_now

router: APIRouter = APIRouter()


def _get_order(db: Session, order_id: int, auth: AuthContext) -> Order:
    """Load an order visible to the caller, or raise 404."""
    order: Order | None = db.get(Order, order_id)
    if order is None or not auth.can_view_order(order):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return order


def _get_cart(db: Session, order_id: int, auth: AuthContext) -> Order:
    order = _get_order(db, order_id, auth)
    if not auth.can_modify_cart(order):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the customer can change this order")
    return order


def _get_item(order: Order, item_id: int) -> OrderItem:
    for item in order.items:
        if item.id == item_id:
            return item
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order item not found")


def _stored_totals(order: Order) -> PricingResponse | None:
    """Return the totals frozen at checkout, if any."""
    if order.total_cents is None:
        return None
    delivery = order.delivery_charge_cents or 0
    processing = order.processing_fee_cents or 0
    platform = order.platform_fee_cents or 0
    return PricingResponse(
        currency=order.currency,
        subtotal_cents=order.subtotal_cents or 0,
        delivery_charge_cents=delivery,
        processing_fee_cents=processing,
        platform_fee_cents=platform,
        fulfillment_charges_cents=delivery + processing + platform,
        discount_cents=order.discount_cents or 0,
        grand_total_cents=order.total_cents,
        coupon_code=order.coupon.code if order.coupon is not None else None,
    )


def _serialize_order(order: Order) -> OrderResponse:
    return OrderResponse(
        id=order.id,
        branch_id=order.branch_id,
        restaurant_id=order.branch.restaurant_id,
        status=order.status,
        fulfillment_mode=order.fulfillment_mode,
        currency=order.currency,
        coupon_code=order.coupon.code if order.coupon is not None else None,
        payment_method=order.payment_method,
        items=[OrderItemResponse.model_validate(item) for item in order.items],
        created_at=order.created_at,
        submitted_at=order.submitted_at,
        totals=_stored_totals(order),
    )


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def create_order(
    payload: CartCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
) -> OrderResponse:
    """Open a new cart for the current customer."""
    customer_id = require_customer(auth)
    branch: Branch | None = db.get(Branch, payload.branch_id)
    if branch is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Branch not found")
    customer: Customer = db.get(Customer, customer_id)
    try:
        order = create_cart(
            db,
            customer=customer,
            branch=branch,
            fulfillment_mode=payload.fulfillment_mode,
            currency=settings.currency,
        )
    except OrderingError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _serialize_order(order)


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
) -> OrderResponse:
    return _serialize_order(_get_order(db, order_id, auth))


@router.post("/{order_id}/items", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def add_order_item(
    order_id: int,
    payload: CartItemAdd,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
) -> OrderResponse:
    order = _get_cart(db, order_id, auth)
    menu_item: MenuItem | None = db.get(MenuItem, payload.menu_item_id)
    if menu_item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Menu item {payload.menu_item_id} not found")
    try:
        add_item(db, order, menu_item=menu_item, quantity=payload.quantity, addon_ids=payload.addon_ids)
    except OrderingError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    db.refresh(order)
    return _serialize_order(order)


@router.patch("/{order_id}/items/{item_id}", response_model=OrderResponse)
def update_order_item(
    order_id: int,
    item_id: int,
    payload: CartItemUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
) -> OrderResponse:
    order = _get_cart(db, order_id, auth)
    update_item_quantity(db, order, _get_item(order, item_id), payload.quantity)
    db.refresh(order)
    return _serialize_order(order)


@router.delete("/{order_id}/items/{item_id}", response_model=OrderResponse)
def delete_order_item(
    order_id: int,
    item_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
) -> OrderResponse:
    order = _get_cart(db, order_id, auth)
    remove_item(db, order, _get_item(order, item_id))
    db.refresh(order)
    return _serialize_order(order)


@router.put("/{order_id}/fulfillment", response_model=OrderResponse)
def update_fulfillment(
    order_id: int,
    payload: FulfillmentUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
) -> OrderResponse:
    order = _get_cart(db, order_id, auth)
    return _serialize_order(set_fulfillment_mode(db, order, payload.fulfillment_mode))


@router.put("/{order_id}/coupon", response_model=PricingResponse)
def apply_coupon(
    order_id: int,
    payload: CouponCodeRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
) -> PricingResponse:
    """Attach a coupon to the cart and return the new price breakdown."""
    order = _get_cart(db, order_id, auth)
    pricing = apply_coupon_code(db, order, code=payload.code.strip(), now=utc_now())
    return PricingResponse(**pricing.to_dict())


@router.delete("/{order_id}/coupon", response_model=OrderResponse)
def remove_coupon(
    order_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
) -> OrderResponse:
    order = _get_cart(db, order_id, auth)
    return _serialize_order(clear_coupon(db, order))


@router.get("/{order_id}/pricing", response_model=PricingResponse)
def get_pricing(
    order_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
) -> PricingResponse:
    """Return the live price breakdown of a cart, or the frozen one after checkout."""
    order = _get_order(db, order_id, auth)
    if order.status != CART:
        totals = _stored_totals(order)
        if totals is None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Order has no recorded totals")
        return totals
    return PricingResponse(**quote_order(db, order, now=utc_now()).to_dict())


@router.post("/{order_id}/checkout", response_model=OrderResponse)
def checkout(
    order_id: int,
    payload: CheckoutRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
) -> OrderResponse:
    """Submit the cart; totals are frozen and the coupon use is counted."""
    order = _get_cart(db, order_id, auth)
    actor: User | None = db.get(User, auth.user_id)
    try:
        checkout_order(db, order, now=utc_now(), payment_method=payload.payment_method, actor=actor)
    except OrderingError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _serialize_order(order)


@router.put("/{order_id}/status", response_model=OrderResponse)
def change_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
) -> OrderResponse:
    """Move a submitted order to its next status; branch staff and restaurant admins only."""
    order = _get_order(db, order_id, auth)
    if not auth.can_manage_branch(order.branch_id, order.branch.restaurant_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    actor: User | None = db.get(User, auth.user_id)
    update_order_status(db, order, new_status=payload.status, now=utc_now(), actor=actor)
    return _serialize_order(order)


@router.get("/{order_id}/track", response_model=TrackingResponse)
def track_order(
    order_id: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
) -> TrackingResponse:
    order = _get_order(db, order_id, auth)
    return TrackingResponse(
        order_id=order.id,
        status=order.status,
        label=TRACKING_LABELS.get(order.status, order.status),
        fulfillment_mode=order.fulfillment_mode,
        steps=tracking_timeline(order.status),
        totals=_stored_totals(order),
    )
