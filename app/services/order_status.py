"""Order status lookup table used by cart, checkout and tracking."""

from __future__ import annotations

from datetime import datetime

from app.models.order import Order
from app.services.pricing_errors import InvalidStatusTransition, OrderNotMutable

CART: str = "CART"
PENDING: str = "PENDING"
ACCEPTED: str = "ACCEPTED"
READY_FOR_PICKUP: str = "READY_FOR_PICKUP"
OUT_FOR_DELIVERY: str = "OUT_FOR_DELIVERY"
DELIVERED: str = "DELIVERED"
CANCELLED: str = "CANCELLED"

ORDER_STATUSES: list[str] = [
    CART,
    PENDING,
    ACCEPTED,
    READY_FOR_PICKUP,
    OUT_FOR_DELIVERY,
    DELIVERED,
    CANCELLED,
]

MUTABLE_STATUSES: frozenset[str] = frozenset({CART})

TRACKING_LABELS: dict[str, str] = {
    CART: "In Cart",
    PENDING: "Order Confirmed",
    ACCEPTED: "Preparing",
    READY_FOR_PICKUP: "Ready for Pickup",
    OUT_FOR_DELIVERY: "On the Way",
    DELIVERED: "Delivered",
    CANCELLED: "Cancelled",
}

# Steps shown on the tracking page; CART and CANCELLED are not part of the timeline.
TRACKING_STEPS: list[str] = [PENDING, ACCEPTED, READY_FOR_PICKUP, OUT_FOR_DELIVERY, DELIVERED]
FINAL_STATUSES: frozenset[str] = frozenset({DELIVERED, CANCELLED})


def normalize_status(value: str | None) -> str:
    normalized = str(value or "").strip().upper()
    if normalized not in ORDER_STATUSES:
        raise ValueError(f"Unknown order status: {value}")
    return normalized


def is_mutable(status: str) -> bool:
    """Return whether line items, coupon and fulfillment may still change."""
    return status in MUTABLE_STATUSES


def ensure_mutable(status: str) -> None:
    if not is_mutable(status):
        raise OrderNotMutable(status)


def tracking_timeline(status: str) -> list[dict[str, str | bool]]:
    """Return tracking steps with completion flags for the given status."""
    reached = TRACKING_STEPS.index(status) if status in TRACKING_STEPS else -1
    return [
        {"status": step, "label": TRACKING_LABELS[step], "completed": index <= reached, "current": index == reached}
        for index, step in enumerate(TRACKING_STEPS)
    ]


def can_transition(current: str, new_status: str) -> bool:
    """Return whether a submitted order may move from ``current`` to ``new_status``.

    Carts only leave CART through checkout, final statuses never change, and
    tracking steps only move forward. Any open order can be cancelled.
    """
    if current == CART or new_status == CART or current in FINAL_STATUSES:
        return False
    if new_status == CANCELLED:
        return True
    if current not in TRACKING_STEPS or new_status not in TRACKING_STEPS:
        return False
    return TRACKING_STEPS.index(new_status) > TRACKING_STEPS.index(current)


def set_status(order: Order, new_status: str, now: datetime) -> None:
    """Set status and update the status timestamp."""
    normalized = normalize_status(new_status)
    if not can_transition(order.status, normalized):
        raise InvalidStatusTransition(order.status, normalized)
    order.status = normalized
    order.status_updated_at = now
