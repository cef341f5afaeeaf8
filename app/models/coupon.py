"""Coupon ORM model."""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, DateTime, Enum, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

DISCOUNT_TYPES = ("PERCENTAGE", "FIXED")


class Coupon(Base):
    """Discount code owned by one restaurant, or platform-global when restaurant_id is NULL.

    ``discount_value`` is a percentage for PERCENTAGE coupons and minor units
    for FIXED coupons.
    """

    __tablename__ = "coupons"
    __table_args__ = (
        UniqueConstraint("restaurant_id", "code", name="uq_coupons_restaurant_code"),
        CheckConstraint("usage_count >= 0", name="ck_coupons_usage_count_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    restaurant_id: Mapped[int | None] = mapped_column(ForeignKey("restaurants.id"), nullable=True, index=True)
    code: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    discount_type: Mapped[str] = mapped_column(Enum(*DISCOUNT_TYPES, name="discount_type"), nullable=False)
    discount_value: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    min_order_amount_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_discount_amount_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    usage_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    restaurant: Mapped["Restaurant | None"] = relationship()
