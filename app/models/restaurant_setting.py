"""Per-restaurant fee overrides."""

from decimal import Decimal

from sqlalchemy import ForeignKey, Integer, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class RestaurantSetting(Base):
    """One row per restaurant; NULL columns fall back to deployment settings."""

    __tablename__ = "restaurant_settings"

    id: Mapped[int] = mapped_column(primary_key=True)
    restaurant_id: Mapped[int] = mapped_column(ForeignKey("restaurants.id"), nullable=False, unique=True)
    delivery_fee_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    processing_rate: Mapped[Decimal | None] = mapped_column(Numeric(6, 4), nullable=True)
    processing_fixed_fee_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    platform_fee_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
