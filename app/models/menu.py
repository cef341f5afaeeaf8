"""Menu ORM models."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class MenuItem(Base):
    """Dish offered by a restaurant; price is stored in minor units."""

    __tablename__ = "menu_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    restaurant_id: Mapped[int] = mapped_column(ForeignKey("restaurants.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(String(64), nullable=True)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    addon_links: Mapped[list["MenuItemAddon"]] = relationship(back_populates="menu_item", cascade="all, delete-orphan")


class Addon(Base):
    """Optional extra (cheese, sauce...) that can be attached to menu items."""

    __tablename__ = "addons"

    id: Mapped[int] = mapped_column(primary_key=True)
    restaurant_id: Mapped[int] = mapped_column(ForeignKey("restaurants.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    menu_item_links: Mapped[list["MenuItemAddon"]] = relationship(back_populates="addon")


class MenuItemAddon(Base):
    """Add-on allowed for a given menu item."""

    __tablename__ = "menu_item_addons"
    __table_args__ = (
        UniqueConstraint("menu_item_id", "addon_id", name="uq_menu_item_addon"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    menu_item_id: Mapped[int] = mapped_column(ForeignKey("menu_items.id"), nullable=False)
    addon_id: Mapped[int] = mapped_column(ForeignKey("addons.id"), nullable=False)

    menu_item: Mapped[MenuItem] = relationship(back_populates="addon_links")
    addon: Mapped[Addon] = relationship(back_populates="menu_item_links")
