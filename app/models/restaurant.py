"""Restaurant-related ORM models."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class Restaurant(Base):
    """Tenant restaurant on the platform."""

    __tablename__ = "restaurants"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(128), nullable=False, unique=True, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    branches: Mapped[list["Branch"]] = relationship(back_populates="restaurant")
    admin_links: Mapped[list["RestaurantAdmin"]] = relationship(back_populates="restaurant")


class Branch(Base):
    """Physical branch accepting orders for a restaurant."""

    __tablename__ = "branches"

    id: Mapped[int] = mapped_column(primary_key=True)
    restaurant_id: Mapped[int] = mapped_column(ForeignKey("restaurants.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    restaurant: Mapped[Restaurant] = relationship(back_populates="branches")
    manager_links: Mapped[list["BranchManager"]] = relationship(back_populates="branch")


class RestaurantAdmin(Base):
    """Grants a user administrative rights over one restaurant."""

    __tablename__ = "restaurant_admins"
    __table_args__ = (
        UniqueConstraint("user_id", "restaurant_id", name="uq_restaurant_admin"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    restaurant_id: Mapped[int] = mapped_column(ForeignKey("restaurants.id"), nullable=False)

    user: Mapped["User"] = relationship(back_populates="restaurant_admin_links")
    restaurant: Mapped[Restaurant] = relationship(back_populates="admin_links")


class BranchManager(Base):
    """Grants a user operational rights over one branch."""

    __tablename__ = "branch_managers"
    __table_args__ = (
        UniqueConstraint("user_id", "branch_id", name="uq_branch_manager"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    branch_id: Mapped[int] = mapped_column(ForeignKey("branches.id"), nullable=False)

    user: Mapped["User"] = relationship(back_populates="branch_manager_links")
    branch: Mapped[Branch] = relationship(back_populates="manager_links")
