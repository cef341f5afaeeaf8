"""User and customer ORM models."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

USER_ROLES = ("SUPER_ADMIN", "RESTAURANT_ADMIN", "BRANCH_MANAGER", "CUSTOMER")
ROLE_ALIASES: dict[str, str] = {
    "SUPERADMIN": "SUPER_ADMIN",
    "ADMIN": "SUPER_ADMIN",
    "RESTAURANTADMIN": "RESTAURANT_ADMIN",
    "BRANCHMANAGER": "BRANCH_MANAGER",
}


def normalize_user_role(role: str | None) -> str:
    """Return the canonical role name, accepting legacy spellings."""
    normalized = str(role or "").strip().upper().replace("-", "_").replace(" ", "_")
    normalized = ROLE_ALIASES.get(normalized.replace("_", ""), normalized)
    if normalized not in USER_ROLES:
        raise ValueError(f"Unknown role: {role}")
    return normalized


class User(Base):
    """Account used for email/password login."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(Enum(*USER_ROLES, name="user_role"), nullable=False, default="CUSTOMER")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    customer_profile: Mapped["Customer | None"] = relationship(back_populates="user", uselist=False)
    restaurant_admin_links: Mapped[list["RestaurantAdmin"]] = relationship(back_populates="user")
    branch_manager_links: Mapped[list["BranchManager"]] = relationship(back_populates="user")


class Customer(Base):
    """Customer profile owning carts and orders."""

    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    user: Mapped["User | None"] = relationship(back_populates="customer_profile")
    orders: Mapped[list["Order"]] = relationship(back_populates="customer")
