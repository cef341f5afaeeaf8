"""Request authorization context and capability checks.

Handlers receive an ``AuthContext`` instead of comparing role strings
themselves; every permission question goes through one of its methods.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.security import get_current_user
from app.db.session import get_db
from app.models.order import Order
from app.models.user import User
from app.services.user_service import get_administered_restaurant_ids, get_customer_for_user, get_managed_branch_ids

SUPER_ADMIN: str = "SUPER_ADMIN"
RESTAURANT_ADMIN: str = "RESTAURANT_ADMIN"
BRANCH_MANAGER: str = "BRANCH_MANAGER"
CUSTOMER: str = "CUSTOMER"


@dataclass(frozen=True)
class AuthContext:
    """Who is calling and what they administer."""

    user_id: int
    role: str
    email: str = ""
    restaurant_ids: frozenset[int] = field(default_factory=frozenset)
    branch_ids: frozenset[int] = field(default_factory=frozenset)
    customer_id: int | None = None

    @property
    def is_super_admin(self) -> bool:
        return self.role == SUPER_ADMIN

    @property
    def is_customer(self) -> bool:
        return self.role == CUSTOMER

    def can_edit(self, restaurant_id: int | None) -> bool:
        """Return whether the caller may change restaurant-owned configuration.

        ``None`` denotes the platform-global scope, which only super admins edit.
        """
        if self.is_super_admin:
            return True
        if restaurant_id is None:
            return False
        return self.role == RESTAURANT_ADMIN and restaurant_id in self.restaurant_ids

    def can_manage_branch(self, branch_id: int, restaurant_id: int) -> bool:
        if self.can_edit(restaurant_id):
            return True
        return self.role == BRANCH_MANAGER and branch_id in self.branch_ids

    def can_view_order(self, order: Order) -> bool:
        if self.customer_id is not None and order.customer_id == self.customer_id:
            return True
        return self.can_manage_branch(order.branch_id, order.branch.restaurant_id)

    def can_modify_cart(self, order: Order) -> bool:
        """Only the owning customer edits a cart."""
        return self.customer_id is not None and order.customer_id == self.customer_id


def build_auth_context(db: Session, user: User) -> AuthContext:
    """Load role scopes for ``user`` into an ``AuthContext``."""
    customer = get_customer_for_user(db, user) if user.role == CUSTOMER else None
    return AuthContext(
        user_id=user.id,
        role=user.role,
        email=user.email,
        restaurant_ids=frozenset(get_administered_restaurant_ids(db, user.id)) if user.role == RESTAURANT_ADMIN else frozenset(),
        branch_ids=frozenset(get_managed_branch_ids(db, user.id)) if user.role == BRANCH_MANAGER else frozenset(),
        customer_id=customer.id if customer is not None else None,
    )


def get_auth_context(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> AuthContext:
    """FastAPI dependency resolving the caller's ``AuthContext``."""
    return build_auth_context(db, current_user)


def require_super_admin(auth: AuthContext) -> None:
    if not auth.is_super_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


def require_customer(auth: AuthContext) -> int:
    """Return the caller's customer id or reject non-customers."""
    if auth.customer_id is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Customer profile required")
    return auth.customer_id
