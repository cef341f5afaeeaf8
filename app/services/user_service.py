"""User service operations."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.restaurant import BranchManager, RestaurantAdmin
from app.models.user import Customer, User, normalize_user_role


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.scalar(select(User).where(User.email == email.strip().lower()).limit(1))


def get_user_by_id(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def create_user(
    db: Session,
    email: str,
    hashed_password: str,
    role: str,
    name: str | None = None,
) -> User:
    """Create a user; customers also get a customer profile."""
    canonical_role = normalize_user_role(role)
    user = User(
        email=email.strip().lower(),
        name=name,
        password_hash=hashed_password,
        role=canonical_role,
        is_active=True,
    )
    db.add(user)
    db.flush()

    if canonical_role == "CUSTOMER":
        db.add(Customer(user_id=user.id, name=name or user.email.split("@")[0], is_active=True))

    db.commit()
    db.refresh(user)
    return user


def get_customer_for_user(db: Session, user: User) -> Customer | None:
    return db.scalar(select(Customer).where(Customer.user_id == user.id).limit(1))


def get_administered_restaurant_ids(db: Session, user_id: int) -> set[int]:
    return set(db.scalars(select(RestaurantAdmin.restaurant_id).where(RestaurantAdmin.user_id == user_id)).all())


def get_managed_branch_ids(db: Session, user_id: int) -> set[int]:
    return set(db.scalars(select(BranchManager.branch_id).where(BranchManager.user_id == user_id)).all())
