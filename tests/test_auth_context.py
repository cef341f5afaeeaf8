"""Authorization context capability tests."""

from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.auth import AuthContext, build_auth_context
from app.db.base import Base
from app.models import Branch, BranchManager, Customer, Order, Restaurant, RestaurantAdmin, User


def _build_session_local(tmp_path: Path) -> sessionmaker:
    engine = create_engine(f"sqlite:///{tmp_path / 'auth_context.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def test_super_admin_can_edit_everything_including_global_scope() -> None:
    context = AuthContext(user_id=1, role="SUPER_ADMIN")

    assert context.can_edit(None)
    assert context.can_edit(42)
    assert context.can_manage_branch(5, 42)


def test_restaurant_admin_is_limited_to_own_restaurants() -> None:
    context = AuthContext(user_id=2, role="RESTAURANT_ADMIN", restaurant_ids=frozenset({1}))

    assert context.can_edit(1)
    assert not context.can_edit(2)
    assert not context.can_edit(None)


def test_customer_cannot_edit_configuration() -> None:
    context = AuthContext(user_id=3, role="CUSTOMER", customer_id=9)

    assert not context.can_edit(1)
    assert not context.can_edit(None)
    assert context.is_customer


def test_build_auth_context_loads_scopes(tmp_path: Path) -> None:
    session_local = _build_session_local(tmp_path)

    with session_local() as db:
        restaurant = Restaurant(name="Noodle Bar", slug="noodle-bar")
        db.add(restaurant)
        db.flush()
        branch = Branch(restaurant_id=restaurant.id, name="Harbor")
        other_branch = Branch(restaurant_id=restaurant.id, name="Station")
        admin = User(email="owner@noodle.test", password_hash="x", role="RESTAURANT_ADMIN")
        manager = User(email="manager@noodle.test", password_hash="x", role="BRANCH_MANAGER")
        customer_user = User(email="eater@noodle.test", password_hash="x", role="CUSTOMER")
        db.add_all([branch, other_branch, admin, manager, customer_user])
        db.flush()
        customer = Customer(user_id=customer_user.id, name="Eater")
        db.add_all(
            [
                customer,
                RestaurantAdmin(user_id=admin.id, restaurant_id=restaurant.id),
                BranchManager(user_id=manager.id, branch_id=branch.id),
            ]
        )
        db.flush()
        order = Order(customer_id=customer.id, branch_id=other_branch.id, status="CART")
        db.add(order)
        db.commit()

        admin_context = build_auth_context(db, admin)
        manager_context = build_auth_context(db, manager)
        customer_context = build_auth_context(db, customer_user)

        assert admin_context.restaurant_ids == frozenset({restaurant.id})
        assert admin_context.can_view_order(order)
        assert not admin_context.can_modify_cart(order)

        assert manager_context.branch_ids == frozenset({branch.id})
        assert manager_context.can_manage_branch(branch.id, restaurant.id)
        assert not manager_context.can_view_order(order)

        assert customer_context.customer_id == customer.id
        assert customer_context.can_view_order(order)
        assert customer_context.can_modify_cart(order)
