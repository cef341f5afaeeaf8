"""Database seed behavior tests."""

from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from app.core.config import settings
from app.db.base import Base
from app.db.seed import DEMO_RESTAURANT_SLUG, ensure_admin_user, ensure_demo_data, ensure_seed_data
from app.models import Coupon, Customer, MenuItem, Restaurant, User


def _build_test_engine(db_file: Path) -> Engine:
    return create_engine(
        f"sqlite:///{db_file}",
        connect_args={"check_same_thread": False},
    )


def _session_local(db_file: Path) -> sessionmaker:
    engine = _build_test_engine(db_file)
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def test_ensure_admin_user_creates_user_in_dev(tmp_path: Path, monkeypatch) -> None:
    """Admin seed should create a super admin when environment is development."""
    testing_session_local = _session_local(tmp_path / "seed_dev.db")

    monkeypatch.setattr(settings, "app_env", "dev")
    monkeypatch.setattr(settings, "admin_email", "admin@local.dev")
    monkeypatch.setattr(settings, "admin_password", "Admin123!")

    hashed_password = "hashed-admin-password"
    monkeypatch.setattr("app.db.seed.get_password_hash", lambda _: hashed_password)

    with testing_session_local() as session:
        ensure_admin_user(session)
        ensure_admin_user(session)

    with testing_session_local() as session:
        users = session.query(User).filter(User.email == "admin@local.dev").all()
        assert len(users) == 1
        assert users[0].role == "SUPER_ADMIN"
        assert users[0].password_hash == hashed_password
        assert session.query(Customer).count() == 0


def test_ensure_admin_user_skips_creation_in_non_dev(tmp_path: Path, monkeypatch) -> None:
    """Admin seed should not create users when environment is not development."""
    testing_session_local = _session_local(tmp_path / "seed_prod.db")

    monkeypatch.setattr(settings, "app_env", "prod")
    monkeypatch.setattr(settings, "admin_email", "admin@local.dev")
    monkeypatch.setattr(settings, "admin_password", "Admin123!")

    with testing_session_local() as session:
        ensure_admin_user(session)

    with testing_session_local() as session:
        assert session.query(User).count() == 0


def test_demo_data_is_seeded_once(tmp_path: Path, monkeypatch) -> None:
    testing_session_local = _session_local(tmp_path / "seed_demo.db")
    monkeypatch.setattr(settings, "app_env", "prod")
    monkeypatch.setattr(settings, "seed_demo_data", True)

    with testing_session_local() as session:
        ensure_seed_data(session)
        assert ensure_demo_data(session) is False

    with testing_session_local() as session:
        restaurant = session.query(Restaurant).filter(Restaurant.slug == DEMO_RESTAURANT_SLUG).one()
        assert session.query(MenuItem).filter(MenuItem.restaurant_id == restaurant.id).count() == 4
        welcome = session.query(Coupon).filter(Coupon.code == "WELCOME10").one()
        assert welcome.restaurant_id is None
        assert welcome.max_discount_amount_cents == 500
        summer = session.query(Coupon).filter(Coupon.code == "SUMMER2023").one()
        assert summer.restaurant_id == restaurant.id
        assert summer.min_order_amount_cents == 3000
