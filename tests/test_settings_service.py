"""Fee settings resolution tests."""

from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from app.core.config import settings
from app.db.base import Base
from app.models import AppSetting, Restaurant
from app.services.pricing_errors import InvalidAmount
from app.services.settings_service import (
    default_fee_policy,
    get_fee_policy,
    save_deployment_fees,
    save_restaurant_fees,
)


def _build_test_engine(db_file: Path) -> Engine:
    return create_engine(
        f"sqlite:///{db_file}",
        connect_args={"check_same_thread": False},
    )


def _session_local(tmp_path: Path) -> sessionmaker:
    engine = _build_test_engine(tmp_path / "settings.db")
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def test_defaults_come_from_environment_settings(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(settings, "delivery_fee_cents", 450)
    session_local = _session_local(tmp_path)

    with session_local() as db:
        policy = get_fee_policy(db)

    assert policy.delivery_fee_cents == 450
    assert policy.processing_rate == settings.processing_rate
    assert policy == default_fee_policy()


def test_restaurant_override_beats_deployment_override(tmp_path: Path) -> None:
    session_local = _session_local(tmp_path)

    with session_local() as db:
        restaurant = Restaurant(name="Pizza Place", slug="pizza-place")
        db.add(restaurant)
        db.commit()
        save_deployment_fees(db, values={"delivery_fee_cents": 350, "platform_fee_cents": 100}, updated_by="admin@example.com")
        save_restaurant_fees(db, restaurant_id=restaurant.id, values={"delivery_fee_cents": 0, "processing_rate": Decimal("0.05")})

        restaurant_policy = get_fee_policy(db, restaurant.id)
        deployment_policy = get_fee_policy(db)

    assert restaurant_policy.delivery_fee_cents == 0
    assert restaurant_policy.processing_rate == Decimal("0.05")
    assert restaurant_policy.platform_fee_cents == 100
    assert deployment_policy.delivery_fee_cents == 350


def test_none_removes_deployment_override(tmp_path: Path) -> None:
    session_local = _session_local(tmp_path)

    with session_local() as db:
        save_deployment_fees(db, values={"platform_fee_cents": 50})
        policy = save_deployment_fees(db, values={"platform_fee_cents": None})
        remaining = db.query(AppSetting).count()

    assert policy.platform_fee_cents == settings.platform_fee_cents
    assert remaining == 0


def test_invalid_values_are_not_saved(tmp_path: Path) -> None:
    session_local = _session_local(tmp_path)

    with session_local() as db:
        with pytest.raises(InvalidAmount):
            save_deployment_fees(db, values={"delivery_fee_cents": -5})
        with pytest.raises(ValueError):
            save_deployment_fees(db, values={"tip_cents": 100})
        assert db.query(AppSetting).count() == 0


def test_unparseable_stored_value_falls_back_to_default(tmp_path: Path) -> None:
    session_local = _session_local(tmp_path)

    with session_local() as db:
        db.add(AppSetting(key="delivery_fee_cents", value="abc"))
        db.commit()
        policy = get_fee_policy(db)

    assert policy.delivery_fee_cents == settings.delivery_fee_cents
