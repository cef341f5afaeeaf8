"""Atomic coupon usage increment tests."""

from datetime import timedelta
from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from app.db.base import Base
from app.models import Coupon, Restaurant
from app.services.coupon_redemption import code_exists, list_coupons, load_coupon_candidates, redeem_coupon, snapshot_from_row
from app.services.money import Money
from app.services.pricing_errors import CouponRejected, CouponRejectionReason
from app.utils.time import utc_now


def _build_test_engine(db_file: Path) -> Engine:
    return create_engine(
        f"sqlite:///{db_file}",
        connect_args={"check_same_thread": False},
    )


def _seed(tmp_path: Path) -> tuple[sessionmaker, int]:
    engine = _build_test_engine(tmp_path / "redemption.db")
    Base.metadata.create_all(bind=engine)
    session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    now = utc_now()
    with session_local() as db:
        restaurant = Restaurant(name="Taco Stand", slug="taco-stand")
        db.add(restaurant)
        db.flush()
        db.add_all(
            [
                Coupon(
                    restaurant_id=restaurant.id,
                    code="TACO5",
                    discount_type="FIXED",
                    discount_value=Decimal("500"),
                    min_order_amount_cents=3000,
                    start_date=now - timedelta(days=1),
                    end_date=now + timedelta(days=1),
                    usage_limit=2,
                    usage_count=0,
                ),
                Coupon(
                    restaurant_id=None,
                    code="TACO5",
                    discount_type="PERCENTAGE",
                    discount_value=Decimal("10"),
                    start_date=now - timedelta(days=1),
                    end_date=now + timedelta(days=1),
                ),
            ]
        )
        db.commit()
        return session_local, restaurant.id


def test_snapshot_converts_cents_to_money(tmp_path: Path) -> None:
    session_local, restaurant_id = _seed(tmp_path)

    with session_local() as db:
        candidates = load_coupon_candidates(db, "TACO5", restaurant_id, "USD")

    assert len(candidates) == 2
    local = next(candidate for candidate in candidates if candidate.restaurant_id == restaurant_id)
    assert local.min_order_amount == Money(3000)
    assert local.discount_value == Decimal("500")
    assert local.start_date.tzinfo is not None


def test_redeem_stops_at_usage_limit(tmp_path: Path) -> None:
    session_local, restaurant_id = _seed(tmp_path)

    with session_local() as db:
        row = db.query(Coupon).filter(Coupon.restaurant_id == restaurant_id).one()
        snapshot = snapshot_from_row(row, "USD")
        redeem_coupon(db, snapshot)
        redeem_coupon(db, snapshot)
        db.commit()

        with pytest.raises(CouponRejected) as exc_info:
            redeem_coupon(db, snapshot)
        db.rollback()

        db.refresh(row)
        assert row.usage_count == 2

    assert exc_info.value.reason_code is CouponRejectionReason.EXHAUSTED


def test_stale_snapshot_cannot_overshoot_limit(tmp_path: Path) -> None:
    session_local, restaurant_id = _seed(tmp_path)

    with session_local() as db:
        row = db.query(Coupon).filter(Coupon.restaurant_id == restaurant_id).one()
        stale = snapshot_from_row(row, "USD")

    with session_local() as other:
        other.query(Coupon).filter(Coupon.id == stale.id).update({"usage_count": 2})
        other.commit()

    with session_local() as db:
        with pytest.raises(CouponRejected):
            redeem_coupon(db, stale)
        db.rollback()
        assert db.get(Coupon, stale.id).usage_count == 2


def test_unlimited_coupon_keeps_counting(tmp_path: Path) -> None:
    session_local, _ = _seed(tmp_path)

    with session_local() as db:
        row = db.query(Coupon).filter(Coupon.restaurant_id.is_(None)).one()
        snapshot = snapshot_from_row(row, "USD")
        for _ in range(5):
            redeem_coupon(db, snapshot)
        db.commit()
        db.refresh(row)
        assert row.usage_count == 5


def test_code_uniqueness_is_per_scope(tmp_path: Path) -> None:
    session_local, restaurant_id = _seed(tmp_path)

    with session_local() as db:
        assert code_exists(db, "TACO5", restaurant_id)
        assert code_exists(db, "TACO5", None)
        assert not code_exists(db, "TACO5", restaurant_id + 1)
        own = db.query(Coupon).filter(Coupon.restaurant_id == restaurant_id).one()
        assert not code_exists(db, "TACO5", restaurant_id, exclude_id=own.id)

        assert len(list_coupons(db, restaurant_ids={restaurant_id}, include_global=False)) == 1
        assert len(list_coupons(db, restaurant_ids={restaurant_id})) == 2
