"""Fee configuration lookup and persistence.

Resolution order for every fee value: restaurant override row, then the
deployment-wide ``app_settings`` row, then the environment default.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.app_setting import AppSetting
from app.models.restaurant_setting import RestaurantSetting
from app.services.fee_service import FeePolicy

logger = logging.getLogger(__name__)

DELIVERY_FEE_KEY: str = "delivery_fee_cents"
PROCESSING_RATE_KEY: str = "processing_rate"
PROCESSING_FIXED_FEE_KEY: str = "processing_fixed_fee_cents"
PLATFORM_FEE_KEY: str = "platform_fee_cents"
FEE_KEYS: tuple[str, ...] = (DELIVERY_FEE_KEY, PROCESSING_RATE_KEY, PROCESSING_FIXED_FEE_KEY, PLATFORM_FEE_KEY)


def default_fee_policy() -> FeePolicy:
    """Build the fee policy from environment configuration only."""
    return FeePolicy(
        delivery_fee_cents=settings.delivery_fee_cents,
        processing_rate=settings.processing_rate,
        processing_fixed_fee_cents=settings.processing_fixed_fee_cents,
        platform_fee_cents=settings.platform_fee_cents,
        currency=settings.currency,
    )


def _parse_int(key: str, value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        logger.warning("[SETTINGS] Ignoring non-integer app setting %s=%r", key, value)
        return None


def _parse_rate(key: str, value: str | None) -> Decimal | None:
    if value is None:
        return None
    try:
        return Decimal(value)
    except InvalidOperation:
        logger.warning("[SETTINGS] Ignoring non-decimal app setting %s=%r", key, value)
        return None


def get_deployment_fee_policy(db: Session) -> FeePolicy:
    """Return environment defaults with ``app_settings`` overrides applied."""
    rows: list[AppSetting] = db.query(AppSetting).filter(AppSetting.key.in_(FEE_KEYS)).all()
    values: dict[str, str] = {row.key: row.value for row in rows}
    return default_fee_policy().with_overrides(
        delivery_fee_cents=_parse_int(DELIVERY_FEE_KEY, values.get(DELIVERY_FEE_KEY)),
        processing_rate=_parse_rate(PROCESSING_RATE_KEY, values.get(PROCESSING_RATE_KEY)),
        processing_fixed_fee_cents=_parse_int(PROCESSING_FIXED_FEE_KEY, values.get(PROCESSING_FIXED_FEE_KEY)),
        platform_fee_cents=_parse_int(PLATFORM_FEE_KEY, values.get(PLATFORM_FEE_KEY)),
    )


def get_restaurant_setting(db: Session, restaurant_id: int) -> RestaurantSetting | None:
    return db.query(RestaurantSetting).filter(RestaurantSetting.restaurant_id == restaurant_id).first()


def get_fee_policy(db: Session, restaurant_id: int | None = None) -> FeePolicy:
    """Return the effective fee policy for a restaurant (or the deployment)."""
    policy = get_deployment_fee_policy(db)
    if restaurant_id is None:
        return policy

    override = get_restaurant_setting(db, restaurant_id)
    if override is None:
        return policy
    return policy.with_overrides(
        delivery_fee_cents=override.delivery_fee_cents,
        processing_rate=override.processing_rate,
        processing_fixed_fee_cents=override.processing_fixed_fee_cents,
        platform_fee_cents=override.platform_fee_cents,
    )


def save_deployment_fees(db: Session, *, values: dict[str, int | Decimal | None], updated_by: str | None = None) -> FeePolicy:
    """Persist deployment-wide fee overrides; ``None`` removes an override."""
    unknown = set(values) - set(FEE_KEYS)
    if unknown:
        raise ValueError(f"Unknown fee settings: {', '.join(sorted(unknown))}")

    # Raises InvalidAmount before anything is written.
    get_deployment_fee_policy(db).with_overrides(**{key: value for key, value in values.items() if value is not None})

    for key, value in values.items():
        setting: AppSetting | None = db.query(AppSetting).filter(AppSetting.key == key).first()
        if value is None:
            if setting is not None:
                db.delete(setting)
            continue
        if setting is None:
            setting = AppSetting(key=key, value=str(value), updated_by=updated_by)
            db.add(setting)
        else:
            setting.value = str(value)
            setting.updated_by = updated_by

    db.commit()
    logger.info("[SETTINGS] Deployment fee settings updated by %s: %s", updated_by or "system", sorted(values))
    return get_deployment_fee_policy(db)


def save_restaurant_fees(db: Session, *, restaurant_id: int, values: dict[str, int | Decimal | None]) -> RestaurantSetting:
    """Create or update the override row for one restaurant."""
    unknown = set(values) - set(FEE_KEYS)
    if unknown:
        raise ValueError(f"Unknown fee settings: {', '.join(sorted(unknown))}")

    get_deployment_fee_policy(db).with_overrides(**{key: value for key, value in values.items() if value is not None})

    setting = get_restaurant_setting(db, restaurant_id)
    if setting is None:
        setting = RestaurantSetting(restaurant_id=restaurant_id)
        db.add(setting)
    for key, value in values.items():
        setattr(setting, key, value)

    db.commit()
    db.refresh(setting)
    logger.info("[SETTINGS] Fee overrides updated for restaurant_id=%s: %s", restaurant_id, sorted(values))
    return setting
