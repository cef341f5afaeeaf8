"""Fee configuration endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.auth import AuthContext, get_auth_context
from app.db.session import get_db
from app.models.restaurant import Restaurant
from app.schemas.settings import FeeSettingsResponse, FeeSettingsUpdate
from app.services.fee_service import FeePolicy
from app.services.settings_service import get_fee_policy, save_deployment_fees, save_restaurant_fees

router: APIRouter = APIRouter()


def _serialize_policy(policy: FeePolicy, restaurant_id: int | None) -> FeeSettingsResponse:
    return FeeSettingsResponse(
        restaurant_id=restaurant_id,
        currency=policy.currency,
        delivery_fee_cents=policy.delivery_fee_cents,
        processing_rate=policy.processing_rate,
        processing_fixed_fee_cents=policy.processing_fixed_fee_cents,
        platform_fee_cents=policy.platform_fee_cents,
    )


def _check_scope(db: Session, auth: AuthContext, restaurant_id: int | None) -> None:
    if restaurant_id is not None and db.get(Restaurant, restaurant_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Restaurant not found")
    if not auth.can_edit(restaurant_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


@router.get("/fees", response_model=FeeSettingsResponse)
def get_fees(
    restaurant_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
) -> FeeSettingsResponse:
    """Return the effective fee policy for a restaurant, or the deployment default."""
    _check_scope(db, auth, restaurant_id)
    return _serialize_policy(get_fee_policy(db, restaurant_id), restaurant_id)


@router.put("/fees", response_model=FeeSettingsResponse)
def update_fees(
    payload: FeeSettingsUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
) -> FeeSettingsResponse:
    _check_scope(db, auth, payload.restaurant_id)
    values = payload.model_dump(exclude={"restaurant_id"}, exclude_unset=True)
    if payload.restaurant_id is None:
        save_deployment_fees(db, values=values, updated_by=auth.email)
    else:
        save_restaurant_fees(db, restaurant_id=payload.restaurant_id, values=values)
    return _serialize_policy(get_fee_policy(db, payload.restaurant_id), payload.restaurant_id)
