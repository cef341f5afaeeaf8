"""API v1 router composition."""

from fastapi import APIRouter

from app.api.v1.endpoints import auth, coupons, menu, orders, settings

api_router: APIRouter = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(menu.router, prefix="/menu", tags=["menu"])
api_router.include_router(coupons.router, prefix="/coupons", tags=["coupons"])
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(settings.router, prefix="/settings", tags=["settings"])
