"""FastAPI entrypoint for the restaurant ordering API."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.v1.api import api_router
from app.core.config import settings
from app.db.base import Base
from app.db.seed import ensure_seed_data
from app.db.session import SessionLocal, engine
from app.services.pricing_errors import ErrorKind, PricingError

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.COUPON_REJECTED: 400,
    ErrorKind.INPUT_VALIDATION: 422,
    ErrorKind.STATE_VIOLATION: 409,
}
DEV_JWT_SECRET: str = "dev-only-change-me-to-a-long-random-secret"

app = FastAPI(title=settings.app_name)
app.include_router(api_router, prefix="/api/v1")


@app.exception_handler(PricingError)
def handle_pricing_error(request: Request, exc: PricingError) -> JSONResponse:
    status_code = ERROR_STATUS_CODES.get(exc.kind, 400)
    if exc.kind is not ErrorKind.COUPON_REJECTED:
        logger.warning("[PRICING] %s %s rejected: %s", request.method, request.url.path, exc.reason)
    return JSONResponse(status_code=status_code, content={"detail": exc.reason, "error": exc.to_dict()})


@app.on_event("startup")
def startup() -> None:
    if settings.jwt_secret_key == DEV_JWT_SECRET:
        if settings.app_env != "dev":
            logger.warning("[SECURITY] JWT_SECRET_KEY not set outside dev; using development fallback secret.")
        else:
            logger.info("[BOOTSTRAP] Using development JWT secret.")
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as session:
        try:
            ensure_seed_data(session)
        except Exception:
            logger.exception("[BOOTSTRAP] Seed/bootstrap failed; continuing startup.")


@app.get("/")
def root() -> dict[str, str]:
    return {"name": settings.app_name, "status": "ok"}
