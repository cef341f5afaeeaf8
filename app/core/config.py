"""Application configuration."""

from decimal import Decimal
from os import getenv

from pydantic import BaseModel


class Settings(BaseModel):
    """Runtime settings for the application."""

    app_name: str = "Restaurant Ordering API"
    app_env: str = getenv("APP_ENV", "dev")
    debug: bool = getenv("DEBUG", "0") == "1"
    database_url: str = getenv("DATABASE_URL", "sqlite:///./restaurant_ordering.db")
    jwt_secret_key: str = getenv("JWT_SECRET_KEY", "dev-only-change-me-to-a-long-random-secret")
    jwt_algorithm: str = getenv("JWT_ALGORITHM", "HS256")
    jwt_expire_minutes: int = int(getenv("JWT_EXPIRE_MINUTES", "60"))
    admin_email: str = getenv("ADMIN_EMAIL", "")
    admin_password: str = getenv("ADMIN_PASSWORD", "")
    seed_demo_data: bool = getenv("SEED_DEMO_DATA", "0") == "1"
    currency: str = getenv("CURRENCY", "USD")
    delivery_fee_cents: int = int(getenv("DELIVERY_FEE_CENTS", "299"))
    processing_rate: Decimal = Decimal(getenv("PROCESSING_RATE", "0.029"))
    processing_fixed_fee_cents: int = int(getenv("PROCESSING_FIXED_FEE_CENTS", "30"))
    platform_fee_cents: int = int(getenv("PLATFORM_FEE_CENTS", "199"))


settings: Settings = Settings()
