"""Shared DB helpers for the Streamlit operator console."""

from datetime import datetime

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings
from app.db.base import Base
from app.services.money import Money

engine = create_engine(
    settings.database_url,
    connect_args={"check_same_thread": False} if settings.database_url.startswith("sqlite") else {},
)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
Base.metadata.create_all(bind=engine)


def get_session() -> Session:
    return SessionLocal()


def now_string() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M")


def format_cents(amount: int | None, currency: str = settings.currency) -> str:
    if amount is None:
        return "-"
    return Money(amount, currency).format()
