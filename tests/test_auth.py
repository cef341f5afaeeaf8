"""Auth endpoint tests."""

from pathlib import Path

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from app.core.security import create_access_token
from app.db import session as db_session
from app.db.base import Base
from app.main import app
from app.models import Customer, User


def _build_test_engine(db_file: Path) -> Engine:
    return create_engine(
        f"sqlite:///{db_file}",
        connect_args={"check_same_thread": False},
    )


def _prepare(tmp_path: Path, monkeypatch) -> sessionmaker:
    engine = _build_test_engine(tmp_path / "auth.db")
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    monkeypatch.setattr(db_session, "engine", engine)
    monkeypatch.setattr(db_session, "SessionLocal", testing_session_local)
    return testing_session_local


def test_register_login_and_me(tmp_path: Path, monkeypatch) -> None:
    """Registration creates a customer that can log in and read its profile."""
    session_local = _prepare(tmp_path, monkeypatch)
    client = TestClient(app)

    register_response = client.post(
        "/api/v1/auth/register",
        json={"email": "Jane@Example.com", "password": "password123", "name": "Jane"},
    )
    assert register_response.status_code == 201
    assert register_response.json()["email"] == "jane@example.com"
    assert register_response.json()["role"] == "CUSTOMER"

    login_response = client.post(
        "/api/v1/auth/login",
        json={"email": "jane@example.com", "password": "password123"},
    )
    assert login_response.status_code == 200
    token = login_response.json()["access_token"]
    assert token

    me_response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me_response.status_code == 200
    assert me_response.json()["name"] == "Jane"

    with session_local() as db:
        user = db.query(User).filter(User.email == "jane@example.com").one()
        assert db.query(Customer).filter(Customer.user_id == user.id).count() == 1
        assert user.last_login_at is not None


def test_register_rejects_duplicate_email(tmp_path: Path, monkeypatch) -> None:
    _prepare(tmp_path, monkeypatch)
    client = TestClient(app)
    payload = {"email": "dup@example.com", "password": "password123"}

    assert client.post("/api/v1/auth/register", json=payload).status_code == 201
    assert client.post("/api/v1/auth/register", json=payload).status_code == 400


def test_login_rejects_wrong_password(tmp_path: Path, monkeypatch) -> None:
    _prepare(tmp_path, monkeypatch)
    client = TestClient(app)
    client.post("/api/v1/auth/register", json={"email": "max@example.com", "password": "password123"})

    response = client.post("/api/v1/auth/login", json={"email": "max@example.com", "password": "nope"})
    assert response.status_code == 401


def test_inactive_user_token_is_rejected(tmp_path: Path, monkeypatch) -> None:
    session_local = _prepare(tmp_path, monkeypatch)
    with session_local() as db:
        user = User(email="gone@example.com", password_hash="x", role="CUSTOMER", is_active=False)
        db.add(user)
        db.commit()
        token = create_access_token(user)
    client = TestClient(app)

    response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401

    response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
