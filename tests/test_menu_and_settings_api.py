"""Menu and fee settings API tests."""

from pathlib import Path

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.config import settings
from app.core.security import get_password_hash
from app.db import session as db_session
from app.db.base import Base
from app.main import app
from app.models import Restaurant, RestaurantAdmin, User

PASSWORD = "secret123"


def _prepare_db(tmp_path: Path, monkeypatch) -> tuple[sessionmaker, int]:
    engine = create_engine(f"sqlite:///{tmp_path / 'menu_settings.db'}", connect_args={"check_same_thread": False})
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    monkeypatch.setattr(db_session, "engine", engine)
    monkeypatch.setattr(db_session, "SessionLocal", testing_session_local)

    with testing_session_local() as db:
        restaurant = Restaurant(name="Pho Corner", slug="pho-corner")
        db.add(restaurant)
        db.flush()
        root = User(email="root@example.com", password_hash=get_password_hash(PASSWORD), role="SUPER_ADMIN")
        owner = User(email="owner@example.com", password_hash=get_password_hash(PASSWORD), role="RESTAURANT_ADMIN")
        db.add_all([root, owner])
        db.flush()
        db.add(RestaurantAdmin(user_id=owner.id, restaurant_id=restaurant.id))
        db.commit()
        return testing_session_local, restaurant.id


def _login(client: TestClient, email: str) -> dict[str, str]:
    response = client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def test_owner_builds_menu_with_addons(tmp_path: Path, monkeypatch) -> None:
    _, restaurant_id = _prepare_db(tmp_path, monkeypatch)
    client = TestClient(app)
    owner = _login(client, "owner@example.com")

    soup = client.post(
        "/api/v1/menu/items",
        json={"restaurant_id": restaurant_id, "name": "Pho Bo", "category": "Soups", "price_cents": 1450},
        headers=owner,
    )
    assert soup.status_code == 201, soup.text
    hidden = client.post(
        "/api/v1/menu/items",
        json={"restaurant_id": restaurant_id, "name": "Secret Dish", "price_cents": 999, "is_active": False},
        headers=owner,
    )
    assert hidden.status_code == 201

    addon = client.post(
        "/api/v1/menu/addons",
        json={"restaurant_id": restaurant_id, "name": "Extra Noodles", "price_cents": 200, "menu_item_ids": [soup.json()["id"]]},
        headers=owner,
    )
    assert addon.status_code == 201, addon.text

    menu = client.get("/api/v1/menu/pho-corner")
    assert menu.status_code == 200
    assert [item["name"] for item in menu.json()] == ["Pho Bo"]
    assert menu.json()[0]["addons"][0]["name"] == "Extra Noodles"

    assert client.get("/api/v1/menu/unknown").status_code == 404


def test_menu_changes_need_restaurant_rights(tmp_path: Path, monkeypatch) -> None:
    _, restaurant_id = _prepare_db(tmp_path, monkeypatch)
    client = TestClient(app)
    client.post("/api/v1/auth/register", json={"email": "eater@example.com", "password": PASSWORD})
    eater = _login(client, "eater@example.com")

    response = client.post(
        "/api/v1/menu/items",
        json={"restaurant_id": restaurant_id, "name": "Pho Ga", "price_cents": 1350},
        headers=eater,
    )
    assert response.status_code == 403


def test_fee_settings_resolution_through_api(tmp_path: Path, monkeypatch) -> None:
    _, restaurant_id = _prepare_db(tmp_path, monkeypatch)
    client = TestClient(app)
    root = _login(client, "root@example.com")
    owner = _login(client, "owner@example.com")

    response = client.get("/api/v1/settings/fees", headers=root)
    assert response.status_code == 200
    assert response.json()["delivery_fee_cents"] == settings.delivery_fee_cents

    assert client.put("/api/v1/settings/fees", json={"platform_fee_cents": 99}, headers=owner).status_code == 403
    assert client.put("/api/v1/settings/fees", json={"platform_fee_cents": 99}, headers=root).status_code == 200

    response = client.put(
        "/api/v1/settings/fees",
        json={"restaurant_id": restaurant_id, "delivery_fee_cents": 0},
        headers=owner,
    )
    assert response.status_code == 200, response.text
    assert response.json()["delivery_fee_cents"] == 0
    assert response.json()["platform_fee_cents"] == 99

    deployment = client.get("/api/v1/settings/fees", headers=owner)
    assert deployment.status_code == 403

    restaurant_view = client.get(f"/api/v1/settings/fees?restaurant_id={restaurant_id}", headers=owner)
    assert restaurant_view.json()["delivery_fee_cents"] == 0

    negative = client.put("/api/v1/settings/fees", json={"delivery_fee_cents": -1}, headers=root)
    assert negative.status_code == 422
