import os

# Cheap hashing and a fixed key for the whole run; must precede app imports
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SECRET_KEY", "test-secret")

import mongomock
import pytest
from fastapi.testclient import TestClient

from main import create_app
from repositories import build_repositories
from security import TokenService

SECRET = "test-secret"


@pytest.fixture
def db():
    return mongomock.MongoClient(tz_aware=True)["restaurant"]


@pytest.fixture
def repositories(db):
    return build_repositories(db)


@pytest.fixture
def token_service():
    return TokenService(SECRET)


@pytest.fixture
def app(db, token_service):
    return create_app(db=db, token_service=token_service)


@pytest.fixture
def anon(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def api(app, token_service):
    token, _ = token_service.generate_all_tokens("chef@bistro.com", "Chef", "Cook", "u1")
    with TestClient(app, headers={"token": token}) as client:
        yield client


@pytest.fixture
def make_menu(api):
    def _make(name="Dinner", category="Main"):
        response = api.post("/menus", json={"name": name, "category": category})
        assert response.status_code == 200, response.text
        return response.json()["inserted_id"]
    return _make


@pytest.fixture
def make_food(api, make_menu):
    def _make(name="Pho", price=10.0, menu_id=None):
        payload = {
            "name": name,
            "price": price,
            "food_image": "https://img.example/pho.png",
            "menu_id": menu_id or make_menu(),
        }
        response = api.post("/foods", json=payload)
        assert response.status_code == 200, response.text
        return response.json()["inserted_id"]
    return _make


@pytest.fixture
def make_table(api):
    def _make(table_number=7, number_of_guests=4):
        response = api.post(
            "/tables", json={"table_number": table_number, "number_of_guests": number_of_guests}
        )
        assert response.status_code == 200, response.text
        return response.json()["inserted_id"]
    return _make
