import mongomock
import pytest
from fastapi.testclient import TestClient

from app import create_app
from config import Settings
from models import get_mongo_collections


@pytest.fixture
def settings():
    return Settings(jwt_secret_key="test-secret", database_name="SweetShopTest", log_level="WARNING")


@pytest.fixture
def mongo_client():
    return mongomock.MongoClient()


@pytest.fixture
def collections(mongo_client, settings):
    return get_mongo_collections(mongo_client, settings.database_name)


@pytest.fixture
def client(settings, mongo_client):
    return TestClient(create_app(settings=settings, client=mongo_client))


def _token_for(client, role):
    email = f"{role}@example.com"
    resp = client.post("/auth/register", json={
        "username": role, "email": email, "password": "password123", "role": role,
    })
    assert resp.status_code == 201
    resp = client.post("/auth/login", json={"email": email, "password": "password123"})
    assert resp.status_code == 200
    return resp.json()["token"]


@pytest.fixture
def admin_headers(client):
    return {"Authorization": f"Bearer {_token_for(client, 'admin')}"}


@pytest.fixture
def user_headers(client):
    return {"Authorization": f"Bearer {_token_for(client, 'user')}"}


@pytest.fixture
def make_sweet(client, admin_headers):
    def _make(**overrides):
        body = {"name": "Chocolate Fudge", "category": "Chocolate", "price": 5.99, "quantity": 10}
        body.update(overrides)
        resp = client.post("/items", json=body, headers=admin_headers)
        assert resp.status_code == 201
        return resp.json()
    return _make
