import os

# Keep password hashing cheap under test; must be set before config is imported
os.environ.setdefault("PBKDF2_ROUNDS", "1000")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("ENVIRONMENT", "development")

import pytest
from fastapi.testclient import TestClient

from main import app, db, users
from models import Role


@pytest.fixture(autouse=True)
def reset_db():
    db.reset()
    yield
    db.reset()


@pytest.fixture
def client():
    return TestClient(app)


def login_headers(client, username, password):
    response = client.post("/login", json={"username": username, "password": password})
    return {"Authorization": response.json()["token"]}


@pytest.fixture
def alice_headers(client):
    client.post("/register", json={"username": "alice", "password": "secret1"})
    return login_headers(client, "alice", "secret1")


@pytest.fixture
def bob_headers(client):
    client.post("/register", json={"username": "bob", "password": "secret2"})
    return login_headers(client, "bob", "secret2")


@pytest.fixture
def admin_headers(client):
    users.register("root", "rootpass", role=Role.ADMIN)
    return login_headers(client, "root", "rootpass")
