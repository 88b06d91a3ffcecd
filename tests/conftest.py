"""Pytest fixtures for the task manager API."""

import os

# Set env vars before importing anything from taskmanager
os.environ["TASKMANAGER_DATABASE_URL"] = "sqlite://"
os.environ.setdefault("TASKMANAGER_PASSWORD_SECRET", "test-secret")
os.environ.setdefault("TASKMANAGER_LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from taskmanager.auth import hash_password
from taskmanager.db import Base, get_db
from taskmanager.models import User

# In-memory SQLite for tests
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestSession()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def app():
    from taskmanager.main import app

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


def _client(app):
    # The session cookie is Secure, so it only round-trips over https
    return TestClient(app, base_url="https://testserver")


@pytest.fixture
def client(app):
    return _client(app)


@pytest.fixture
def other_client(app):
    return _client(app)


@pytest.fixture
def register():
    def _register(client, username, email=None, password="hunter22"):
        return client.post(
            "/api/auth/register",
            json={
                "username": username,
                "email": email or f"{username}@example.com",
                "password": password,
            },
        )

    return _register


@pytest.fixture
def alice(client, register):
    response = register(client, "alice")
    assert response.status_code == 200
    return response.json()["user"]


@pytest.fixture
def bob(other_client, register):
    response = register(other_client, "bob")
    assert response.status_code == 200
    return response.json()["user"]


@pytest.fixture
def user(db):
    user = User(username="carol", email="carol@example.com", password_hash=hash_password("Password1"))
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
