import os

os.environ["DATABASE_URL"] = "sqlite:///./test_ermakplan.db"
os.environ["SEED_DEMO_DATA"] = "false"
os.environ["RATE_LIMIT"] = "100000/minute"
os.environ["LIVENESS_INTERVAL_SECONDS"] = "0"
os.environ["ENVIRONMENT"] = "test"

import pytest
from fastapi.testclient import TestClient

from ermakplan.auth.security import get_password_hash
from ermakplan.db import Base, SessionLocal, engine
from ermakplan.main import app
from ermakplan.models.models import User

PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    # Entering the client runs startup and keeps one event loop for HTTP and WebSocket traffic
    with TestClient(app) as c:
        yield c


@pytest.fixture
def seed_users(db):
    users = {
        "root": User(id=1, username="ermak", password_hash=get_password_hash(PASSWORD), full_name="Demo User"),
        "alice": User(id=2, username="alice", password_hash=get_password_hash(PASSWORD), full_name="Alice"),
        "bob": User(id=3, username="bob", password_hash=get_password_hash(PASSWORD), full_name="Bob"),
    }
    for u in users.values():
        db.add(u)
    db.commit()
    for u in users.values():
        db.refresh(u)
    return users


def login(client, username: str, password: str = PASSWORD) -> dict:
    """Log in on `client`; the session cookie replaces whichever user was active before."""
    resp = client.post("/api/auth/login", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()


def create_task(client, **fields) -> dict:
    body = {"title": "Inspect pump"}
    body.update(fields)
    resp = client.post("/api/tasks", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()
