"""
Pytest fixtures for the car API. Tests run against a temporary SQLite file
database; settings are pinned in the environment before car_api is imported.
"""

from __future__ import annotations

import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="car_api_tests_")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'car_api.db')}"
os.environ["JWT_KEY"] = "test-secret"
os.environ["SCRYPT_N"] = "1024"
os.environ["DB_POOL_SIZE"] = "2"
os.environ["DB_POOL_TIMEOUT"] = "5"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event, insert, select

from car_api import db
from car_api.models import CarMake


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def engine():
    """Fresh schema for every test."""
    db.Base.metadata.drop_all(bind=db.engine)
    db.init_db()
    yield db.engine
    db.engine.dispose()


@pytest.fixture
def client(engine):
    from car_api.main import app

    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def makes(engine):
    """Seed car_make and return {name: id}."""
    with engine.connect() as conn:
        conn.execute(insert(CarMake), [{"name": "Toyota"}, {"name": "Honda"}])
        rows = conn.execute(select(CarMake.name, CarMake.id)).all()
    return {name: make_id for name, make_id in rows}


@pytest.fixture
def pool_events(engine):
    """Count pool checkouts and checkins while the test runs."""
    counts = {"checkout": 0, "checkin": 0}

    def on_checkout(dbapi_conn, record, proxy):
        counts["checkout"] += 1

    def on_checkin(dbapi_conn, record):
        counts["checkin"] += 1

    event.listen(engine, "checkout", on_checkout)
    event.listen(engine, "checkin", on_checkin)
    yield counts
    event.remove(engine, "checkout", on_checkout)
    event.remove(engine, "checkin", on_checkin)


def register(client, email="alice@example.com", password="s3cret-pass"):
    return client.post("/auth/register", json={"email": email, "password": password})


def login(client, email="alice@example.com", password="s3cret-pass"):
    return client.post("/auth/login", json={"email": email, "password": password})


@pytest.fixture
def auth_headers(client):
    """Register alice, log in, and return her Authorization header."""
    assert register(client).status_code == 200
    token = login(client).json()["jwt"]
    return {"Authorization": f"Bearer {token}"}
