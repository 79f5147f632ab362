"""Pytest fixtures — file-backed SQLite database per test for fast, isolated tests."""
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from jam_api.database import Database, get_db
from jam_api.main import app

# Import all models so they register with Base.metadata
import jam_api.models  # noqa: F401


@pytest.fixture(scope="function")
def database(tmp_path):
    """Create a fresh SQLite database handle for each test."""
    database = Database(f"sqlite:///{tmp_path / 'test.db'}")
    database.create_all()
    yield database
    database.drop_all()
    database.close()


@pytest.fixture(scope="function")
def db(database):
    """Yield a database session, closed after the test."""
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(database):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""

    def _override_get_db():
        session = database.session()
        try:
            yield session
        finally:
            session.close()

    app.state.database = database
    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers: drive the API and return response JSON
# ---------------------------------------------------------------------------
def create_test_user(client: TestClient, user_id: str, name: str = "Test User", profile_pic: str = None) -> dict:
    """Helper — POST /api/users and return response JSON."""
    payload = {"user_id": user_id, "name": name}
    if profile_pic:
        payload["profile_pic"] = profile_pic
    resp = client.post("/api/users/", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


def confirm_payment(client: TestClient, event_id: str, payer_id: str, receiver_id: str, amount="10.00"):
    """Helper — POST /api/settlements/confirm-payment and return the response."""
    return client.post("/api/settlements/confirm-payment", json={
        "event_id": event_id,
        "payer_id": payer_id,
        "receiver_id": receiver_id,
        "amount": str(amount) if isinstance(amount, Decimal) else amount,
    })


def confirm_receipt(client: TestClient, settlement_id: str, user_id: str):
    """Helper — POST /api/settlements/confirm-receipt and return the response."""
    return client.post("/api/settlements/confirm-receipt", json={
        "settlement_id": settlement_id,
        "user_id": user_id,
    })
