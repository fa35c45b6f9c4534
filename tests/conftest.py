from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from booking_marketplace_api.app.core.config import settings
from booking_marketplace_api.app.core.db import init_db
from booking_marketplace_api.app.main import app

API = "/api/v1"
PASSWORD = "segredo123"


@pytest.fixture(autouse=True)
def test_database(tmp_path, monkeypatch):
    """Give every test its own SQLite file with all migrations applied."""
    monkeypatch.setattr(settings, "database_url", str(tmp_path / "marketplace-test.db"))
    monkeypatch.setattr(settings, "admin_static_token", "")
    monkeypatch.setattr(settings, "deposit_rate", 0.3)
    # ASGITransport does not send lifespan events, so migrate here.
    init_db()
    yield


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def register(client):
    """Factory: sign up and sign in, returning ``(user, auth_headers)``."""

    async def _register(email: str, full_name: str = "Test User"):
        response = await client.post(
            f"{API}/users/signup", json={"email": email, "password": PASSWORD, "full_name": full_name}
        )
        assert response.status_code == 201, response.text
        login = await client.post(f"{API}/users/login", json={"email": email, "password": PASSWORD})
        assert login.status_code == 200, login.text
        return response.json(), {"Authorization": f"Bearer {login.json()['access_token']}"}

    return _register


@pytest_asyncio.fixture
async def admin(register):
    # The first account created becomes the administrator.
    return await register("admin@example.com", "Admin")


@pytest_asyncio.fixture
async def customer(admin, register):
    return await register("cliente@example.com", "Ana Cliente")


@pytest_asyncio.fixture
async def model_user(admin, register):
    return await register("luna@example.com", "Luna Account")


@pytest_asyncio.fixture
async def marketplace(client, admin, model_user):
    """A catalogue service, a model owned by ``model_user`` offering it at 2500/hour."""
    _, admin_headers = admin
    service = await client.post(
        f"{API}/services/",
        json={"name": "Jantar de gala", "base_price": 2000, "duration_hours": 2},
        headers=admin_headers,
    )
    assert service.status_code == 201, service.text
    model = await client.post(
        f"{API}/models/",
        json={
            "user_id": model_user[0]["id"],
            "stage_name": "Luna",
            "age": 24,
            "location": "Maputo",
            "category": "Premium",
            "specialties": ["Eventos", "Jantares"],
            "hourly_rate": 1500,
        },
        headers=admin_headers,
    )
    assert model.status_code == 201, model.text
    offer = await client.post(
        f"{API}/models/{model.json()['id']}/services",
        json={"service_id": service.json()["id"], "custom_price": 2500},
        headers=admin_headers,
    )
    assert offer.status_code == 201, offer.text
    return {"model": model.json(), "service": service.json(), "offer": offer.json()}


def future_iso(days: int = 3) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).replace(microsecond=0).isoformat()


@pytest_asyncio.fixture
async def booking(client, customer, marketplace):
    _, headers = customer
    response = await client.post(
        f"{API}/bookings/",
        json={
            "model_id": marketplace["model"]["id"],
            "service_id": marketplace["service"]["id"],
            "booking_date": future_iso(),
            "duration_hours": 2,
            "location": "Polana",
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()
