import pytest

from booking_marketplace_api.app.core.config import settings
from booking_marketplace_api.app.core.security import create_access_token, decode_access_token
from booking_marketplace_api.app.services.user_service import UserService

from .conftest import API, PASSWORD


async def test_first_account_is_admin_then_clients(admin, customer):
    assert admin[0]["role_id"] == 1
    assert customer[0]["role_id"] == 3
    assert "password" not in customer[0]


async def test_duplicate_email_conflicts(client, customer):
    response = await client.post(
        f"{API}/users/signup",
        json={"email": "CLIENTE@example.com", "password": PASSWORD, "full_name": "Outra"},
    )
    assert response.status_code == 409
    assert response.json()["error"]["message"] == "Este email já está registado."


@pytest.mark.parametrize(
    "body",
    [
        {"email": "sem-arroba", "password": PASSWORD, "full_name": "X"},
        {"email": "a@b.co", "password": "123", "full_name": "X"},
        {"email": "a@b.co", "password": PASSWORD, "full_name": "   "},
    ],
)
async def test_signup_validation(client, body):
    response = await client.post(f"{API}/users/signup", json=body)
    assert response.status_code == 422


async def test_wrong_password_is_unauthorized(client, customer):
    response = await client.post(f"{API}/users/login", json={"email": "cliente@example.com", "password": "errada"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid credentials"


async def test_profile_update(client, customer):
    _, headers = customer
    response = await client.put(
        f"{API}/users/me", json={"phone": "+258841234567", "preferences": {"lang": "pt"}}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["phone"] == "+258841234567"
    assert response.json()["preferences"] == {"lang": "pt"}
    me = await client.get(f"{API}/users/me", headers=headers)
    assert me.json()["full_name"] == "Ana Cliente"
    assert me.json()["last_login"] is not None


async def test_invalid_token_is_rejected(client):
    response = await client.get(f"{API}/users/me", headers={"Authorization": "Bearer not.a.token"})
    assert response.status_code == 401
    response = await client.get(f"{API}/users/me")
    assert response.status_code == 401


async def test_admin_disables_account(client, admin, customer):
    _, admin_headers = admin
    user, headers = customer
    response = await client.put(f"{API}/users/{user['id']}", json={"is_active": False}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["is_active"] is False

    assert (await client.get(f"{API}/users/me", headers=headers)).status_code == 401
    login = await client.post(f"{API}/users/login", json={"email": "cliente@example.com", "password": PASSWORD})
    assert login.status_code == 403


async def test_admin_cannot_demote_self(client, admin):
    user, headers = admin
    response = await client.put(f"{API}/users/{user['id']}", json={"role_id": 3}, headers=headers)
    assert response.status_code == 400


async def test_user_listing_is_admin_only(client, admin, customer, model_user):
    _, admin_headers = admin
    _, headers = customer
    assert (await client.get(f"{API}/users/", headers=headers)).status_code == 403
    clients = await client.get(f"{API}/users/", params={"role_id": 3}, headers=admin_headers)
    assert [u["email"] for u in clients.json()] == ["cliente@example.com", "luna@example.com"]


async def test_password_reset_flow(client, customer):
    response = await client.post(f"{API}/users/password-reset", json={"email": "cliente@example.com"})
    assert response.status_code == 202
    unknown = await client.post(f"{API}/users/password-reset", json={"email": "ninguem@example.com"})
    assert unknown.json() == response.json()

    token = await UserService.request_password_reset("cliente@example.com")
    assert decode_access_token(token)["purpose"] == "password_reset"
    # A reset token must not work as a session token.
    me = await client.get(f"{API}/users/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 401

    response = await client.post(
        f"{API}/users/password-reset/confirm", json={"token": token, "new_password": "novasenha"}
    )
    assert response.status_code == 204
    login = await client.post(f"{API}/users/login", json={"email": "cliente@example.com", "password": "novasenha"})
    assert login.status_code == 200


async def test_session_token_cannot_reset_password(client, customer):
    token = create_access_token({"sub": "cliente@example.com"})
    response = await client.post(
        f"{API}/users/password-reset/confirm", json={"token": token, "new_password": "novasenha"}
    )
    assert response.status_code == 400


async def test_static_admin_token(client, admin, monkeypatch):
    monkeypatch.setattr(settings, "admin_static_token", "integration-secret")
    response = await client.get(f"{API}/users/", headers={"Authorization": "Bearer integration-secret"})
    assert response.status_code == 200


async def test_null_full_name_in_profile_update_is_ignored(client, customer):
    _, headers = customer
    response = await client.put(f"{API}/users/me", json={"full_name": None, "location": "Beira"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["full_name"] == "Ana Cliente"
    assert response.json()["location"] == "Beira"
