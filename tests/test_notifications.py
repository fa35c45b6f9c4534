from datetime import datetime, timedelta, timezone

from booking_marketplace_api.app.services.notification_service import NotificationService

from .conftest import API


async def test_admin_sends_and_user_reads(client, admin, customer):
    _, admin_headers = admin
    user, headers = customer
    response = await client.post(
        f"{API}/notifications/",
        json={"user_id": user["id"], "title": "Bem-vinda", "message": "Conta criada.", "type": "success"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    notification = response.json()
    assert notification["is_read"] is False

    assert (await client.get(f"{API}/notifications/unread-count", headers=headers)).json() == {"count": 1}
    response = await client.post(f"{API}/notifications/{notification['id']}/read", headers=headers)
    assert response.json()["is_read"] is True
    assert (await client.get(f"{API}/notifications/unread-count", headers=headers)).json() == {"count": 0}


async def test_users_only_touch_their_own(client, admin, customer):
    admin_user, admin_headers = admin
    _, headers = customer
    notification = await NotificationService.create_notification(admin_user["id"], "Interna", "Só para admin")

    response = await client.post(f"{API}/notifications/{notification.id}/read", headers=headers)
    assert response.status_code == 404
    response = await client.delete(f"{API}/notifications/{notification.id}", headers=headers)
    assert response.status_code == 404

    response = await client.post(
        f"{API}/notifications/", json={"user_id": admin_user["id"], "title": "x", "message": "y"}, headers=headers
    )
    assert response.status_code == 403


async def test_mark_all_read_and_limit(client, customer):
    user, headers = customer
    for n in range(3):
        await NotificationService.create_notification(user["id"], f"Aviso {n}", "Mensagem")

    listed = (await client.get(f"{API}/notifications/", params={"limit": 2}, headers=headers)).json()
    assert [n["title"] for n in listed] == ["Aviso 2", "Aviso 1"]

    response = await client.post(f"{API}/notifications/read-all", headers=headers)
    assert response.json() == {"count": 3}
    response = await client.post(f"{API}/notifications/read-all", headers=headers)
    assert response.json() == {"count": 0}


async def test_expired_notifications_are_hidden(client, customer):
    user, headers = customer
    past = datetime.now(timezone.utc) - timedelta(hours=1)
    await NotificationService.create_notification(user["id"], "Antiga", "Expirou", expires_at=past)
    await NotificationService.create_notification(user["id"], "Atual", "Válida")

    listed = (await client.get(f"{API}/notifications/", headers=headers)).json()
    assert [n["title"] for n in listed] == ["Atual"]
    assert (await client.get(f"{API}/notifications/unread-count", headers=headers)).json() == {"count": 1}


async def test_delete_notification(client, customer):
    user, headers = customer
    notification = await NotificationService.create_notification(user["id"], "Apagar", "Texto")
    response = await client.delete(f"{API}/notifications/{notification.id}", headers=headers)
    assert response.status_code == 204
    assert (await client.get(f"{API}/notifications/", headers=headers)).json() == []
