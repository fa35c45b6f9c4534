from .conftest import API


async def _send(client, headers, receiver_id, content, **extra):
    return await client.post(
        f"{API}/messages/", json={"receiver_id": receiver_id, "content": content, **extra}, headers=headers
    )


async def test_conversation_is_chronological(client, customer, model_user):
    ana, ana_headers = customer
    luna, luna_headers = model_user

    first = await _send(client, ana_headers, luna["id"], "Olá! Está disponível na sexta?")
    assert first.status_code == 201
    assert first.json()["sender_name"] == "Ana Cliente"
    await _send(client, luna_headers, ana["id"], "Sim, a partir das 20h.")

    conversation = (await client.get(f"{API}/messages/conversation/{luna['id']}", headers=ana_headers)).json()
    assert [m["sender_id"] for m in conversation] == [ana["id"], luna["id"]]

    inbox = (await client.get(f"{API}/messages/", headers=ana_headers)).json()
    assert [m["sender_id"] for m in inbox] == [luna["id"], ana["id"]]


async def test_unread_count_and_mark_read(client, customer, model_user):
    ana, ana_headers = customer
    luna, luna_headers = model_user
    message = (await _send(client, ana_headers, luna["id"], "Olá")).json()

    assert (await client.get(f"{API}/messages/unread-count", headers=luna_headers)).json() == {"count": 1}

    response = await client.post(f"{API}/messages/{message['id']}/read", headers=ana_headers)
    assert response.status_code == 403

    response = await client.post(f"{API}/messages/{message['id']}/read", headers=luna_headers)
    assert response.json()["is_read"] is True
    assert response.json()["read_at"] is not None
    assert (await client.get(f"{API}/messages/unread-count", headers=luna_headers)).json() == {"count": 0}


async def test_sender_deletes_message(client, customer, model_user):
    ana, ana_headers = customer
    luna, luna_headers = model_user
    message = (await _send(client, ana_headers, luna["id"], "Apagar")).json()

    response = await client.delete(f"{API}/messages/{message['id']}", headers=luna_headers)
    assert response.status_code == 403

    response = await client.delete(f"{API}/messages/{message['id']}", headers=ana_headers)
    assert response.status_code == 204
    assert (await client.get(f"{API}/messages/", headers=luna_headers)).json() == []
    response = await client.delete(f"{API}/messages/{message['id']}", headers=ana_headers)
    assert response.status_code == 404


async def test_content_is_validated_and_escaped(client, customer, model_user):
    _, headers = customer
    luna, _ = model_user
    assert (await _send(client, headers, luna["id"], "   ")).status_code == 422
    assert (await _send(client, headers, luna["id"], "x" * 2001)).status_code == 422

    response = await _send(client, headers, luna["id"], "<script>alert(1)</script>")
    assert response.json()["content"] == "&lt;script&gt;alert(1)&lt;/script&gt;"


async def test_invalid_receivers(client, customer):
    ana, headers = customer
    assert (await _send(client, headers, ana["id"], "Eu")).status_code == 400
    assert (await _send(client, headers, 999, "Ninguém")).status_code == 404


async def test_message_about_a_booking(client, booking, customer, model_user):
    _, headers = customer
    luna, _ = model_user
    response = await _send(client, headers, luna["id"], "Sobre a reserva", booking_id=booking["id"])
    assert response.json()["booking_id"] == booking["id"]
    response = await _send(client, headers, luna["id"], "Sobre nada", booking_id=999)
    assert response.status_code == 404
