import pytest_asyncio

from .conftest import API


@pytest_asyncio.fixture
async def completed_booking(client, booking, model_user):
    _, headers = model_user
    response = await client.patch(
        f"{API}/bookings/{booking['id']}/status", json={"status": "completed"}, headers=headers
    )
    assert response.status_code == 200
    return response.json()


async def _review(client, headers, booking_id, **fields):
    body = {"booking_id": booking_id, "rating": 4, **fields}
    return await client.post(f"{API}/reviews/", json=body, headers=headers)


async def test_can_review_only_completed_bookings(client, booking, customer, model_user):
    _, headers = customer
    response = await client.get(f"{API}/reviews/can-review/{booking['id']}", headers=headers)
    assert response.json() == {"booking_id": booking["id"], "can_review": False}

    response = await _review(client, headers, booking["id"])
    assert response.status_code == 403

    _, model_headers = model_user
    await client.patch(f"{API}/bookings/{booking['id']}/status", json={"status": "completed"}, headers=model_headers)
    response = await client.get(f"{API}/reviews/can-review/{booking['id']}", headers=headers)
    assert response.json()["can_review"] is True


async def test_one_review_per_booking(client, completed_booking, customer):
    _, headers = customer
    first = await _review(client, headers, completed_booking["id"])
    assert first.status_code == 201
    assert first.json()["is_verified"] is True
    assert first.json()["admin_approved"] is False

    second = await _review(client, headers, completed_booking["id"])
    assert second.status_code == 403
    response = await client.get(f"{API}/reviews/can-review/{completed_booking['id']}", headers=headers)
    assert response.json()["can_review"] is False


async def test_other_user_cannot_review(client, completed_booking, register):
    _, headers = await register("outro@example.com")
    response = await _review(client, headers, completed_booking["id"])
    assert response.status_code == 403


async def test_approval_publishes_review_and_refreshes_rating(client, completed_booking, customer, admin, marketplace):
    model_id = marketplace["model"]["id"]
    _, headers = customer
    review = (await _review(client, headers, completed_booking["id"], rating=3, comment="Bom")).json()

    assert (await client.get(f"{API}/models/{model_id}/reviews")).json() == []

    _, admin_headers = admin
    pending = await client.get(f"{API}/reviews/pending", headers=admin_headers)
    assert [r["id"] for r in pending.json()] == [review["id"]]

    response = await client.put(
        f"{API}/reviews/{review['id']}/moderate",
        json={"admin_approved": True, "is_featured": False},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["admin_approved"] is True

    published = (await client.get(f"{API}/models/{model_id}/reviews")).json()
    assert [r["id"] for r in published] == [review["id"]]
    assert published[0]["client_name"] == "Ana Cliente"
    assert published[0]["model_stage_name"] == "Luna"

    model = (await client.get(f"{API}/models/{model_id}")).json()
    assert model["rating"] == 3.0
    assert model["total_reviews"] == 1
    stats = (await client.get(f"{API}/models/{model_id}/stats")).json()
    assert stats["average_rating"] == 3.0
    assert stats["completed_bookings"] == 1


async def test_anonymous_review_hides_the_author(client, completed_booking, customer, admin, marketplace):
    _, headers = customer
    review = (await _review(client, headers, completed_booking["id"], is_anonymous=True)).json()
    assert review["client_id"] == customer[0]["id"]

    _, admin_headers = admin
    await client.put(f"{API}/reviews/{review['id']}/moderate", json={"admin_approved": True}, headers=admin_headers)
    [published] = (await client.get(f"{API}/models/{marketplace['model']['id']}/reviews")).json()
    assert published["client_id"] is None
    assert published["client_name"] is None


async def test_comment_is_escaped(client, completed_booking, customer):
    _, headers = customer
    response = await _review(client, headers, completed_booking["id"], comment="  <b>Ótima</b>  ")
    assert response.json()["comment"] == "&lt;b&gt;Ótima&lt;/b&gt;"


async def test_comment_length_is_limited(client, completed_booking, customer):
    _, headers = customer
    response = await _review(client, headers, completed_booking["id"], comment="x" * 1001)
    assert response.status_code == 422


async def test_only_reviewed_model_responds(client, completed_booking, customer, model_user):
    _, headers = customer
    review = (await _review(client, headers, completed_booking["id"])).json()

    response = await client.post(f"{API}/reviews/{review['id']}/response", json={"response": "Obrigada"}, headers=headers)
    assert response.status_code == 403

    _, model_headers = model_user
    response = await client.post(
        f"{API}/reviews/{review['id']}/response", json={"response": " Obrigada! "}, headers=model_headers
    )
    assert response.status_code == 200
    assert response.json()["response_from_model"] == "Obrigada!"
    assert response.json()["response_date"] is not None


async def test_featured_reviews_need_approval_and_high_rating(client, completed_booking, customer, admin):
    _, headers = customer
    review = (await _review(client, headers, completed_booking["id"], rating=5)).json()
    assert (await client.get(f"{API}/reviews/featured")).json() == []

    _, admin_headers = admin
    await client.put(
        f"{API}/reviews/{review['id']}/moderate", json={"admin_approved": True, "is_featured": True}, headers=admin_headers
    )
    featured = (await client.get(f"{API}/reviews/featured")).json()
    assert [r["id"] for r in featured] == [review["id"]]


async def test_author_edits_and_deletes(client, completed_booking, customer, model_user):
    _, headers = customer
    review = (await _review(client, headers, completed_booking["id"])).json()

    _, model_headers = model_user
    response = await client.put(f"{API}/reviews/{review['id']}", json={"rating": 1}, headers=model_headers)
    assert response.status_code == 403

    response = await client.put(f"{API}/reviews/{review['id']}", json={"rating": 5, "pros": ["Pontual"]}, headers=headers)
    assert response.json()["rating"] == 5
    assert response.json()["pros"] == ["Pontual"]

    mine = (await client.get(f"{API}/reviews/me", headers=headers)).json()
    assert [r["id"] for r in mine] == [review["id"]]

    response = await client.delete(f"{API}/reviews/{review['id']}", headers=headers)
    assert response.status_code == 204
    assert (await client.get(f"{API}/reviews/me", headers=headers)).json() == []


async def test_null_rating_in_review_update_is_ignored(client, completed_booking, customer):
    _, headers = customer
    review = (await _review(client, headers, completed_booking["id"])).json()
    response = await client.put(
        f"{API}/reviews/{review['id']}", json={"rating": None, "comment": "Mudei de ideia"}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["rating"] == review["rating"]
    assert response.json()["comment"] == "Mudei de ideia"
