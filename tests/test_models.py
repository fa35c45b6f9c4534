from booking_marketplace_api.app.schemas.model import ModelRead
from booking_marketplace_api.app.services.model_service import ModelService, filter_models

from .conftest import API


def _model(id, stage_name, location, category="Profissional", specialties=()):
    return ModelRead(
        id=id, stage_name=stage_name, age=25, location=location, category=category, specialties=list(specialties)
    )


MODELS = [
    _model(1, "Luna", "Maputo", "Premium", ["Eventos"]),
    _model(2, "Sofia", "Beira", "VIP", ["Jantares", "Viagens"]),
    _model(3, "Clara", "Nampula", "Premium"),
]


class TestFilterModels:
    def test_empty_filters_return_everything(self):
        assert [m.id for m in filter_models(MODELS, "", "")] == [1, 2, 3]

    def test_query_matches_stage_name_case_insensitively(self):
        assert [m.id for m in filter_models(MODELS, "LUNA")] == [1]

    def test_query_matches_location(self):
        assert [m.id for m in filter_models(MODELS, "bei")] == [2]

    def test_query_matches_any_specialty(self):
        assert [m.id for m in filter_models(MODELS, "viag")] == [2]

    def test_category_must_match_exactly(self):
        assert [m.id for m in filter_models(MODELS, category="Premium")] == [1, 3]

    def test_query_and_category_combine(self):
        assert filter_models(MODELS, "beira", "Premium") == []


async def _create_model(client, headers, **fields):
    body = {"stage_name": "Model", "age": 22, "location": "Maputo", **fields}
    response = await client.post(f"{API}/models/", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def test_listing_orders_featured_then_rating(client, admin):
    _, headers = admin
    low = await _create_model(client, headers, stage_name="Low")
    featured = await _create_model(client, headers, stage_name="Featured", is_featured=True)
    hidden = await _create_model(client, headers, stage_name="Hidden")
    await client.put(f"{API}/models/{hidden['id']}", json={"is_active": False}, headers=headers)

    response = await client.get(f"{API}/models/")
    assert response.status_code == 200
    ids = [m["id"] for m in response.json()]
    assert ids == [featured["id"], low["id"]]

    featured_only = await client.get(f"{API}/models/featured")
    assert [m["id"] for m in featured_only.json()] == [featured["id"]]


async def test_inactive_model_is_not_found(client, admin):
    _, headers = admin
    model = await _create_model(client, headers)
    await client.put(f"{API}/models/{model['id']}", json={"is_active": False}, headers=headers)
    response = await client.get(f"{API}/models/{model['id']}")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "not_found"


async def test_list_with_query_and_category(client, admin):
    _, headers = admin
    await _create_model(client, headers, stage_name="Luna", category="Premium", specialties=["Eventos"])
    await _create_model(client, headers, stage_name="Sofia", category="VIP", location="Beira")
    response = await client.get(f"{API}/models/", params={"q": "eventos"})
    assert [m["stage_name"] for m in response.json()] == ["Luna"]
    response = await client.get(f"{API}/models/category/VIP")
    assert [m["stage_name"] for m in response.json()] == ["Sofia"]
    response = await client.get(f"{API}/models/category/Unknown")
    assert response.status_code == 400


async def test_only_admin_creates_models(client, customer):
    _, headers = customer
    response = await client.post(
        f"{API}/models/", json={"stage_name": "X", "age": 20, "location": "Maputo"}, headers=headers
    )
    assert response.status_code == 403


async def test_owner_edits_profile_but_not_admin_fields(client, marketplace, model_user, customer):
    model_id = marketplace["model"]["id"]
    _, owner_headers = model_user
    response = await client.put(f"{API}/models/{model_id}", json={"bio": "Olá"}, headers=owner_headers)
    assert response.status_code == 200
    assert response.json()["bio"] == "Olá"

    response = await client.put(f"{API}/models/{model_id}", json={"is_featured": True}, headers=owner_headers)
    assert response.status_code == 403

    _, other_headers = customer
    response = await client.put(f"{API}/models/{model_id}", json={"bio": "x"}, headers=other_headers)
    assert response.status_code == 403


async def test_linked_account_becomes_model_role(client, marketplace, model_user):
    _, headers = model_user
    me = await client.get(f"{API}/users/me", headers=headers)
    assert me.json()["role_id"] == 2


async def test_model_services_embed_the_catalogue_service(client, marketplace, admin):
    model_id = marketplace["model"]["id"]
    response = await client.get(f"{API}/models/{model_id}/services")
    assert response.status_code == 200
    [offer] = response.json()
    assert offer["custom_price"] == 2500
    assert offer["service"]["name"] == "Jantar de gala"

    _, headers = admin
    duplicate = await client.post(
        f"{API}/models/{model_id}/services",
        json={"service_id": marketplace["service"]["id"]},
        headers=headers,
    )
    assert duplicate.status_code == 409


async def test_stats_default_rating_and_booking_counter(client, booking, marketplace):
    model_id = marketplace["model"]["id"]
    stats = await client.get(f"{API}/models/{model_id}/stats")
    assert stats.json() == {
        "total_bookings": 1,
        "completed_bookings": 0,
        "total_reviews": 0,
        "average_rating": 5.0,
    }
    model = await ModelService.get_model_by_id(model_id)
    assert model.total_bookings == 1


async def test_null_fields_in_profile_update_are_ignored(client, marketplace, admin):
    model_id = marketplace["model"]["id"]
    _, headers = admin
    response = await client.put(
        f"{API}/models/{model_id}", json={"stage_name": None, "bio": "Nova bio"}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["stage_name"] == "Luna"
    assert response.json()["bio"] == "Nova bio"


async def test_linking_an_account_on_update(client, marketplace, admin, customer):
    model_id = marketplace["model"]["id"]
    _, headers = admin
    response = await client.put(f"{API}/models/{model_id}", json={"user_id": 9999}, headers=headers)
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "not_found"

    client_user, client_headers = customer
    response = await client.put(f"{API}/models/{model_id}", json={"user_id": client_user["id"]}, headers=headers)
    assert response.status_code == 200
    assert response.json()["user_id"] == client_user["id"]
    me = await client.get(f"{API}/users/me", headers=client_headers)
    assert me.json()["role_id"] == 2
