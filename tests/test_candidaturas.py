import pytest

from .conftest import API

FORM = {
    "nome": "Maria Tembe",
    "idade": 23,
    "provincia": "Maputo (Cidade)",
    "email": "Maria@Example.com",
    "whatsapp": "+258841112223",
    "termos_aceitos": True,
}


async def _submit(client, **overrides):
    return await client.post(f"{API}/candidaturas/", json={**FORM, **overrides})


async def test_public_submission(client):
    response = await _submit(client)
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "pendente"
    assert body["pais"] == "Moçambique"
    assert body["email"] == "maria@example.com"


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"idade": 17}, "A idade deve estar entre 18 e 65 anos."),
        ({"idade": 66}, "A idade deve estar entre 18 e 65 anos."),
        ({"termos_aceitos": False}, "Você deve aceitar os termos e condições."),
    ],
)
async def test_submission_validation(client, overrides, message):
    response = await _submit(client, **overrides)
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "validation_failed"
    assert message in response.json()["error"]["message"]


async def test_listing_is_admin_only(client, admin, customer):
    await _submit(client)
    assert (await client.get(f"{API}/candidaturas/")).status_code == 401
    _, headers = customer
    assert (await client.get(f"{API}/candidaturas/", headers=headers)).status_code == 403


async def test_status_update_search_and_stats(client, admin):
    _, headers = admin
    maria = (await _submit(client)).json()
    joana = (await _submit(client, nome="Joana Sitoe", email="joana@example.com", provincia="Sofala")).json()

    response = await client.patch(
        f"{API}/candidaturas/{maria['id']}/status",
        json={"status": "entrevista_agendada", "interview_date": "2026-12-01T10:00:00Z", "admin_notes": "Ok"},
        headers=headers,
    )
    assert response.status_code == 200
    updated = response.json()
    assert updated["status"] == "entrevista_agendada"
    assert updated["processed_by"] == admin[0]["id"]
    assert updated["processed_at"] is not None

    all_items = (await client.get(f"{API}/candidaturas/", headers=headers)).json()
    assert [c["id"] for c in all_items] == [joana["id"], maria["id"]]
    by_status = (await client.get(f"{API}/candidaturas/", params={"status": "pendente"}, headers=headers)).json()
    assert [c["id"] for c in by_status] == [joana["id"]]
    found = (await client.get(f"{API}/candidaturas/", params={"q": "SOFALA"}, headers=headers)).json()
    assert [c["id"] for c in found] == [joana["id"]]

    stats = (await client.get(f"{API}/candidaturas/stats", headers=headers)).json()
    assert stats["total"] == 2
    assert stats["pendente"] == 1
    assert stats["entrevista_agendada"] == 1


async def test_delete_and_missing(client, admin):
    _, headers = admin
    candidatura = (await _submit(client)).json()
    response = await client.delete(f"{API}/candidaturas/{candidatura['id']}", headers=headers)
    assert response.status_code == 204
    response = await client.get(f"{API}/candidaturas/{candidatura['id']}", headers=headers)
    assert response.status_code == 404
    response = await client.patch(
        f"{API}/candidaturas/{candidatura['id']}/status", json={"status": "aprovada"}, headers=headers
    )
    assert response.status_code == 404


async def test_search_folds_accents_and_treats_wildcards_literally(client, admin):
    _, headers = admin
    conceicao = (await _submit(client, nome="Conceição Mondlane", email="conceicao@example.com")).json()
    await _submit(client, nome="Rita_Nhaca", email="rita@example.com", provincia="Gaza")

    found = (await client.get(f"{API}/candidaturas/", params={"q": "CONCEIÇÃO"}, headers=headers)).json()
    assert [c["id"] for c in found] == [conceicao["id"]]

    assert (await client.get(f"{API}/candidaturas/", params={"q": "%"}, headers=headers)).json() == []
    underscore = (await client.get(f"{API}/candidaturas/", params={"q": "a_n"}, headers=headers)).json()
    assert [c["nome"] for c in underscore] == ["Rita_Nhaca"]
