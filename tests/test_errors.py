import json

from starlette.requests import Request

from booking_marketplace_api.app.core.errors import (
    ConflictError,
    NotFoundError,
    global_exception_handler,
    service_error_handler,
)

from .conftest import API


def _request(path="/api/v1/bookings/1"):
    return Request({"type": "http", "method": "GET", "path": path, "headers": [], "query_string": b""})


async def test_service_error_uses_its_status_and_envelope():
    response = await service_error_handler(_request(), ConflictError("Booking 1 is already cancelled"))
    assert response.status_code == 409
    assert json.loads(response.body) == {
        "data": None,
        "error": {"code": "conflict", "message": "Booking 1 is already cancelled"},
    }


async def test_not_found_is_a_value_error():
    assert isinstance(NotFoundError("x"), ValueError)


async def test_unhandled_exception_returns_500_with_error_id(caplog):
    exc = RuntimeError("database on fire")
    response = await global_exception_handler(_request(), exc)
    body = json.loads(response.body)
    assert response.status_code == 500
    assert body["data"] is None
    assert body["error"]["code"] == "internal_error"
    assert body["error"]["error_id"] == id(exc)
    assert "database on fire" in caplog.text


async def test_unknown_route_is_plain_404(client):
    response = await client.get("/api/v1/nothing-here")
    assert response.status_code == 404


async def test_request_validation_uses_the_envelope(client):
    response = await client.post(f"{API}/users/signup", json={"email": "sem-senha@example.com"})
    assert response.status_code == 422
    body = response.json()
    assert body["data"] is None
    assert body["error"]["code"] == "validation_failed"
    assert ["body", "password"] in [problem["loc"] for problem in body["error"]["details"]]
