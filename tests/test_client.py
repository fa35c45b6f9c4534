import json

import pytest
import requests

from marketplace_client import MarketplaceClient


def _response(status_code, body=None, url="http://api.test/api/v1/"):
    response = requests.Response()
    response.status_code = status_code
    response._content = b"" if body is None else json.dumps(body).encode("utf-8")
    response.encoding = "utf-8"
    response.url = url
    return response


class FakeSession:
    """Records calls and answers from a queue of prepared responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, **kwargs):
        self.calls.append(kwargs)
        answer = self.responses.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer


@pytest.fixture
def make_client():
    def _make(*responses, token=None):
        session = FakeSession(*responses)
        return MarketplaceClient(base_url="http://api.test/", token=token, session=session), session

    return _make


def test_sign_in_keeps_token_for_later_requests(make_client):
    api, session = make_client(
        _response(200, {"access_token": "abc", "token_type": "bearer"}),
        _response(200, {"id": 1, "email": "ana@example.com"}),
    )
    data, error = api.sign_in("ana@example.com", "segredo123")
    assert error is None
    assert api.token == "abc"

    me, error = api.get_current_user()
    assert me["id"] == 1
    assert session.calls[1]["url"] == "http://api.test/api/v1/users/me"
    assert session.calls[1]["headers"] == {"Authorization": "Bearer abc"}

    assert api.sign_out() == (None, None)
    assert api.token is None


def test_service_error_message_is_extracted(make_client):
    api, _ = make_client(
        _response(400, {"data": None, "error": {"code": "validation_failed", "message": "A duração mínima é de 1 hora."}})
    )
    data, error = api.create_booking({"model_id": 1})
    assert data is None
    assert error == {"status_code": 400, "message": "A duração mínima é de 1 hora."}


def test_detail_error_message_is_extracted(make_client):
    api, _ = make_client(_response(401, {"detail": "Invalid credentials"}))
    data, error = api.sign_in("ana@example.com", "errada")
    assert data is None
    assert error["message"] == "Invalid credentials"
    assert api.token is None


def test_validation_details_are_joined(make_client):
    api, _ = make_client(_response(422, {"detail": [{"msg": "Field required"}, {"msg": "Email inválido"}]}))
    _, error = api.submit_candidatura({})
    assert error["message"] == "Field required; Email inválido"


def test_listings_fall_back_to_empty(make_client):
    api, session = make_client(requests.ConnectionError("refused"))
    models, error = api.list_models(query="maputo")
    assert models == []
    assert error == {"status_code": None, "message": "refused"}
    assert session.calls[0]["params"] == {"q": "maputo"}


def test_counters_fall_back_to_zero(make_client):
    api, _ = make_client(_response(200, {"count": 3}), _response(500, {"detail": "boom"}))
    assert api.get_unread_notification_count() == (3, None)
    count, error = api.get_unread_message_count()
    assert count == 0
    assert error["status_code"] == 500


def test_empty_body_is_none(make_client):
    api, session = make_client(_response(204), token="abc")
    assert api.mark_all_notifications_read() == (None, None)
    assert session.calls[0]["method"] == "POST"


def test_can_review(make_client):
    api, _ = make_client(_response(200, {"booking_id": 7, "can_review": True}), _response(403, {"detail": "no"}))
    assert api.can_review(7) == (True, None)
    allowed, error = api.can_review(7)
    assert allowed is False
    assert error["status_code"] == 403
