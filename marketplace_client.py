"""Booking marketplace API client.

A thin wrapper around the REST API using the ``requests`` library.
Every public method returns a tuple ``(data, error)``:

* on success ``error`` is ``None`` and ``data`` holds the parsed JSON;
* on failure ``data`` is ``None`` (an empty list for listings, ``0``
  for counters) and ``error`` is a dictionary with the keys
  ``status_code`` and ``message``.

Nothing is retried; a failure is reported to the caller as-is.

Example::

    client = MarketplaceClient(base_url="http://localhost:8000")
    _, error = client.sign_in("ana@example.com", "segredo123")
    models, error = client.list_models(query="maputo")
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import requests


logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
DEFAULT_TIMEOUT = 15

Error = Dict[str, Any]
Result = Tuple[Optional[Any], Optional[Error]]


class MarketplaceClient:
    """Client for the booking marketplace API.

    The access token obtained by :meth:`sign_in` is kept on the client
    and sent as a bearer token with every later request until
    :meth:`sign_out` is called.
    """

    def __init__(
        self,
        *,
        base_url: str,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialise the API client.

        Args:
            base_url: Base URL of the server, e.g. ``http://localhost:8000``.
            token: Optional access token (or the static admin token).
            session: Optional requests session.  If not supplied a
                session will be created automatically.
            timeout: Timeout in seconds for every request.
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Low level HTTP helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text
        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict) and error.get("message"):
                return error["message"]
            detail = body.get("detail")
            if isinstance(detail, list):
                return "; ".join(str(item.get("msg", item)) if isinstance(item, dict) else str(item) for item in detail)
            if detail:
                return str(detail)
        return str(body)

    def _request(
        self, method: str, path: str, *, params: Dict[str, Any] | None = None,
        json_body: Any | None = None
    ) -> Result:
        """Perform an HTTP request to the API.

        Args:
            method: HTTP method (``GET``, ``POST``, ``PATCH``, ``DELETE``, etc.).
            path: Path relative to the versioned prefix (e.g. ``/models/``).
            params: Query parameters to include in the request.
            json_body: JSON body to send with the request.
        Returns:
            A tuple ``(data, error)``.
        """
        url = f"{self.base_url}{API_PREFIX}{path}"
        headers: Dict[str, str] = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            logger.debug("Sending %s request to %s", method, url)
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                json=json_body,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            if response.content:
                return response.json(), None
            return None, None
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            message = self._error_message(exc.response) if exc.response is not None else ""
            if not message:
                message = str(exc)
            logger.error("API request failed (%s): %s", status, message)
            return None, {"status_code": status, "message": message}
        except requests.RequestException as exc:
            logger.error("API request failed: %s", exc)
            return None, {"status_code": None, "message": str(exc)}

    def _list(self, path: str, params: Dict[str, Any] | None = None) -> Tuple[List[Any], Optional[Error]]:
        data, error = self._request("GET", path, params=params)
        if error:
            return [], error
        return data if isinstance(data, list) else [], None

    def _count(self, path: str) -> Tuple[int, Optional[Error]]:
        data, error = self._request("GET", path)
        if error:
            return 0, error
        return int((data or {}).get("count", 0)), None

    # ------------------------------------------------------------------
    # Authentication and profile
    # ------------------------------------------------------------------
    def sign_up(self, email: str, password: str, full_name: str, phone: Optional[str] = None) -> Result:
        return self._request(
            "POST", "/users/signup",
            json_body={"email": email, "password": password, "full_name": full_name, "phone": phone},
        )

    def sign_in(self, email: str, password: str) -> Result:
        """Sign in and keep the returned token for later requests."""
        data, error = self._request("POST", "/users/login", json_body={"email": email, "password": password})
        if error:
            return None, error
        self.token = data.get("access_token")
        return data, None

    def sign_out(self) -> Result:
        """Forget the access token.  Tokens are stateless; the server is not contacted."""
        self.token = None
        return None, None

    def get_current_user(self) -> Result:
        return self._request("GET", "/users/me")

    def update_profile(self, updates: Dict[str, Any]) -> Result:
        return self._request("PUT", "/users/me", json_body=updates)

    def request_password_reset(self, email: str) -> Result:
        return self._request("POST", "/users/password-reset", json_body={"email": email})

    def confirm_password_reset(self, token: str, new_password: str) -> Result:
        return self._request(
            "POST", "/users/password-reset/confirm", json_body={"token": token, "new_password": new_password}
        )

    # ------------------------------------------------------------------
    # Models and services
    # ------------------------------------------------------------------
    def list_models(self, query: Optional[str] = None, category: Optional[str] = None) -> Tuple[List[Any], Optional[Error]]:
        params = {k: v for k, v in (("q", query), ("category", category)) if v}
        return self._list("/models/", params or None)

    def get_featured_models(self) -> Tuple[List[Any], Optional[Error]]:
        return self._list("/models/featured")

    def get_models_by_category(self, category: str) -> Tuple[List[Any], Optional[Error]]:
        return self._list(f"/models/category/{category}")

    def search_models(self, query: str) -> Tuple[List[Any], Optional[Error]]:
        return self._list("/models/search", {"q": query})

    def get_model(self, model_id: int) -> Result:
        return self._request("GET", f"/models/{model_id}")

    def get_model_services(self, model_id: int) -> Tuple[List[Any], Optional[Error]]:
        return self._list(f"/models/{model_id}/services")

    def get_model_stats(self, model_id: int) -> Result:
        return self._request("GET", f"/models/{model_id}/stats")

    def get_model_reviews(self, model_id: int) -> Tuple[List[Any], Optional[Error]]:
        return self._list(f"/models/{model_id}/reviews")

    def list_services(self) -> Tuple[List[Any], Optional[Error]]:
        return self._list("/services/")

    # ------------------------------------------------------------------
    # Bookings and payments
    # ------------------------------------------------------------------
    def quote_booking(self, booking: Dict[str, Any]) -> Result:
        return self._request("POST", "/bookings/quote", json_body=booking)

    def create_booking(self, booking: Dict[str, Any]) -> Result:
        return self._request("POST", "/bookings/", json_body=booking)

    def get_user_bookings(self) -> Tuple[List[Any], Optional[Error]]:
        return self._list("/bookings/")

    def get_upcoming_bookings(self) -> Tuple[List[Any], Optional[Error]]:
        return self._list("/bookings/upcoming")

    def get_booking(self, booking_id: int) -> Result:
        return self._request("GET", f"/bookings/{booking_id}")

    def update_booking_status(self, booking_id: int, status: str, model_notes: Optional[str] = None) -> Result:
        body: Dict[str, Any] = {"status": status}
        if model_notes is not None:
            body["model_notes"] = model_notes
        return self._request("PATCH", f"/bookings/{booking_id}/status", json_body=body)

    def cancel_booking(self, booking_id: int, reason: Optional[str] = None) -> Result:
        return self._request("POST", f"/bookings/{booking_id}/cancel", json_body={"reason": reason})

    def create_payment(self, booking_id: int, amount: float, payment_method: str, **extra: Any) -> Result:
        body = {"amount": amount, "payment_method": payment_method, **extra}
        return self._request("POST", f"/bookings/{booking_id}/payments", json_body=body)

    def list_booking_payments(self, booking_id: int) -> Tuple[List[Any], Optional[Error]]:
        return self._list(f"/bookings/{booking_id}/payments")

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------
    def create_review(self, review: Dict[str, Any]) -> Result:
        return self._request("POST", "/reviews/", json_body=review)

    def can_review(self, booking_id: int) -> Tuple[bool, Optional[Error]]:
        data, error = self._request("GET", f"/reviews/can-review/{booking_id}")
        if error:
            return False, error
        return bool(data.get("can_review")), None

    def get_featured_reviews(self) -> Tuple[List[Any], Optional[Error]]:
        return self._list("/reviews/featured")

    # ------------------------------------------------------------------
    # Notifications and messages
    # ------------------------------------------------------------------
    def get_notifications(self, limit: int = 20) -> Tuple[List[Any], Optional[Error]]:
        return self._list("/notifications/", {"limit": limit})

    def get_unread_notification_count(self) -> Tuple[int, Optional[Error]]:
        return self._count("/notifications/unread-count")

    def mark_notification_read(self, notification_id: int) -> Result:
        return self._request("POST", f"/notifications/{notification_id}/read")

    def mark_all_notifications_read(self) -> Result:
        return self._request("POST", "/notifications/read-all")

    def send_message(self, receiver_id: int, content: str, booking_id: Optional[int] = None) -> Result:
        return self._request(
            "POST", "/messages/",
            json_body={"receiver_id": receiver_id, "content": content, "booking_id": booking_id},
        )

    def get_messages(self) -> Tuple[List[Any], Optional[Error]]:
        return self._list("/messages/")

    def get_conversation(self, other_user_id: int) -> Tuple[List[Any], Optional[Error]]:
        return self._list(f"/messages/conversation/{other_user_id}")

    def get_unread_message_count(self) -> Tuple[int, Optional[Error]]:
        return self._count("/messages/unread-count")

    # ------------------------------------------------------------------
    # Candidaturas
    # ------------------------------------------------------------------
    def submit_candidatura(self, application: Dict[str, Any]) -> Result:
        return self._request("POST", "/candidaturas/", json_body=application)

    def get_candidaturas(self, status: Optional[str] = None, query: Optional[str] = None) -> Tuple[List[Any], Optional[Error]]:
        params = {k: v for k, v in (("status", status), ("q", query)) if v}
        return self._list("/candidaturas/", params or None)

    def get_candidatura_stats(self) -> Result:
        return self._request("GET", "/candidaturas/stats")
