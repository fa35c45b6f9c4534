import pytest

from booking_marketplace_api.app.services.payment_service import derive_booking_payment_status

from .conftest import API


@pytest.mark.parametrize(
    "payments, expected",
    [
        ([], "pending"),
        ([{"amount": 1000, "payment_status": "pending"}], "pending"),
        ([{"amount": 1000, "payment_status": "completed"}], "partial"),
        (
            [{"amount": 1500, "payment_status": "completed"}, {"amount": 3500, "payment_status": "completed"}],
            "paid",
        ),
        ([{"amount": 5000, "payment_status": "refunded"}], "refunded"),
        ([{"amount": 5000, "payment_status": "failed"}], "pending"),
    ],
)
def test_derive_booking_payment_status(payments, expected):
    assert derive_booking_payment_status(5000, payments) == expected


async def test_deposit_then_balance_marks_booking_paid(client, booking, customer, admin):
    _, headers = customer
    _, admin_headers = admin

    deposit = await client.post(
        f"{API}/bookings/{booking['id']}/payments",
        json={"amount": 1500, "payment_method": "mpesa", "transaction_id": "MP123"},
        headers=headers,
    )
    assert deposit.status_code == 201
    assert deposit.json()["payment_status"] == "pending"
    assert deposit.json()["currency"] == "MZN"

    response = await client.patch(
        f"{API}/payments/{deposit.json()['id']}/status", json={"payment_status": "completed"}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["processed_at"] is not None
    detail = await client.get(f"{API}/bookings/{booking['id']}", headers=headers)
    assert detail.json()["payment_status"] == "partial"

    balance = await client.post(
        f"{API}/bookings/{booking['id']}/payments", json={"amount": 3500, "payment_method": "cash"}, headers=headers
    )
    await client.patch(
        f"{API}/payments/{balance.json()['id']}/status", json={"payment_status": "completed"}, headers=admin_headers
    )
    detail = await client.get(f"{API}/bookings/{booking['id']}", headers=headers)
    assert detail.json()["payment_status"] == "paid"

    payments = await client.get(f"{API}/bookings/{booking['id']}/payments", headers=headers)
    assert [p["amount"] for p in payments.json()] == [1500.0, 3500.0]


async def test_only_the_client_pays(client, booking, model_user):
    _, headers = model_user
    response = await client.post(
        f"{API}/bookings/{booking['id']}/payments", json={"amount": 100, "payment_method": "card"}, headers=headers
    )
    assert response.status_code == 403


async def test_cancelled_booking_refuses_payments(client, booking, customer):
    _, headers = customer
    await client.post(f"{API}/bookings/{booking['id']}/cancel", json={}, headers=headers)
    response = await client.post(
        f"{API}/bookings/{booking['id']}/payments", json={"amount": 100, "payment_method": "card"}, headers=headers
    )
    assert response.status_code == 409


async def test_amount_must_be_positive(client, booking, customer):
    _, headers = customer
    response = await client.post(
        f"{API}/bookings/{booking['id']}/payments", json={"amount": 0, "payment_method": "mpesa"}, headers=headers
    )
    assert response.status_code == 422


async def test_payment_status_is_admin_only(client, booking, customer):
    _, headers = customer
    payment = await client.post(
        f"{API}/bookings/{booking['id']}/payments", json={"amount": 100, "payment_method": "mpesa"}, headers=headers
    )
    response = await client.patch(
        f"{API}/payments/{payment.json()['id']}/status", json={"payment_status": "completed"}, headers=headers
    )
    assert response.status_code == 403
