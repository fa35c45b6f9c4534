from datetime import datetime, timedelta, timezone

import pytest

from booking_marketplace_api.app.core.errors import ValidationFailedError
from booking_marketplace_api.app.services import pricing


class TestResolveUnitPrice:
    def test_custom_price_wins(self):
        assert pricing.resolve_unit_price({"custom_price": 2500}, {"base_price": 2000}, {"hourly_rate": 1500}) == 2500

    def test_falls_back_to_service_base_price(self):
        assert pricing.resolve_unit_price({"custom_price": None}, {"base_price": 2000}, {"hourly_rate": 1500}) == 2000

    def test_zero_prices_are_skipped(self):
        assert pricing.resolve_unit_price({"custom_price": 0}, {"base_price": 0}, {"hourly_rate": 1500}) == 1500

    def test_nothing_priced_is_free(self):
        assert pricing.resolve_unit_price(None, {"base_price": None}, {"hourly_rate": None}) == 0.0


def test_total_is_unit_price_times_hours():
    assert pricing.calculate_total(2500, 3) == 7500


@pytest.mark.parametrize(
    "total, rate, expected",
    [
        (5000, 0.3, 1500),
        (1500, 0.3, 450),
        # 0.3 * 5 = 1.5 rounds up, not to even
        (5, 0.3, 2),
        (25, 0.3, 8),
        (1000, 0.25, 250),
    ],
)
def test_deposit_rounds_half_up(total, rate, expected):
    assert pricing.calculate_deposit(total, rate) == expected


class TestValidateBookingRequest:
    now = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)

    def test_future_booking_is_accepted(self):
        pricing.validate_booking_request(self.now + timedelta(hours=1), 1, now=self.now)

    def test_past_booking_is_rejected(self):
        with pytest.raises(ValidationFailedError):
            pricing.validate_booking_request(self.now - timedelta(minutes=1), 2, now=self.now)

    def test_booking_at_now_is_rejected(self):
        with pytest.raises(ValidationFailedError):
            pricing.validate_booking_request(self.now, 2, now=self.now)

    def test_zero_hours_is_rejected(self):
        with pytest.raises(ValidationFailedError):
            pricing.validate_booking_request(self.now + timedelta(days=1), 0, now=self.now)

    def test_naive_dates_are_utc(self):
        naive_future = (self.now + timedelta(hours=2)).replace(tzinfo=None)
        pricing.validate_booking_request(naive_future, 1, now=self.now)


def test_quote_contains_all_amounts():
    result = pricing.quote(2500, 2, 0.3, "MZN")
    assert result == {
        "unit_price": 2500.0,
        "duration_hours": 2,
        "total_amount": 5000.0,
        "deposit_amount": 1500.0,
        "deposit_rate": 0.3,
        "currency": "MZN",
    }
