"""
Booking price arithmetic.

Plain functions with no database access, so the booking service and
the tests share one implementation:

* the unit (hourly) price is the first non-zero of the model's custom
  price for the service, the catalogue base price and the model's
  hourly rate;
* the total is the unit price times the booked hours;
* the deposit is a share of the total, rounded half-up to a whole unit.
"""

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Mapping, Optional

from booking_marketplace_api.app.core.errors import ValidationFailedError

MIN_DURATION_HOURS = 1


def _field(record: Optional[Mapping[str, Any]], name: str) -> Optional[float]:
    if record is None:
        return None
    try:
        return record[name]
    except (KeyError, IndexError):
        return None


def resolve_unit_price(
    model_service: Optional[Mapping[str, Any]],
    service: Optional[Mapping[str, Any]],
    model: Optional[Mapping[str, Any]],
) -> float:
    """Return the hourly price that applies to a booking.

    Accepts dictionaries or ``sqlite3.Row`` objects.  Missing records
    and zero or NULL prices are skipped.
    """
    for candidate in (
        _field(model_service, "custom_price"),
        _field(service, "base_price"),
        _field(model, "hourly_rate"),
    ):
        if candidate:
            return float(candidate)
    return 0.0


def calculate_total(unit_price: float, duration_hours: int) -> float:
    return float(unit_price) * int(duration_hours)


def calculate_deposit(total: float, rate: float) -> float:
    amount = Decimal(str(total)) * Decimal(str(rate))
    return float(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def validate_booking_request(
    booking_date: datetime, duration_hours: int, now: Optional[datetime] = None
) -> None:
    """Reject bookings in the past or shorter than one hour.

    Naive datetimes are taken to be UTC.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    if _as_naive_utc(booking_date) <= _as_naive_utc(now):
        raise ValidationFailedError("A data da reserva deve ser no futuro.")
    if duration_hours < MIN_DURATION_HOURS:
        raise ValidationFailedError(f"A duração mínima é de {MIN_DURATION_HOURS} hora.")


def quote(unit_price: float, duration_hours: int, rate: float, currency: str) -> dict:
    total = calculate_total(unit_price, duration_hours)
    return {
        "unit_price": float(unit_price),
        "duration_hours": duration_hours,
        "total_amount": total,
        "deposit_amount": calculate_deposit(total, rate),
        "deposit_rate": rate,
        "currency": currency,
    }
