# cinema_booking/domain/booking_rules.py

import random
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from uuid import UUID

from cinema_booking.domain.exceptions import ValidationError


ORDER_CODE_PREFIX = "BOOK"


def generate_order_code(
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> str:
    """
    Human readable order code: BOOK-YYYYMMDD-HHMMSS-NNNN.
    Not unique on its own; callers retry on collision.
    """
    now = now or datetime.now(timezone.utc)
    rng = rng or random.SystemRandom()
    suffix = rng.randrange(10000)
    return f"{ORDER_CODE_PREFIX}-{now:%Y%m%d}-{now:%H%M%S}-{suffix:04d}"


def compute_total_price(unit_price: Decimal, seat_count: int) -> Decimal:
    if seat_count <= 0:
        raise ValueError("seat_count must be positive")
    return Decimal(unit_price) * seat_count


def show_starts_at(show_date: date, show_time: time) -> datetime:
    # Schedules are stored as naive wall-clock values in UTC.
    return datetime.combine(show_date, show_time).replace(tzinfo=timezone.utc)


def is_schedule_stale(
    show_date: date,
    show_time: time,
    grace_hours: int,
    now: datetime | None = None,
) -> bool:
    """
    True when the show started more than ``grace_hours`` ago.
    """
    now = now or datetime.now(timezone.utc)
    return show_starts_at(show_date, show_time) < now - timedelta(hours=grace_hours)


def ensure_identifier(value: str, label: str) -> str:
    """
    Normalises a UUID string, raising ValidationError if it is malformed.
    """
    try:
        return str(UUID(str(value)))
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"invalid {label} format {value}") from exc
