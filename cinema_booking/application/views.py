from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class PaymentMethodView:
    id: str
    name: str
    is_active: bool


@dataclass(frozen=True)
class PaymentView:
    id: str
    booking_id: str
    payment_method: PaymentMethodView
    amount: Decimal
    status: str
    transaction_id: str | None
    created_at: datetime


@dataclass(frozen=True)
class ScheduleDetails:
    movie_title: str = ""
    cinema_name: str = ""
    hall_number: int = 0
    show_date: str = ""
    show_time: str = ""
    price: Decimal = Decimal("0")


@dataclass(frozen=True)
class BookingView:
    id: str
    order_id: str
    user_id: str
    schedule_id: str
    total_seats: int
    total_price: Decimal
    status: str
    created_at: datetime
    movie_title: str = ""
    cinema_name: str = ""
    hall_number: int = 0
    show_date: str = ""
    show_time: str = ""
    seat_numbers: list[str] = field(default_factory=list)
    payment: PaymentView | None = None


@dataclass(frozen=True)
class BookingDetailView:
    booking: BookingView
    schedule_details: ScheduleDetails


@dataclass(frozen=True)
class SeatAvailabilityView:
    seat_id: str
    seat_number: str
    seat_row: str
    seat_column: int
    is_available: bool


@dataclass(frozen=True)
class ScheduleSeatMapView:
    schedule_id: str
    hall_id: str
    show_date: str
    show_time: str
    seats: list[SeatAvailabilityView]


@dataclass(frozen=True)
class Page:
    items: list
    page: int
    per_page: int
    total: int

    @property
    def total_pages(self) -> int:
        if self.per_page <= 0:
            return 0
        return (self.total + self.per_page - 1) // self.per_page
