from datetime import datetime
from decimal import Decimal
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, UUID4


T = TypeVar("T")


class CreateBookingRequest(BaseModel):
    schedule_id: UUID4
    seat_ids: list[UUID4] = Field(min_length=1)
    payment_method_id: UUID4 | None = None


class ProcessPaymentRequest(BaseModel):
    booking_id: UUID4
    payment_method_id: UUID4
    amount: Decimal = Field(gt=0)
    transaction_id: str | None = Field(default=None, max_length=128)


class PaymentMethodResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    is_active: bool


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    booking_id: str
    payment_method: PaymentMethodResponse
    amount: Decimal
    status: str
    transaction_id: str | None = None
    created_at: datetime


class BookingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    order_id: str
    user_id: str
    schedule_id: str
    movie_title: str
    cinema_name: str
    hall_number: int
    show_date: str
    show_time: str
    total_seats: int
    total_price: Decimal
    status: str
    seat_numbers: list[str]
    payment: PaymentResponse | None = None
    created_at: datetime


class ScheduleDetailsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    movie_title: str
    cinema_name: str
    hall_number: int
    show_date: str
    show_time: str
    price: Decimal


class BookingDetailResponse(BookingResponse):
    schedule_details: ScheduleDetailsResponse


class SeatAvailabilityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    seat_id: str
    seat_number: str
    seat_row: str
    seat_column: int
    is_available: bool


class ScheduleSeatMapResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    schedule_id: str
    hall_id: str
    show_date: str
    show_time: str
    seats: list[SeatAvailabilityResponse]


class ExpireBookingsResponse(BaseModel):
    expired_count: int
    booking_ids: list[str]


class PaginationMeta(BaseModel):
    total: int
    page: int
    per_page: int
    total_pages: int


class PaginatedData(BaseModel, Generic[T]):
    data: list[T]
    pagination: PaginationMeta


class Envelope(BaseModel, Generic[T]):
    status: bool = True
    message: str = "success"
    data: T | None = None


class ErrorResponse(BaseModel):
    status: bool = False
    message: str
    error: str
    errors: Any | None = None
