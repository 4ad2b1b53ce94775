# cinema_booking/infrastructure/repositories/booking_seat_repository.py

from sqlalchemy.orm import Session
from sqlalchemy import select

from cinema_booking.infrastructure.db.models import Booking, BookingSeat, Seat
from cinema_booking.domain.state_machine import ACTIVE_BOOKING_STATUSES


class BookingSeatRepository:

    def __init__(self, db: Session):
        self.db = db

    def find_booked_seat_ids_by_schedule(self, schedule_id: str) -> set[str]:
        """
        Seats held by pending or confirmed bookings of a schedule.
        Derived from the parent booking status.
        """

        stmt = (
            select(BookingSeat.seat_id)
            .join(Booking, BookingSeat.booking_id == Booking.id)
            .where(Booking.schedule_id == schedule_id)
            .where(Booking.status.in_(ACTIVE_BOOKING_STATUSES))
            .distinct()
        )
        return set(self.db.execute(stmt).scalars().all())

    def find_seat_numbers_by_booking_id(self, booking_id: str) -> list[str]:
        stmt = (
            select(Seat.seat_number)
            .join(BookingSeat, BookingSeat.seat_id == Seat.id)
            .where(BookingSeat.booking_id == booking_id)
            .order_by(Seat.seat_row, Seat.seat_column)
        )
        return list(self.db.execute(stmt).scalars().all())
