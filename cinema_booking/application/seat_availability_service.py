import logging

from sqlalchemy.orm import Session

from cinema_booking.application.booking_presenter import DATE_FORMAT, TIME_FORMAT
from cinema_booking.application.views import ScheduleSeatMapView, SeatAvailabilityView
from cinema_booking.domain.booking_rules import ensure_identifier
from cinema_booking.domain.exceptions import InvalidStateError, NotFoundError
from cinema_booking.infrastructure.repositories.booking_seat_repository import BookingSeatRepository
from cinema_booking.infrastructure.repositories.catalog_repository import CatalogRepository


logger = logging.getLogger(__name__)


class SeatAvailabilityService:
    """
    Per-showtime seat availability, derived from active bookings.
    Read-only; the booking path re-checks under a lock.
    """

    def __init__(self, db: Session):
        self.db = db
        self.catalog = CatalogRepository(db)
        self.booking_seats = BookingSeatRepository(db)

    def booked_seats(self, schedule_id: str) -> set[str]:
        schedule_id = ensure_identifier(schedule_id, "schedule ID")
        return self.booking_seats.find_booked_seat_ids_by_schedule(schedule_id)

    def availability(
        self,
        hall_id: str,
        schedule_id: str,
    ) -> list[SeatAvailabilityView]:
        hall_id = ensure_identifier(hall_id, "hall ID")
        schedule_id = ensure_identifier(schedule_id, "schedule ID")

        hall = self.catalog.get_hall(hall_id)
        if not hall:
            raise NotFoundError(f"hall {hall_id} not found")

        schedule = self.catalog.get_schedule(schedule_id)
        if not schedule:
            raise NotFoundError(f"schedule {schedule_id} not found")

        if schedule.hall_id != hall.id:
            raise InvalidStateError(
                f"schedule {schedule_id} does not run in hall {hall_id}"
            )

        booked = self.booked_seats(schedule_id)
        seats = self.catalog.list_seats_by_hall(hall.id)

        logger.info(
            "Seat availability checked for schedule %s: %s of %s seats booked",
            schedule_id,
            len(booked),
            len(seats),
        )

        return [
            SeatAvailabilityView(
                seat_id=seat.id,
                seat_number=seat.seat_number,
                seat_row=seat.seat_row,
                seat_column=seat.seat_column,
                is_available=seat.id not in booked,
            )
            for seat in seats
        ]

    def availability_for_schedule(self, schedule_id: str) -> ScheduleSeatMapView:
        schedule_id = ensure_identifier(schedule_id, "schedule ID")
        schedule = self.catalog.get_schedule(schedule_id)
        if not schedule:
            raise NotFoundError(f"schedule {schedule_id} not found")

        return ScheduleSeatMapView(
            schedule_id=schedule.id,
            hall_id=schedule.hall_id,
            show_date=schedule.show_date.strftime(DATE_FORMAT),
            show_time=schedule.show_time.strftime(TIME_FORMAT),
            seats=self.availability(schedule.hall_id, schedule.id),
        )
