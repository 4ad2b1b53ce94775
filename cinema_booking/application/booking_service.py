import logging
import random
from datetime import datetime
from typing import Callable, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from cinema_booking.application.booking_presenter import BookingPresenter
from cinema_booking.application.transactions import rollback_safely, utc_now
from cinema_booking.application.views import BookingView
from cinema_booking.config import Settings
from cinema_booking.domain.booking_rules import (
    compute_total_price,
    ensure_identifier,
    generate_order_code,
    is_schedule_stale,
)
from cinema_booking.domain.exceptions import (
    CinemaBookingError,
    ConflictError,
    InternalError,
    InvalidStateError,
    NotFoundError,
    SeatConflictError,
    ValidationError,
)
from cinema_booking.infrastructure.db.models import Schedule, Seat
from cinema_booking.infrastructure.repositories.booking_repository import BookingRepository
from cinema_booking.infrastructure.repositories.booking_seat_repository import BookingSeatRepository
from cinema_booking.infrastructure.repositories.catalog_repository import CatalogRepository
from cinema_booking.infrastructure.repositories.payment_repository import PaymentRepository


logger = logging.getLogger(__name__)

# Constraint names as reported by PostgreSQL, column lists as reported by SQLite.
SEAT_CONSTRAINT_MARKERS = (
    "uq_booking_seats_active_schedule_seat",
    "booking_seats.schedule_id, booking_seats.seat_id",
)
ORDER_ID_CONSTRAINT_MARKERS = (
    "uq_booking_order_id",
    "bookings.order_id",
)


class BookingService:
    """Application service coordinating the seat booking workflow."""

    def __init__(
        self,
        db: Session,
        settings: Settings,
        clock: Callable[[], datetime] = utc_now,
        rng: random.Random | None = None,
    ):
        self.db = db
        self.settings = settings
        self.clock = clock
        self.rng = rng
        self.booking_repository = BookingRepository(db)
        self.booking_seat_repository = BookingSeatRepository(db)
        self.catalog = CatalogRepository(db)
        self.presenter = BookingPresenter(
            self.catalog,
            self.booking_seat_repository,
            PaymentRepository(db),
        )

    def create_booking(
        self,
        user_id: str,
        schedule_id: str,
        seat_ids: Sequence[str],
        payment_method_id: str | None = None,
    ) -> BookingView:
        """
        Reserve ``seat_ids`` of a schedule for a user.

        The availability check and the inserts share one transaction with the
        schedule row locked; the partial unique index on active
        (schedule_id, seat_id) rows is the final guard. Either every seat is
        booked or none is.
        """
        user_id = ensure_identifier(user_id, "user ID")
        schedule_id = ensure_identifier(schedule_id, "schedule ID")
        seat_ids = self._normalise_seat_ids(seat_ids)

        schedule = self.catalog.get_schedule(schedule_id)
        if not schedule:
            raise NotFoundError(f"schedule {schedule_id} not found")

        now = self.clock()
        if is_schedule_stale(
            schedule.show_date,
            schedule.show_time,
            self.settings.booking_grace_hours,
            now=now,
        ):
            logger.warning("Rejected booking for past schedule %s", schedule_id)
            raise InvalidStateError("cannot book for past schedule")

        if payment_method_id is not None:
            payment_method_id = ensure_identifier(payment_method_id, "payment method ID")
            if not self.catalog.get_payment_method(payment_method_id):
                raise NotFoundError(f"payment method {payment_method_id} not found")

        seats = self._resolve_seats(schedule, seat_ids)

        try:
            self.catalog.lock_schedule(schedule.id)
            booked = self.booking_seat_repository.find_booked_seat_ids_by_schedule(schedule.id)
            for seat_id in seat_ids:
                if seat_id in booked:
                    raise SeatConflictError(seats[seat_id].seat_number)

            total_price = compute_total_price(schedule.price, len(seat_ids))
            booking = self.booking_repository.create_booking(
                order_id=self._next_order_id(now),
                user_id=user_id,
                schedule_id=schedule.id,
                seat_ids=seat_ids,
                total_price=total_price,
                created_at=now,
            )
            self.db.flush()
            self.db.commit()
        except IntegrityError as exc:
            rollback_safely(self.db, "create booking")
            raise self._translate_integrity_error(exc, schedule.id, seat_ids, seats) from exc
        except CinemaBookingError as exc:
            rollback_safely(self.db, "create booking")
            logger.warning(
                "Create booking rejected for user %s schedule %s: %s",
                user_id,
                schedule_id,
                exc,
            )
            raise
        except SQLAlchemyError as exc:
            logger.exception(
                "Failed to create booking for user %s schedule %s",
                user_id,
                schedule_id,
            )
            rollback_safely(self.db, "create booking")
            raise InternalError("failed to create booking") from exc

        logger.info(
            "Booking created: booking_id=%s order_id=%s user_id=%s seat_count=%s total_price=%s",
            booking.id,
            booking.order_id,
            user_id,
            len(seat_ids),
            total_price,
        )

        return self.presenter.booking_view(booking)

    # -----------------------------
    # Helpers
    # -----------------------------
    @staticmethod
    def _normalise_seat_ids(seat_ids: Sequence[str]) -> list[str]:
        if not seat_ids:
            raise ValidationError("validation failed: at least one seat is required")

        normalised = [ensure_identifier(seat_id, "seat ID") for seat_id in seat_ids]
        if len(set(normalised)) != len(normalised):
            raise ValidationError("validation failed: duplicate seat IDs in request")
        return normalised

    def _resolve_seats(self, schedule: Schedule, seat_ids: list[str]) -> dict[str, Seat]:
        seats = self.catalog.get_seats(seat_ids)
        for seat_id in seat_ids:
            seat = seats.get(seat_id)
            if not seat:
                raise NotFoundError(f"seat {seat_id} not found")
            if seat.hall_id != schedule.hall_id:
                raise InvalidStateError(f"seat {seat.seat_number} not in schedule hall")
        return seats

    def _next_order_id(self, now: datetime) -> str:
        for _ in range(self.settings.order_code_max_attempts):
            order_id = generate_order_code(now, self.rng)
            if not self.booking_repository.order_id_exists(order_id):
                return order_id
            logger.warning("Order code collision on %s, regenerating", order_id)
        raise ConflictError("could not allocate a unique order code, please retry")

    def _translate_integrity_error(
        self,
        exc: IntegrityError,
        schedule_id: str,
        seat_ids: list[str],
        seats: dict[str, Seat],
    ) -> CinemaBookingError:
        detail = str(exc.orig)

        if any(marker in detail for marker in ORDER_ID_CONSTRAINT_MARKERS):
            logger.warning("Order code collided at insert for schedule %s", schedule_id)
            return ConflictError("duplicate order code, please retry")

        if not any(marker in detail for marker in SEAT_CONSTRAINT_MARKERS):
            logger.exception(
                "Unexpected integrity error creating booking for schedule %s",
                schedule_id,
            )
            return InternalError("failed to create booking")

        # Another request committed first; name the seat it took.
        booked = self.booking_seat_repository.find_booked_seat_ids_by_schedule(schedule_id)
        taken = next((seat_id for seat_id in seat_ids if seat_id in booked), None)
        if taken is None:
            logger.warning("Seats on schedule %s claimed concurrently", schedule_id)
            return ConflictError("requested seats are already booked")

        logger.warning(
            "Seat %s on schedule %s claimed concurrently",
            seats[taken].seat_number,
            schedule_id,
        )
        return SeatConflictError(seats[taken].seat_number)
