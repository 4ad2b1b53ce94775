import logging
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cinema_booking.application.booking_presenter import BookingPresenter
from cinema_booking.application.transactions import rollback_safely, utc_now
from cinema_booking.application.views import BookingDetailView, BookingView, Page
from cinema_booking.config import Settings
from cinema_booking.domain.booking_rules import ensure_identifier
from cinema_booking.domain.exceptions import (
    CinemaBookingError,
    InternalError,
    InvalidStateError,
    NotFoundError,
)
from cinema_booking.domain.state_machine import BookingStateMachine, BookingStatus
from cinema_booking.infrastructure.repositories.booking_repository import BookingRepository
from cinema_booking.infrastructure.repositories.booking_seat_repository import BookingSeatRepository
from cinema_booking.infrastructure.repositories.catalog_repository import CatalogRepository
from cinema_booking.infrastructure.repositories.payment_repository import PaymentRepository


logger = logging.getLogger(__name__)

DEFAULT_PER_PAGE = 10
MAX_PER_PAGE = 100


class BookingLifecycleService:
    """Cancellation, expiry and read-side lookups for bookings."""

    def __init__(
        self,
        db: Session,
        settings: Settings,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.settings = settings
        self.clock = clock
        self.booking_repository = BookingRepository(db)
        self.presenter = BookingPresenter(
            CatalogRepository(db),
            BookingSeatRepository(db),
            PaymentRepository(db),
        )

    def cancel_booking(self, booking_id: str) -> BookingView:
        booking_id = ensure_identifier(booking_id, "booking ID")

        try:
            booking = self.booking_repository.lock_by_id(booking_id)
            if not booking:
                raise NotFoundError(f"booking {booking_id} not found")

            current = booking.status
            BookingStateMachine.validate_transition(current, BookingStatus.CANCELLED)

            now = self.clock()
            moved = self.booking_repository.transition_status(
                booking.id,
                expected=current,
                new_status=BookingStatus.CANCELLED,
                at=now,
            )
            if not moved:
                logger.warning("Booking %s changed status during cancellation", booking.id)
                raise InvalidStateError("booking status changed, cannot cancel")

            self.booking_repository.release_seats(booking.id, now)
            self.db.commit()
        except CinemaBookingError as exc:
            rollback_safely(self.db, "cancel booking")
            logger.warning("Cancel booking %s rejected: %s", booking_id, exc)
            raise
        except SQLAlchemyError as exc:
            logger.exception("Failed to cancel booking %s", booking_id)
            rollback_safely(self.db, "cancel booking")
            raise InternalError(f"failed to cancel booking {booking_id}") from exc

        logger.info(
            "Booking cancelled: booking_id=%s order_id=%s previous_status=%s",
            booking.id,
            booking.order_id,
            current.value,
        )
        return self.presenter.booking_view(booking, include_payment=True)

    def expire_pending_bookings(self, now: datetime | None = None) -> list[str]:
        """
        Moves pending bookings older than the configured TTL to expired and
        releases their seats. Returns the expired booking ids.
        """
        now = now or self.clock()
        cutoff = now - timedelta(minutes=self.settings.pending_booking_ttl_minutes)

        expired: list[str] = []
        try:
            for booking_id in self.booking_repository.find_stale_pending_ids(cutoff):
                moved = self.booking_repository.transition_status(
                    booking_id,
                    expected=BookingStatus.PENDING,
                    new_status=BookingStatus.EXPIRED,
                    at=now,
                )
                if not moved:
                    # Paid or cancelled since the scan.
                    continue
                self.booking_repository.release_seats(booking_id, now)
                expired.append(booking_id)
            self.db.commit()
        except SQLAlchemyError as exc:
            logger.exception("Failed to expire pending bookings")
            rollback_safely(self.db, "expire pending bookings")
            raise InternalError("failed to expire pending bookings") from exc

        if expired:
            logger.info("Expired %d pending booking(s) created before %s", len(expired), cutoff)
        return expired

    def get_booking_detail(self, booking_id: str) -> BookingDetailView:
        booking_id = ensure_identifier(booking_id, "booking ID")
        booking = self.booking_repository.get_by_id(booking_id)
        if not booking:
            raise NotFoundError(f"booking {booking_id} not found")

        details = self.presenter.schedule_details(booking.schedule_id)
        return BookingDetailView(
            booking=self.presenter.booking_view(booking, details=details, include_payment=True),
            schedule_details=details,
        )

    def list_user_bookings(
        self,
        user_id: str,
        page: int = 1,
        per_page: int = DEFAULT_PER_PAGE,
    ) -> Page:
        user_id = ensure_identifier(user_id, "user ID")
        page = max(page, 1)
        per_page = min(max(per_page, 1), MAX_PER_PAGE)

        bookings = self.booking_repository.find_by_user_id(
            user_id,
            limit=per_page,
            offset=(page - 1) * per_page,
        )
        total = self.booking_repository.count_by_user_id(user_id)

        logger.info(
            "User bookings retrieved: user_id=%s count=%s total=%s page=%s per_page=%s",
            user_id,
            len(bookings),
            total,
            page,
            per_page,
        )
        return Page(
            items=[self.presenter.booking_view(b, include_payment=True) for b in bookings],
            page=page,
            per_page=per_page,
            total=total,
        )
