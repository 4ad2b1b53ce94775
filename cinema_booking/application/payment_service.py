import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cinema_booking.application.booking_presenter import payment_method_view, payment_view
from cinema_booking.application.transactions import rollback_safely, utc_now
from cinema_booking.application.views import PaymentMethodView, PaymentView
from cinema_booking.domain.booking_rules import ensure_identifier
from cinema_booking.domain.exceptions import (
    CinemaBookingError,
    InternalError,
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from cinema_booking.domain.state_machine import (
    BookingStateMachine,
    BookingStatus,
    PaymentStatus,
)
from cinema_booking.infrastructure.repositories.booking_repository import BookingRepository
from cinema_booking.infrastructure.repositories.catalog_repository import CatalogRepository
from cinema_booking.infrastructure.repositories.payment_repository import PaymentRepository


logger = logging.getLogger(__name__)


class PaymentService:
    """Settles payments for pending bookings."""

    def __init__(
        self,
        db: Session,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.clock = clock
        self.booking_repository = BookingRepository(db)
        self.payment_repository = PaymentRepository(db)
        self.catalog = CatalogRepository(db)

    def process_payment(
        self,
        user_id: str,
        booking_id: str,
        payment_method_id: str,
        amount: Decimal,
        transaction_id: str | None = None,
    ) -> PaymentView:
        """
        Record a completed payment and confirm the booking.

        Settlement is simulated: the payment is stored as completed in the
        same transaction that moves the booking from pending to confirmed.
        If the booking left pending concurrently, nothing is persisted.
        """
        user_id = ensure_identifier(user_id, "user ID")
        booking_id = ensure_identifier(booking_id, "booking ID")
        payment_method_id = ensure_identifier(payment_method_id, "payment method ID")
        amount = self._parse_amount(amount)

        try:
            booking = self.booking_repository.lock_by_id(booking_id)
            if not booking:
                raise NotFoundError(f"booking {booking_id} not found")

            if booking.user_id != user_id:
                raise UnauthorizedError("unauthorized to process payment for this booking")

            if booking.status != BookingStatus.PENDING:
                raise InvalidStateError(
                    f"booking status is {booking.status.value}, cannot process payment"
                )

            if amount != booking.total_price:
                raise ValidationError(
                    f"payment amount {amount} does not match booking total {booking.total_price}"
                )

            method = self.catalog.get_payment_method(payment_method_id)
            if not method:
                raise NotFoundError(f"payment method {payment_method_id} not found")
            if not method.is_active:
                raise InvalidStateError(f"payment method {method.name} is not active")

            BookingStateMachine.validate_transition(booking.status, BookingStatus.CONFIRMED)

            now = self.clock()
            payment = self.payment_repository.create_payment(
                booking_id=booking.id,
                payment_method_id=method.id,
                amount=amount,
                status=PaymentStatus.COMPLETED,
                transaction_id=transaction_id,
                created_at=now,
            )
            self.db.flush()

            moved = self.booking_repository.transition_status(
                booking.id,
                expected=BookingStatus.PENDING,
                new_status=BookingStatus.CONFIRMED,
                at=now,
            )
            if not moved:
                logger.warning(
                    "Booking %s left pending while payment was processed; payment discarded",
                    booking.id,
                )
                raise InvalidStateError("booking status changed, cannot process payment")

            self.db.commit()
        except CinemaBookingError as exc:
            rollback_safely(self.db, "process payment")
            logger.warning("Process payment rejected for booking %s: %s", booking_id, exc)
            raise
        except SQLAlchemyError as exc:
            logger.exception("Failed to process payment for booking %s", booking_id)
            rollback_safely(self.db, "process payment")
            raise InternalError("failed to process payment") from exc

        logger.info(
            "Payment processed: payment_id=%s booking_id=%s payment_method=%s amount=%s status=%s",
            payment.id,
            booking.id,
            method.name,
            amount,
            payment.status.value,
        )
        return payment_view(payment, method)

    def get_payment_methods(self) -> list[PaymentMethodView]:
        methods = self.catalog.list_active_payment_methods()
        logger.info("Payment methods retrieved: %s", len(methods))
        return [payment_method_view(method) for method in methods]

    @staticmethod
    def _parse_amount(amount) -> Decimal:
        try:
            value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"validation failed: invalid amount {amount}") from exc
        if not value.is_finite() or value <= 0:
            raise ValidationError(f"validation failed: invalid amount {amount}")
        return value
