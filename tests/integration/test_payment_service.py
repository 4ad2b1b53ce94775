import uuid
from decimal import Decimal

import pytest
from sqlalchemy import select

from cinema_booking.application.booking_lifecycle_service import BookingLifecycleService
from cinema_booking.application.booking_service import BookingService
from cinema_booking.application.payment_service import PaymentService
from cinema_booking.domain.exceptions import (
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from cinema_booking.infrastructure.db.models import Booking, Payment


@pytest.fixture
def pending_booking(db, settings, catalog):
    return BookingService(db, settings).create_booking(
        user_id=catalog.customer_id,
        schedule_id=catalog.schedule_id,
        seat_ids=[catalog.seat_ids["A1"], catalog.seat_ids["A2"], catalog.seat_ids["A3"]],
    )


def _payments(db) -> list[Payment]:
    return list(db.execute(select(Payment)).scalars().all())


def test_payment_confirms_booking(db, catalog, pending_booking):
    payment = PaymentService(db).process_payment(
        user_id=catalog.customer_id,
        booking_id=pending_booking.id,
        payment_method_id=catalog.payment_method_id,
        amount=Decimal("150000"),
        transaction_id="TXN-001",
    )

    assert payment.status == "completed"
    assert payment.amount == Decimal("150000")
    assert payment.transaction_id == "TXN-001"
    assert payment.payment_method.name == "Credit Card"

    booking = db.get(Booking, pending_booking.id)
    db.refresh(booking)
    assert booking.status.value == "confirmed"


def test_amount_mismatch_is_rejected(db, catalog, pending_booking):
    with pytest.raises(ValidationError):
        PaymentService(db).process_payment(
            user_id=catalog.customer_id,
            booking_id=pending_booking.id,
            payment_method_id=catalog.payment_method_id,
            amount=Decimal("149999.99"),
        )

    assert _payments(db) == []
    assert db.get(Booking, pending_booking.id).status.value == "pending"


@pytest.mark.parametrize("amount", ["0", "-5", "NaN", "abc"])
def test_invalid_amount_is_rejected(db, catalog, pending_booking, amount):
    with pytest.raises(ValidationError):
        PaymentService(db).process_payment(
            user_id=catalog.customer_id,
            booking_id=pending_booking.id,
            payment_method_id=catalog.payment_method_id,
            amount=amount,
        )


def test_paying_for_someone_elses_booking_is_unauthorized(db, catalog, pending_booking):
    with pytest.raises(UnauthorizedError) as exc_info:
        PaymentService(db).process_payment(
            user_id=catalog.other_customer_id,
            booking_id=pending_booking.id,
            payment_method_id=catalog.payment_method_id,
            amount=Decimal("150000"),
        )
    assert str(exc_info.value) == "unauthorized to process payment for this booking"


def test_cancelled_booking_cannot_be_paid(db, settings, catalog, pending_booking):
    BookingLifecycleService(db, settings).cancel_booking(pending_booking.id)

    with pytest.raises(InvalidStateError) as exc_info:
        PaymentService(db).process_payment(
            user_id=catalog.customer_id,
            booking_id=pending_booking.id,
            payment_method_id=catalog.payment_method_id,
            amount=Decimal("150000"),
        )
    assert str(exc_info.value) == "booking status is cancelled, cannot process payment"
    assert _payments(db) == []


def test_booking_cannot_be_paid_twice(db, catalog, pending_booking):
    service = PaymentService(db)
    service.process_payment(
        user_id=catalog.customer_id,
        booking_id=pending_booking.id,
        payment_method_id=catalog.payment_method_id,
        amount=Decimal("150000"),
    )

    with pytest.raises(InvalidStateError):
        service.process_payment(
            user_id=catalog.customer_id,
            booking_id=pending_booking.id,
            payment_method_id=catalog.payment_method_id,
            amount=Decimal("150000"),
        )
    assert len(_payments(db)) == 1


def test_inactive_payment_method_is_rejected(db, catalog, pending_booking):
    with pytest.raises(InvalidStateError) as exc_info:
        PaymentService(db).process_payment(
            user_id=catalog.customer_id,
            booking_id=pending_booking.id,
            payment_method_id=catalog.inactive_payment_method_id,
            amount=Decimal("150000"),
        )
    assert str(exc_info.value) == "payment method Bank Transfer is not active"


def test_unknown_booking_is_not_found(db, catalog):
    with pytest.raises(NotFoundError):
        PaymentService(db).process_payment(
            user_id=catalog.customer_id,
            booking_id=str(uuid.uuid4()),
            payment_method_id=catalog.payment_method_id,
            amount=Decimal("1"),
        )


def test_only_active_payment_methods_are_listed(db, catalog):
    methods = PaymentService(db).get_payment_methods()
    assert [method.name for method in methods] == ["Credit Card"]
