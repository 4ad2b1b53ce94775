# cinema_booking/infrastructure/repositories/payment_repository.py

from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session
from sqlalchemy import select

from cinema_booking.infrastructure.db.models import Payment
from cinema_booking.domain.state_machine import PaymentStatus


class PaymentRepository:

    def __init__(self, db: Session):
        self.db = db

    def create_payment(
        self,
        booking_id: str,
        payment_method_id: str,
        amount: Decimal,
        status: PaymentStatus,
        transaction_id: str | None,
        created_at: datetime,
    ) -> Payment:

        payment = Payment(
            booking_id=booking_id,
            payment_method_id=payment_method_id,
            amount=amount,
            status=status,
            transaction_id=transaction_id,
            created_at=created_at,
            updated_at=created_at,
        )
        self.db.add(payment)
        return payment

    def get_latest_by_booking_id(self, booking_id: str) -> Payment | None:
        stmt = (
            select(Payment)
            .where(Payment.booking_id == booking_id)
            .order_by(Payment.created_at.desc())
            .limit(1)
        )
        return self.db.execute(stmt).scalar_one_or_none()
