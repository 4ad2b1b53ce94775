# cinema_booking/infrastructure/repositories/booking_repository.py

from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session
from sqlalchemy import func, select, update

from cinema_booking.infrastructure.db.models import Booking, BookingSeat
from cinema_booking.domain.state_machine import BookingStatus


class BookingRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(
        self,
        booking_id: str,
    ) -> Booking | None:

        stmt = select(Booking).where(Booking.id == booking_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def lock_by_id(
        self,
        booking_id: str,
    ) -> Booking | None:

        stmt = (
            select(Booking)
            .where(Booking.id == booking_id)
            .with_for_update()
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def order_id_exists(self, order_id: str) -> bool:
        stmt = select(Booking.id).where(Booking.order_id == order_id)
        return self.db.execute(stmt).first() is not None

    def create_booking(
        self,
        order_id: str,
        user_id: str,
        schedule_id: str,
        seat_ids: list[str],
        total_price: Decimal,
        created_at: datetime,
    ) -> Booking:

        booking = Booking(
            order_id=order_id,
            user_id=user_id,
            schedule_id=schedule_id,
            total_seats=len(seat_ids),
            total_price=total_price,
            status=BookingStatus.PENDING,
            created_at=created_at,
            updated_at=created_at,
        )
        booking.seats = [
            BookingSeat(
                schedule_id=schedule_id,
                seat_id=seat_id,
                created_at=created_at,
            )
            for seat_id in seat_ids
        ]

        self.db.add(booking)
        return booking

    def find_by_user_id(
        self,
        user_id: str,
        limit: int,
        offset: int,
    ) -> list[Booking]:

        stmt = (
            select(Booking)
            .where(Booking.user_id == user_id)
            .order_by(Booking.created_at.desc(), Booking.id)
            .limit(limit)
            .offset(offset)
        )
        return list(self.db.execute(stmt).scalars().all())

    def count_by_user_id(self, user_id: str) -> int:
        stmt = select(func.count(Booking.id)).where(Booking.user_id == user_id)
        return self.db.execute(stmt).scalar_one()

    def find_stale_pending_ids(self, cutoff: datetime) -> list[str]:
        stmt = (
            select(Booking.id)
            .where(Booking.status == BookingStatus.PENDING)
            .where(Booking.created_at < cutoff)
            .order_by(Booking.created_at)
        )
        return list(self.db.execute(stmt).scalars().all())

    def transition_status(
        self,
        booking_id: str,
        expected: BookingStatus,
        new_status: BookingStatus,
        at: datetime,
    ) -> bool:
        """
        Conditional write: only moves the row if it is still in ``expected``.
        Returns False when another writer got there first.
        """

        stmt = (
            update(Booking)
            .where(Booking.id == booking_id)
            .where(Booking.status == expected)
            .values(status=new_status, updated_at=at)
            .execution_options(synchronize_session="fetch")
        )
        result = self.db.execute(stmt)
        return result.rowcount == 1

    def release_seats(self, booking_id: str, at: datetime) -> int:
        stmt = (
            update(BookingSeat)
            .where(BookingSeat.booking_id == booking_id)
            .where(BookingSeat.released_at.is_(None))
            .values(released_at=at)
            .execution_options(synchronize_session="fetch")
        )
        return self.db.execute(stmt).rowcount
