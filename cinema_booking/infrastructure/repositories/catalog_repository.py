# cinema_booking/infrastructure/repositories/catalog_repository.py

from sqlalchemy.orm import Session
from sqlalchemy import select

from cinema_booking.infrastructure.db.models import (
    Cinema,
    Hall,
    Movie,
    PaymentMethod,
    Schedule,
    Seat,
)


class CatalogRepository:
    """Read-only lookups against catalog tables owned by other services."""

    def __init__(self, db: Session):
        self.db = db

    def get_schedule(self, schedule_id: str) -> Schedule | None:
        stmt = select(Schedule).where(Schedule.id == schedule_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def lock_schedule(self, schedule_id: str) -> Schedule | None:
        """
        SELECT ... FOR UPDATE
        Serialises seat claims for one showtime.
        """

        stmt = (
            select(Schedule)
            .where(Schedule.id == schedule_id)
            .with_for_update()
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_hall(self, hall_id: str) -> Hall | None:
        stmt = select(Hall).where(Hall.id == hall_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_seats(self, seat_ids: list[str]) -> dict[str, Seat]:
        if not seat_ids:
            return {}
        stmt = select(Seat).where(Seat.id.in_(seat_ids))
        return {seat.id: seat for seat in self.db.execute(stmt).scalars().all()}

    def list_seats_by_hall(self, hall_id: str) -> list[Seat]:
        stmt = (
            select(Seat)
            .where(Seat.hall_id == hall_id)
            .order_by(Seat.seat_row, Seat.seat_column)
        )
        return list(self.db.execute(stmt).scalars().all())

    def get_movie(self, movie_id: str) -> Movie | None:
        stmt = select(Movie).where(Movie.id == movie_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_cinema(self, cinema_id: str) -> Cinema | None:
        stmt = select(Cinema).where(Cinema.id == cinema_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_payment_method(self, payment_method_id: str) -> PaymentMethod | None:
        stmt = select(PaymentMethod).where(PaymentMethod.id == payment_method_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def list_active_payment_methods(self) -> list[PaymentMethod]:
        stmt = (
            select(PaymentMethod)
            .where(PaymentMethod.is_active.is_(True))
            .order_by(PaymentMethod.name)
        )
        return list(self.db.execute(stmt).scalars().all())
