from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import select

from cinema_booking.config import Settings
from cinema_booking.infrastructure.db.models import (
    Base,
    Cinema,
    Hall,
    Movie,
    PaymentMethod,
    Schedule,
    Seat,
    User,
    UserSession,
)
from cinema_booking.infrastructure.db.session import build_engine, build_session_factory


SEAT_ROWS = "ABCDE"
SEATS_PER_ROW = 10


def _show_at(days_from_now: int, hour: int, minute: int) -> datetime:
    now = datetime.now(timezone.utc)
    target = now + timedelta(days=days_from_now)
    return target.replace(hour=hour, minute=minute, second=0, microsecond=0)


def seed_catalog(db) -> None:
    cinema = db.execute(
        select(Cinema).where(Cinema.name == "Grand Cinema Central Park")
    ).scalar_one_or_none()
    if cinema:
        return

    cinema = Cinema(name="Grand Cinema Central Park", city="Jakarta")
    db.add(cinema)
    db.flush()

    movie_defs = [
        {"title": "The Last Projectionist", "duration_in_minutes": 128},
        {"title": "Monsoon Letters", "duration_in_minutes": 104},
    ]
    movies = []
    for item in movie_defs:
        movie = Movie(**item, release_status="now_playing")
        db.add(movie)
        movies.append(movie)
    db.flush()

    for hall_number in (1, 2):
        hall = Hall(
            cinema_id=cinema.id,
            hall_number=hall_number,
            total_seats=len(SEAT_ROWS) * SEATS_PER_ROW,
        )
        db.add(hall)
        db.flush()

        for row in SEAT_ROWS:
            for column in range(1, SEATS_PER_ROW + 1):
                db.add(
                    Seat(
                        hall_id=hall.id,
                        seat_number=f"{row}{column}",
                        seat_row=row,
                        seat_column=column,
                        is_available=True,
                    )
                )

        for day in range(1, 4):
            for movie, hour in zip(movies, (14, 19)):
                show_at = _show_at(days_from_now=day, hour=hour, minute=30)
                db.add(
                    Schedule(
                        movie_id=movie.id,
                        hall_id=hall.id,
                        show_date=show_at.date(),
                        show_time=show_at.time(),
                        price=Decimal("50000"),
                    )
                )


def seed_payment_methods(db) -> None:
    for name, active in (("Credit Card", True), ("E-Wallet", True), ("Bank Transfer", False)):
        existing = db.execute(
            select(PaymentMethod).where(PaymentMethod.name == name)
        ).scalar_one_or_none()
        if existing:
            existing.is_active = active
            continue
        db.add(PaymentMethod(name=name, is_active=active))


def seed_users(db) -> list[tuple[str, str]]:
    tokens = []
    for username, role, token in (
        ("demo-customer", "customer", "demo-customer-token"),
        ("demo-admin", "admin", "demo-admin-token"),
    ):
        user = db.execute(
            select(User).where(User.username == username)
        ).scalar_one_or_none()
        if not user:
            user = User(username=username, email=f"{username}@example.com", role=role)
            db.add(user)
            db.flush()

        session = db.execute(
            select(UserSession).where(UserSession.token == token)
        ).scalar_one_or_none()
        expires_at = datetime.now(timezone.utc) + timedelta(days=30)
        if session:
            session.expires_at = expires_at
            session.revoked_at = None
        else:
            db.add(UserSession(user_id=user.id, token=token, expires_at=expires_at))
        tokens.append((username, token))
    return tokens


def main() -> None:
    settings = Settings.from_env()
    engine = build_engine(settings.database_url)
    Base.metadata.create_all(bind=engine)

    db = build_session_factory(engine)()
    try:
        seed_catalog(db)
        seed_payment_methods(db)
        tokens = seed_users(db)
        db.commit()
        print("Seed complete: cinema, halls, seats, schedules and payment methods added.")
        for username, token in tokens:
            print(f"  {username}: Authorization: Bearer {token}")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
