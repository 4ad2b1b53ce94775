from datetime import datetime, time, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from cinema_booking.app_factory import create_app
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


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'cinema.db'}",
        db_connect_max_retries=1,
        db_connect_retry_delay=0,
    )


@pytest.fixture
def engine(settings):
    engine = build_engine(settings.database_url)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


def _add_user(db, username: str, role: str, token: str) -> User:
    user = User(username=username, email=f"{username}@example.com", role=role)
    db.add(user)
    db.flush()
    db.add(
        UserSession(
            user_id=user.id,
            token=token,
            expires_at=datetime.now(timezone.utc) + timedelta(days=1),
        )
    )
    return user


@pytest.fixture
def catalog(session_factory):
    """
    One cinema with two halls. Hall 1 has seats A1-A5, hall 2 has B1.
    The main schedule plays tomorrow at 19:30 for 50000 per seat.
    """
    db = session_factory()
    try:
        movie = Movie(title="The Last Projectionist", duration_in_minutes=128)
        cinema = Cinema(name="Grand Cinema Central Park", city="Jakarta")
        db.add_all([movie, cinema])
        db.flush()

        hall = Hall(cinema_id=cinema.id, hall_number=1, total_seats=5)
        other_hall = Hall(cinema_id=cinema.id, hall_number=2, total_seats=1)
        db.add_all([hall, other_hall])
        db.flush()

        seats = [
            Seat(hall_id=hall.id, seat_number=f"A{col}", seat_row="A", seat_column=col)
            for col in range(1, 6)
        ]
        foreign_seat = Seat(hall_id=other_hall.id, seat_number="B1", seat_row="B", seat_column=1)
        db.add_all(seats + [foreign_seat])

        tomorrow = (datetime.now(timezone.utc) + timedelta(days=1)).date()
        three_days_ago = (datetime.now(timezone.utc) - timedelta(days=3)).date()
        schedule = Schedule(
            movie_id=movie.id,
            hall_id=hall.id,
            show_date=tomorrow,
            show_time=time(19, 30),
            price=Decimal("50000"),
        )
        past_schedule = Schedule(
            movie_id=movie.id,
            hall_id=hall.id,
            show_date=three_days_ago,
            show_time=time(19, 30),
            price=Decimal("50000"),
        )
        card = PaymentMethod(name="Credit Card", is_active=True)
        transfer = PaymentMethod(name="Bank Transfer", is_active=False)
        db.add_all([schedule, past_schedule, card, transfer])

        customer = _add_user(db, "customer", "customer", "customer-token")
        other_customer = _add_user(db, "other", "customer", "other-token")
        admin = _add_user(db, "admin", "admin", "admin-token")
        db.commit()

        return SimpleNamespace(
            movie_id=movie.id,
            cinema_id=cinema.id,
            hall_id=hall.id,
            other_hall_id=other_hall.id,
            seat_ids={seat.seat_number: seat.id for seat in seats},
            foreign_seat_id=foreign_seat.id,
            schedule_id=schedule.id,
            past_schedule_id=past_schedule.id,
            payment_method_id=card.id,
            inactive_payment_method_id=transfer.id,
            customer_id=customer.id,
            other_customer_id=other_customer.id,
            admin_id=admin.id,
            customer_token="customer-token",
            other_token="other-token",
            admin_token="admin-token",
        )
    finally:
        db.close()


@pytest.fixture
def client(settings, engine, catalog):
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    def _headers(token: str) -> dict:
        return {"Authorization": f"Bearer {token}"}

    return _headers
