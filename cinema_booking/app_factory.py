import asyncio
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from cinema_booking.api.errors import register_exception_handlers
from cinema_booking.api.routes.routes import router
from cinema_booking.application.booking_lifecycle_service import BookingLifecycleService
from cinema_booking.config import Settings
from cinema_booking.infrastructure.db.models import Base
from cinema_booking.infrastructure.db.session import (
    build_engine,
    build_session_factory,
    get_db_session,
)


logger = logging.getLogger(__name__)


def _wait_for_db(engine: Engine, settings: Settings) -> None:
    # Handles the common case where API starts before Postgres is ready.
    max_retries = settings.db_connect_max_retries
    retry_delay_seconds = settings.db_connect_retry_delay

    for attempt in range(1, max_retries + 1):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info("Database is reachable.")
            return
        except OperationalError:
            if attempt == max_retries:
                logger.exception(
                    "Database not reachable after %s attempts. Check DATABASE_URL and Postgres status.",
                    max_retries,
                )
                raise
            logger.warning(
                "Database not ready (attempt %s/%s). Retrying in %.1f seconds...",
                attempt,
                max_retries,
                retry_delay_seconds,
            )
            time.sleep(retry_delay_seconds)


def _expire_once(session_factory: sessionmaker, settings: Settings) -> int:
    with get_db_session(session_factory) as db:
        return len(BookingLifecycleService(db, settings).expire_pending_bookings())


async def _expiry_sweep_loop(session_factory: sessionmaker, settings: Settings) -> None:
    """Background task: expire abandoned pending bookings on an interval."""
    while True:
        try:
            count = await asyncio.to_thread(_expire_once, session_factory, settings)
            if count:
                logger.info("Expiry sweep expired %d booking(s).", count)
        except Exception:
            logger.exception("Error during pending booking expiry sweep.")
        await asyncio.sleep(settings.expiry_sweep_interval_seconds)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    engine: Engine = app.state.engine

    _wait_for_db(engine, settings)
    Base.metadata.create_all(bind=engine)

    sweep_task = None
    if settings.expiry_sweep_interval_seconds > 0:
        sweep_task = asyncio.create_task(
            _expiry_sweep_loop(app.state.session_factory, settings)
        )
    yield

    if sweep_task:
        sweep_task.cancel()
        try:
            await sweep_task
        except asyncio.CancelledError:
            pass
    engine.dispose()


def create_app(settings: Settings) -> FastAPI:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    engine = build_engine(settings.database_url)

    app = FastAPI(title="Cinema Booking Service", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    register_exception_handlers(app)
    app.include_router(router)
    return app
