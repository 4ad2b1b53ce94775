import logging
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session


logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def rollback_safely(db: Session, operation: str) -> None:
    """
    Rolls back the current unit of work. A failing rollback is logged for
    operators and never replaces the error the caller is about to see.
    """
    try:
        db.rollback()
    except SQLAlchemyError:
        logger.exception("Rollback failed during %s; manual cleanup may be required", operation)
