# cinema_booking/infrastructure/repositories/session_repository.py

from datetime import datetime

from sqlalchemy.orm import Session
from sqlalchemy import select

from cinema_booking.infrastructure.db.models import User, UserSession


class SessionRepository:

    def __init__(self, db: Session):
        self.db = db

    def find_user_by_valid_token(self, token: str, now: datetime) -> User | None:
        """
        Returns the active user owning a non-revoked, non-expired session.
        """

        stmt = (
            select(User)
            .join(UserSession, UserSession.user_id == User.id)
            .where(UserSession.token == token)
            .where(UserSession.revoked_at.is_(None))
            .where(UserSession.expires_at > now)
            .where(User.is_active.is_(True))
        )
        return self.db.execute(stmt).scalar_one_or_none()
