import logging

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from cinema_booking.application.transactions import utc_now
from cinema_booking.config import Settings
from cinema_booking.infrastructure.db.models import User
from cinema_booking.infrastructure.repositories.session_repository import SessionRepository


logger = logging.getLogger(__name__)

ROLE_ADMIN = "admin"


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_current_user(
    authorization: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> User:
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization token",
        )

    scheme, _, token = authorization.partition(" ")
    if scheme != "Bearer" or not token.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token format. Use: Bearer <token>",
        )

    user = SessionRepository(db).find_user_by_valid_token(token.strip(), utc_now())
    if not user:
        logger.warning("Invalid or expired session presented")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session",
        )
    return user


def require_admin(
    request: Request,
    current_user: User = Depends(get_current_user),
) -> User:
    if current_user.role != ROLE_ADMIN:
        logger.warning(
            "Admin check: non-admin access attempt user_id=%s path=%s",
            current_user.id,
            request.url.path,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user
