# File: app/api/deps.py

from collections.abc import Generator
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.core.security import parse_bearer_token
from app.db.session import SessionLocal
from app.models.user import User
from app.services.auth_service import get_user_for_token
from app.services.backend_session import BackendSession, open_backend_session


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that provides a SQLAlchemy session.

    Usage in route functions:
        db: Session = Depends(get_db)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_token(authorization: Optional[str] = Header(default=None)) -> Optional[str]:
    return parse_bearer_token(authorization)


def get_current_user(
    token: Optional[str] = Depends(get_token),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """
    The signed-in user, or None. Routes decide how to answer anonymous
    callers, so this never raises.
    """
    return get_user_for_token(db, token)


def get_backend_session(
    token: Optional[str] = Depends(get_token),
    user: Optional[User] = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> BackendSession:
    return open_backend_session(db, user, token=token)
