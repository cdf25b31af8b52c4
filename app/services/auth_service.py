# File: app/services/auth_service.py

"""
Authentication service.

Contains:
  - sign-in (optionally creating a temporary user)
  - token -> user lookup
  - sign-out (token revocation)
"""

import logging
import secrets
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from app.core.security import create_access_token
from app.models.user import AuthToken, User

logger = logging.getLogger(__name__)


@dataclass
class SignInResult:
    success: bool
    token: str = ""
    username: str = ""
    uuid: str = ""
    error: Optional[str] = None


def sign_in(db: Session, *, attempt_temp_user_creation: bool = False) -> SignInResult:
    """
    Create a temporary user and issue a session token for it.

    There are no credentials, so an existing account can only be reached
    with a token it already holds. Without `attempt_temp_user_creation`
    the sign-in fails.
    """
    if not attempt_temp_user_creation:
        return SignInResult(success=False, error="temp_user_creation_required")

    user = User(
        uuid=str(uuid.uuid4()),
        username=f"temp_{secrets.token_hex(6)}",
        is_temp=True,
    )
    db.add(user)

    token = create_access_token()
    db.add(AuthToken(token=token, user_uuid=user.uuid))
    db.commit()
    logger.info("[AUTH] Signed in %s (temp=%s)", user.username, user.is_temp)
    return SignInResult(success=True, token=token, username=user.username, uuid=user.uuid)


def get_user_for_token(db: Session, token: Optional[str]) -> Optional[User]:
    if not token:
        return None
    record = db.get(AuthToken, token)
    if record is None:
        return None
    return db.get(User, record.user_uuid)


def sign_out(db: Session, token: Optional[str]) -> bool:
    if not token:
        return False
    record = db.get(AuthToken, token)
    if record is None:
        return False
    db.delete(record)
    db.commit()
    return True
