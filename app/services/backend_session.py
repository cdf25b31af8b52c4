# File: app/services/backend_session.py

"""
The backend handle a signed-in account works against.

Bundles the user with the adapters scoped to that user (key-value store,
file store, hosting registry). A session without a user is "signed out":
services check `is_signed_in` and short-circuit instead of raising.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from sqlalchemy.orm import Session

from app.models.user import User
from app.services.file_store import FileStore
from app.services.hosting_registry import HostingRegistry
from app.services.kv_store import KeyValueStore


@dataclass
class BackendSession:
    user: Optional[User] = None
    kv: Optional[KeyValueStore] = None
    files: Optional[FileStore] = None
    hosting: Optional[HostingRegistry] = None
    token: Optional[str] = field(default=None, repr=False)
    db: Optional[Session] = field(default=None, repr=False)

    @property
    def is_signed_in(self) -> bool:
        return self.user is not None

    @property
    def user_id(self) -> Optional[str]:
        return self.user.uuid if self.user is not None else None

    def rollback(self) -> None:
        """Discard a failed transaction so later store calls can run."""
        if self.db is not None:
            self.db.rollback()


def open_backend_session(
    db: Session,
    user: Optional[User],
    token: Optional[str] = None,
    storage_root: str | Path | None = None,
) -> BackendSession:
    if user is None:
        return BackendSession()
    return BackendSession(
        user=user,
        kv=KeyValueStore(db, user.uuid),
        files=FileStore(user.uuid, storage_root),
        hosting=HostingRegistry(db, user.uuid),
        token=token,
        db=db,
    )
