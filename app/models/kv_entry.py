# File: app/models/kv_entry.py

"""
KVEntry model.

One row per (owner, key). Values are JSON documents stored as text so the
store stays schema-free, like the hosted key-value service it stands in for.
"""

from datetime import datetime

from sqlalchemy import DateTime, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class KVEntry(Base):
    __tablename__ = "kv_entries"
    __table_args__ = (UniqueConstraint("owner_uuid", "key", name="uq_kv_owner_key"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    owner_uuid: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    key: Mapped[str] = mapped_column(String(512), nullable=False)

    # JSON-encoded value
    value: Mapped[str] = mapped_column(Text, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
