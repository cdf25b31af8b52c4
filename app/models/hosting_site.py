# File: app/models/hosting_site.py

"""
HostingSite model.

A public subdomain bound to a directory inside its owner's file store.
"""

from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class HostingSite(Base):
    __tablename__ = "hosting_sites"

    subdomain: Mapped[str] = mapped_column(String(255), primary_key=True)
    owner_uuid: Mapped[str] = mapped_column(String(36), index=True, nullable=False)

    # Directory relative to the owner's storage root, e.g. "roomify-hosting"
    root_dir: Mapped[str] = mapped_column(String(1024), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
