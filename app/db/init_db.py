"""
Database initialization helpers.

Models are imported so their tables get registered on Base.metadata.
"""

from app.db.session import engine
from app.models.base import Base

from app.models import hosting_site, kv_entry, user  # noqa: F401


def init_db() -> None:
    """
    Create all tables based on SQLAlchemy models.
    """
    Base.metadata.create_all(bind=engine)
