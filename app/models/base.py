# File: app/models/base.py

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    User, AuthToken, KVEntry and HostingSite inherit from this.
    """
    pass
