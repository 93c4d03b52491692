# wayfarer/app/db/base.py
"""
SQLAlchemy declarative base, plus re-exports of the session components
from db/session.py so callers can import everything from one place.
"""
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Usage:
        class User(Base):
            __tablename__ = "users"
            id = Column(String(32), primary_key=True)
            ...
    """
    pass


from wayfarer.app.db.session import (  # noqa: E402
    engine,
    AsyncSessionLocal,
    get_db,
)

__all__ = [
    "Base",
    "engine",
    "AsyncSessionLocal",
    "get_db",
]
