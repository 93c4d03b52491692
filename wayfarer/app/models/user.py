# wayfarer/app/models/user.py
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Enum, String
from sqlalchemy.sql import func

from wayfarer.app.db.base import Base


def new_id() -> str:
    return uuid.uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Role(str, enum.Enum):
    """Permission tiers, ordered READER < AUTHOR < EDITOR < ADMIN."""

    READER = "READER"
    AUTHOR = "AUTHOR"
    EDITOR = "EDITOR"
    ADMIN = "ADMIN"

    @property
    def level(self) -> int:
        return _ROLE_LEVELS[self]

    def at_least(self, minimum: "Role") -> bool:
        return self.level >= minimum.level


_ROLE_LEVELS = {
    Role.READER: 1,
    Role.AUTHOR: 2,
    Role.EDITOR: 3,
    Role.ADMIN: 4,
}


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(100), nullable=True)

    hashed_password = Column(String(255), nullable=False)

    # Single source of truth for authorization. Any copy inside a session
    # token is advisory and never read for a decision.
    role = Column(
        Enum(Role, name="user_role", native_enum=False, length=16),
        nullable=False,
        default=Role.READER,
    )

    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), default=utc_now, server_default=func.now())
