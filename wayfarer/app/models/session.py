# wayfarer/app/models/session.py
from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.sql import func

from wayfarer.app.db.base import Base
from wayfarer.app.models.user import new_id


class UserSession(Base):
    """
    Server-side record of an issued session token (the token's ``sid`` claim).

    Lets logout invalidate a token before it expires. Holds no role data.
    """
    __tablename__ = "user_sessions"

    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    expires_at = Column(DateTime(timezone=True), nullable=False)
    revoked_at = Column(DateTime(timezone=True), nullable=True)
