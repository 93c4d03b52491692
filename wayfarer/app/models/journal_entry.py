# wayfarer/app/models/journal_entry.py
import enum

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.sql import func

from wayfarer.app.db.base import Base
from wayfarer.app.models.user import new_id, utc_now


class Mood(str, enum.Enum):
    HAPPY = "HAPPY"
    EXCITED = "EXCITED"
    GRATEFUL = "GRATEFUL"
    PEACEFUL = "PEACEFUL"
    REFLECTIVE = "REFLECTIVE"
    TIRED = "TIRED"
    SAD = "SAD"
    ANXIOUS = "ANXIOUS"
    FRUSTRATED = "FRUSTRATED"


class JournalEntry(Base):
    __tablename__ = "journal_entries"

    id = Column(String(32), primary_key=True, default=new_id)
    author_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)

    # --- METADATA (plaintext, searchable) ---
    title = Column(String(200), nullable=False)
    mood = Column(String(16), nullable=True)
    weather = Column(String(100), nullable=True)
    location = Column(String(200), nullable=True)
    tags = Column(JSON, nullable=False, default=list)

    # --- BODY ---
    # Legacy rows keep their body here with is_encrypted=False.
    # Whenever an envelope is present this column MUST be "".
    content = Column(Text, nullable=False, default="")

    # Envelope: hex ciphertext, 16-byte IV (32 hex), 16-byte GCM tag (32 hex)
    encrypted_content = Column(Text, nullable=True)
    content_iv = Column(String(32), nullable=True)
    content_auth_tag = Column(String(32), nullable=True)
    is_encrypted = Column(Boolean, nullable=False, default=False)

    # Set in Python: SQLite CURRENT_TIMESTAMP has one-second resolution
    created_at = Column(DateTime(timezone=True), default=utc_now, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )
