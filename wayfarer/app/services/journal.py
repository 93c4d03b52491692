# wayfarer/app/services/journal.py
"""
Private journal entries.

Every query is scoped to ``author_id == <resolved user id>``, so an entry
owned by someone else is indistinguishable from a missing one (NotFound,
never Forbidden). Admins only ever see their own entries.
"""
import logging
from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.app.core.errors import DecryptionError, NotFound
from wayfarer.app.models.journal_entry import JournalEntry
from wayfarer.app.models.user import User
from wayfarer.app.schemas.journal import JournalEntryCreate, JournalEntryUpdate
from wayfarer.app.security.codec import EncryptionEnvelope, JournalCodec

logger = logging.getLogger(__name__)

DECRYPTION_PLACEHOLDER = "[Content could not be decrypted]"


def _seal_body(entry: JournalEntry, codec: JournalCodec, content: str) -> None:
    envelope = codec.seal(content)
    # The plaintext column stays empty whenever an envelope is stored
    entry.content = ""
    entry.encrypted_content = envelope.ciphertext
    entry.content_iv = envelope.iv
    entry.content_auth_tag = envelope.tag
    entry.is_encrypted = True


def envelope_of(entry: JournalEntry) -> Optional[EncryptionEnvelope]:
    if not entry.is_encrypted:
        return None
    return EncryptionEnvelope(
        ciphertext=entry.encrypted_content,
        iv=entry.content_iv,
        tag=entry.content_auth_tag,
    )


def read_body(entry: JournalEntry, codec: JournalCodec) -> str:
    """Plaintext body. Raises DecryptionError for a bad envelope."""
    envelope = envelope_of(entry)
    if envelope is None:
        return entry.content
    if envelope.ciphertext is None or envelope.iv is None or envelope.tag is None:
        raise DecryptionError("Envelope is incomplete")
    return codec.open(envelope)


def present_entry(entry: JournalEntry, codec: JournalCodec) -> dict:
    try:
        content = read_body(entry, codec)
    except DecryptionError:
        logger.error("journal_decrypt_failed entry_id=%s", entry.id)
        content = DECRYPTION_PLACEHOLDER

    return {
        "id": entry.id,
        "author_id": entry.author_id,
        "title": entry.title,
        "content": content,
        "is_encrypted": entry.is_encrypted,
        "mood": entry.mood,
        "weather": entry.weather,
        "location": entry.location,
        "tags": list(entry.tags or []),
        "created_at": entry.created_at,
        "updated_at": entry.updated_at,
    }


async def _get_owned(db: AsyncSession, author: User, entry_id: str) -> JournalEntry:
    result = await db.execute(
        select(JournalEntry).where(
            JournalEntry.id == entry_id,
            JournalEntry.author_id == author.id,
        )
    )
    entry = result.scalars().first()
    if entry is None:
        raise NotFound("Journal entry not found")
    return entry


def _escape_like(term: str) -> str:
    # Match user input literally inside a LIKE pattern
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def list_entries(
    db: AsyncSession,
    codec: JournalCodec,
    author: User,
    search: Optional[str] = None,
    mood: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[dict]:
    query = select(JournalEntry).where(JournalEntry.author_id == author.id)

    # Ciphertext is not searchable; only legacy plaintext bodies match on content
    if search:
        pattern = f"%{_escape_like(search)}%"
        query = query.where(
            or_(
                JournalEntry.title.ilike(pattern, escape="\\"),
                JournalEntry.content.ilike(pattern, escape="\\"),
                JournalEntry.location.ilike(pattern, escape="\\"),
            )
        )

    if mood and mood.upper() != "ALL":
        query = query.where(JournalEntry.mood == mood.upper())

    query = query.order_by(JournalEntry.created_at.desc(), JournalEntry.id).offset(skip).limit(limit)
    result = await db.execute(query)
    return [present_entry(entry, codec) for entry in result.scalars().all()]


async def get_entry(db: AsyncSession, codec: JournalCodec, author: User, entry_id: str) -> dict:
    entry = await _get_owned(db, author, entry_id)
    return present_entry(entry, codec)


async def create_entry(
    db: AsyncSession, codec: JournalCodec, author: User, entry_in: JournalEntryCreate
) -> dict:
    data = entry_in.model_dump(mode="json")
    content = data.pop("content")

    entry = JournalEntry(**data, author_id=author.id)
    _seal_body(entry, codec, content)
    db.add(entry)
    await db.commit()
    await db.refresh(entry)
    logger.info("journal_created entry_id=%s author_id=%s", entry.id, author.id)
    return present_entry(entry, codec)


async def update_entry(
    db: AsyncSession,
    codec: JournalCodec,
    author: User,
    entry_id: str,
    entry_in: JournalEntryUpdate,
) -> dict:
    entry = await _get_owned(db, author, entry_id)

    update_data = entry_in.model_dump(exclude_unset=True, mode="json")
    content = update_data.pop("content", None)
    for key, value in update_data.items():
        if key == "title" and value is None:
            continue
        if key == "tags" and value is None:
            value = []
        setattr(entry, key, value)
    if content is not None:
        _seal_body(entry, codec, content)

    db.add(entry)
    await db.commit()
    await db.refresh(entry)
    return present_entry(entry, codec)


async def delete_entry(db: AsyncSession, author: User, entry_id: str) -> None:
    entry = await _get_owned(db, author, entry_id)
    await db.delete(entry)
    await db.commit()
    logger.info("journal_deleted entry_id=%s author_id=%s", entry_id, author.id)
