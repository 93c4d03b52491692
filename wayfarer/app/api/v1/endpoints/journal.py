# wayfarer/app/api/v1/endpoints/journal.py
# Journal entries are ADMIN-only and always scoped to the caller's own entries.
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from wayfarer.app.api import deps
from wayfarer.app.db.base import get_db
from wayfarer.app.models.user import User
from wayfarer.app.schemas.journal import (
    JournalEntryCreate,
    JournalEntryResponse,
    JournalEntryUpdate,
    MessageResponse,
)
from wayfarer.app.security.codec import JournalCodec
from wayfarer.app.services import journal

router = APIRouter()


@router.get("/", response_model=List[JournalEntryResponse])
async def read_journal_entries(
        db: AsyncSession = Depends(get_db),
        codec: JournalCodec = Depends(deps.get_codec),
        current_user: User = Depends(deps.require_admin),
        search: Optional[str] = None,
        mood: Optional[str] = None,
        skip: int = Query(0, ge=0),
        limit: int = Query(100, ge=1, le=500),
):
    return await journal.list_entries(
        db, codec, current_user, search=search, mood=mood, skip=skip, limit=limit
    )


@router.post("/", response_model=JournalEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_journal_entry(
        entry_in: JournalEntryCreate,
        db: AsyncSession = Depends(get_db),
        codec: JournalCodec = Depends(deps.get_codec),
        current_user: User = Depends(deps.require_admin),
):
    return await journal.create_entry(db, codec, current_user, entry_in)


@router.get("/{entry_id}", response_model=JournalEntryResponse)
async def read_journal_entry(
        entry_id: str,
        db: AsyncSession = Depends(get_db),
        codec: JournalCodec = Depends(deps.get_codec),
        current_user: User = Depends(deps.require_admin),
):
    return await journal.get_entry(db, codec, current_user, entry_id)


@router.patch("/{entry_id}", response_model=JournalEntryResponse)
async def update_journal_entry(
        entry_id: str,
        entry_in: JournalEntryUpdate,
        db: AsyncSession = Depends(get_db),
        codec: JournalCodec = Depends(deps.get_codec),
        current_user: User = Depends(deps.require_admin),
):
    return await journal.update_entry(db, codec, current_user, entry_id, entry_in)


@router.delete("/{entry_id}", response_model=MessageResponse)
async def delete_journal_entry(
        entry_id: str,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(deps.require_admin),
):
    await journal.delete_entry(db, current_user, entry_id)
    return {"message": "Journal entry deleted successfully"}
