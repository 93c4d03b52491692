# wayfarer/app/schemas/journal.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from wayfarer.app.models.journal_entry import Mood


class JournalEntryCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    mood: Optional[Mood] = None
    weather: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=200)
    tags: List[str] = Field(default_factory=list)


class JournalEntryUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = None
    mood: Optional[Mood] = None
    weather: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=200)
    tags: Optional[List[str]] = None


# The envelope columns are never part of a response
class JournalEntryResponse(BaseModel):
    id: str
    author_id: str
    title: str
    content: str
    is_encrypted: bool
    mood: Optional[str]
    weather: Optional[str]
    location: Optional[str]
    tags: List[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


class MessageResponse(BaseModel):
    message: str
