"""Pydantic schemas for journal entries and logged reading sessions."""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class EngagementType(str, Enum):
    """What an engagement goal counts."""

    QUOTES = "quotes"
    THOUGHTS = "thoughts"
    APPLICATIONS = "applications"
    QUESTIONS = "questions"

    @property
    def display_name(self) -> str:
        """Label shown next to the goal."""
        return {
            EngagementType.QUOTES: "Write Quotes",
            EngagementType.THOUGHTS: "Personal Thoughts",
            EngagementType.APPLICATIONS: "Real-life Applications",
            EngagementType.QUESTIONS: "Questions About Content",
        }[self]


class EngagementEntry(BaseModel):
    """A quote, thought, application or question written while reading."""

    id: UUID = Field(default_factory=uuid4)
    engagement_type: EngagementType
    content: str
    timestamp: datetime = Field(default_factory=utcnow)


class JournalEntry(BaseModel):
    """One reading session as it appears in the journal."""

    id: UUID = Field(default_factory=uuid4)
    book_id: UUID
    book_title: str
    book_author: Optional[str] = None
    date: datetime = Field(default_factory=utcnow)
    comment: str = ""
    engagement_entries: list[EngagementEntry] = Field(default_factory=list)
    session_duration: float = Field(0.0, ge=0, description="Seconds")
    pages_read: int = Field(0, ge=0)
    starting_page: int = Field(0, ge=0)
    ending_page: int = Field(0, ge=0)

    @property
    def formatted_duration(self) -> str:
        """Duration as "1h 5m" or "12m"."""
        total = int(self.session_duration)
        hours, minutes = total // 3600, total % 3600 // 60
        if hours > 0:
            return f"{hours}h {minutes}m"
        return f"{minutes}m"

    @property
    def has_engagement_content(self) -> bool:
        return bool(self.engagement_entries)


class ReadingSessionLog(BaseModel):
    """A reading session row handed to the persistence collaborator."""

    id: UUID = Field(default_factory=uuid4)
    book_id: UUID
    pages_read: int = Field(..., ge=0)
    minutes: int = Field(..., ge=0)
    note: str = ""
    logged_at: datetime = Field(default_factory=utcnow)


class StoredJournalEntry(BaseModel):
    """A journal row handed to the persistence collaborator."""

    id: UUID = Field(default_factory=uuid4)
    book_id: UUID
    text: str
    extra: dict[str, Any] = Field(default_factory=dict)
    logged_at: datetime = Field(default_factory=utcnow)


def minutes_from(duration: timedelta) -> int:
    """Whole minutes in a session duration."""
    return int(duration.total_seconds() // 60)
