"""Journal entries and the persistence collaborator."""

from .schemas import EngagementEntry, JournalEntry, ReadingSessionLog, StoredJournalEntry
from .store import InMemoryJournalStore, JournalStore, JsonJournalStore

__all__ = [
    "EngagementEntry",
    "InMemoryJournalStore",
    "JournalEntry",
    "JournalStore",
    "JsonJournalStore",
    "ReadingSessionLog",
    "StoredJournalEntry",
]
