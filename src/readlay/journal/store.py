"""Persistence collaborators for reading sessions and journal entries.

The engine treats storage as best-effort. Adapters raise
PersistenceFailure on any storage problem so the engine can log it
without knowing the storage engine.
"""

import json
from pathlib import Path
from typing import Any, Optional, Protocol, runtime_checkable
from uuid import UUID

from pydantic import ValidationError as SchemaError

from ..errors import PersistenceFailure
from .schemas import JournalEntry, ReadingSessionLog, StoredJournalEntry

_SESSION_KIND = "session"
_JOURNAL_KIND = "journal"


@runtime_checkable
class JournalStore(Protocol):
    """What the engine needs from persistence."""

    def append_reading_session(
        self, book_id: UUID, pages_read: int, minutes: int, note: str
    ) -> None: ...

    def append_journal_entry(self, book_id: UUID, text: str, extra: dict[str, Any]) -> None: ...

    def fetch_journal_entries(self) -> list[JournalEntry]: ...


def to_journal_entry(stored: StoredJournalEntry) -> JournalEntry:
    """Rebuild a JournalEntry from a stored row."""
    extra = {k: v for k, v in stored.extra.items() if k not in ("book_id", "comment")}
    return JournalEntry(book_id=stored.book_id, comment=stored.text, **extra)


class InMemoryJournalStore:
    """Keeps rows in lists. Used by tests and as the engine default."""

    def __init__(self):
        self.sessions: list[ReadingSessionLog] = []
        self.entries: list[StoredJournalEntry] = []

    def append_reading_session(
        self, book_id: UUID, pages_read: int, minutes: int, note: str
    ) -> None:
        self.sessions.append(
            ReadingSessionLog(book_id=book_id, pages_read=pages_read, minutes=minutes, note=note)
        )

    def append_journal_entry(self, book_id: UUID, text: str, extra: dict[str, Any]) -> None:
        self.entries.append(StoredJournalEntry(book_id=book_id, text=text, extra=dict(extra)))

    def fetch_journal_entries(self) -> list[JournalEntry]:
        try:
            return [to_journal_entry(stored) for stored in self.entries]
        except SchemaError as e:
            raise PersistenceFailure(f"Invalid journal row: {e}") from e


class JsonJournalStore:
    """Appends sessions and journal entries to a JSON-lines file."""

    def __init__(self, path: Optional[Path] = None):
        """Initialize JSON journal store.

        Args:
            path: JSON-lines file (default: READLAY_JOURNAL_PATH)
        """
        if path is None:
            from ..config import get_config

            path = get_config().journal_path
        self.path = Path(path)

    def _append(self, kind: str, row: dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(json.dumps({"kind": kind, **row}) + "\n")
        except OSError as e:
            raise PersistenceFailure(f"Cannot write {self.path}: {e}") from e

    def append_reading_session(
        self, book_id: UUID, pages_read: int, minutes: int, note: str
    ) -> None:
        log = ReadingSessionLog(book_id=book_id, pages_read=pages_read, minutes=minutes, note=note)
        self._append(_SESSION_KIND, log.model_dump(mode="json"))

    def append_journal_entry(self, book_id: UUID, text: str, extra: dict[str, Any]) -> None:
        stored = StoredJournalEntry(book_id=book_id, text=text, extra=dict(extra))
        self._append(_JOURNAL_KIND, stored.model_dump(mode="json"))

    def _read_rows(self, kind: str) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        rows = []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                for line_number, line in enumerate(f, start=1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        row = json.loads(line)
                    except json.JSONDecodeError as e:
                        raise PersistenceFailure(
                            f"Corrupt line {line_number} in {self.path}: {e}"
                        ) from e
                    if row.pop("kind", None) == kind:
                        rows.append(row)
        except OSError as e:
            raise PersistenceFailure(f"Cannot read {self.path}: {e}") from e
        return rows

    def fetch_reading_sessions(self) -> list[ReadingSessionLog]:
        """Every logged reading session, oldest first."""
        try:
            return [ReadingSessionLog(**row) for row in self._read_rows(_SESSION_KIND)]
        except SchemaError as e:
            raise PersistenceFailure(f"Invalid session row in {self.path}: {e}") from e

    def fetch_journal_entries(self) -> list[JournalEntry]:
        try:
            return [
                to_journal_entry(StoredJournalEntry(**row))
                for row in self._read_rows(_JOURNAL_KIND)
            ]
        except SchemaError as e:
            raise PersistenceFailure(f"Invalid journal row in {self.path}: {e}") from e
