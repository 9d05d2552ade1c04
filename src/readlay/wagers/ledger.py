"""Progress ledger: authoritative per-wager reading progress.

Records change only through ``record_progress`` (and the daily reset when
a day advances). Position and cumulative pages never decrease.
"""

import logging
from typing import Iterator, Optional
from uuid import UUID

from ..books.schemas import Book
from .schemas import ProgressRecord

logger = logging.getLogger(__name__)


def clamp_page(page: int, book: Book) -> int:
    """Clamp a page number into the book's counted range."""
    return min(max(page, book.reading_start_page), book.reading_end_page)


def pages_between(start_page: int, end_page: int) -> int:
    """Inclusive page count, never negative."""
    return max(0, end_page - start_page + 1)


class ProgressLedger:
    """Holds one ProgressRecord per active reading wager."""

    def __init__(self):
        self._records: dict[UUID, ProgressRecord] = {}

    def __contains__(self, wager_id: UUID) -> bool:
        return wager_id in self._records

    def __iter__(self) -> Iterator[ProgressRecord]:
        return iter(list(self._records.values()))

    def __len__(self) -> int:
        return len(self._records)

    def open(self, wager_id: UUID, book: Book) -> ProgressRecord:
        """Create the record for a newly placed wager.

        Position is seeded one page before the counted range so that the
        first session is recognized as a first read.
        """
        seed = max(0, book.reading_start_page - 1)
        record = ProgressRecord(
            wager_id=wager_id,
            current_page_position=seed,
            last_read_page=seed,
        )
        self._records[wager_id] = record
        return record

    def get(self, wager_id: UUID) -> Optional[ProgressRecord]:
        return self._records.get(wager_id)

    def record_progress(
        self,
        wager_id: UUID,
        book: Book,
        start_page: int,
        end_page: int,
    ) -> Optional[ProgressRecord]:
        """Apply a finished reading session to a record.

        Args:
            wager_id: Wager the session belongs to
            book: Book of the wager, for its counted range
            start_page: First page read
            end_page: Last page read

        Returns:
            Updated record, or None if the wager has no record
        """
        record = self._records.get(wager_id)
        if record is None:
            return None

        start = clamp_page(start_page, book)
        end = clamp_page(end_page, book)
        pages_read = pages_between(start, end)

        record.daily_progress += pages_read
        record.total_pages_read += pages_read
        record.current_page_position = max(record.current_page_position, end)
        record.last_read_page = max(record.last_read_page, end)

        logger.debug(
            "Progress for %s: pages %d-%d (%d read), position %d",
            wager_id,
            start,
            end,
            pages_read,
            record.current_page_position,
        )
        return record

    def reset_daily(self, wager_id: Optional[UUID] = None) -> None:
        """Zero the daily counter for one wager, or for all."""
        records = [self._records[wager_id]] if wager_id in self._records else []
        if wager_id is None:
            records = list(self._records.values())
        for record in records:
            record.daily_progress = 0

    def close(self, wager_id: UUID) -> Optional[ProgressRecord]:
        """Delete and return a settled wager's record."""
        return self._records.pop(wager_id, None)

    def restore(self, records: list[ProgressRecord]) -> None:
        """Replace all records, e.g. from a saved snapshot."""
        self._records = {record.wager_id: record.model_copy() for record in records}
