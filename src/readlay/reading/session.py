"""Reading session state machine.

Drives one reading session at a time:

    IDLE -> AWAITING_START_CONFIRMATION | AWAITING_START_PAGE -> ACTIVE
         -> AWAITING_END_PAGE -> AWAITING_COMMENT -> IDLE

Commit and cancel both return to IDLE. Page input is validated against the
book's counted range; an invalid value leaves the machine where it is and
sets ``validation_error``.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Optional, Union
from uuid import UUID

from ..books.schemas import Book
from ..errors import PreconditionNotMet
from ..journal.schemas import utcnow

logger = logging.getLogger(__name__)

PageInput = Union[str, int]


class SessionState(str, Enum):
    """Where the reader is in a session."""

    IDLE = "idle"
    AWAITING_START_CONFIRMATION = "awaiting_start_confirmation"
    AWAITING_START_PAGE = "awaiting_start_page"
    ACTIVE = "active"
    AWAITING_END_PAGE = "awaiting_end_page"
    AWAITING_COMMENT = "awaiting_comment"


@dataclass
class CompletedSession:
    """A finished session, ready to be recorded against its wager."""

    wager_id: UUID
    book_id: UUID
    start_page: int
    end_page: int
    started_at: datetime
    ended_at: datetime
    note: str = ""

    @property
    def duration(self) -> timedelta:
        return self.ended_at - self.started_at

    @property
    def pages_read(self) -> int:
        return max(0, self.end_page - self.start_page + 1)


def format_elapsed(elapsed: timedelta) -> str:
    """Format a timer value as mm:ss, or hh:mm:ss past one hour."""
    total = max(0, int(elapsed.total_seconds()))
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"


def _parse_page(value: PageInput) -> tuple[Optional[int], Optional[str]]:
    """Parse page input into (page, error message)."""
    if isinstance(value, int):
        return value, None
    text = value.strip()
    if not text:
        return None, "Please enter a page number"
    try:
        return int(text), None
    except ValueError:
        return None, "Please enter a valid number"


class SessionStateMachine:
    """Runs a single timed reading session for a wager."""

    def __init__(
        self,
        clock: Optional[Callable[[], datetime]] = None,
        on_commit: Optional[Callable[[CompletedSession], Any]] = None,
    ):
        """Initialize session state machine.

        Args:
            clock: Returns the current time (default: UTC now)
            on_commit: Called with each committed session, e.g.
                ``WagerEngine.process_completed_session``
        """
        self.clock = clock or utcnow
        self.on_commit = on_commit
        self._reset()

    def _reset(self) -> None:
        self.state = SessionState.IDLE
        self.wager_id: Optional[UUID] = None
        self.book: Optional[Book] = None
        self.last_read_page = 0
        self.proposed_start_page: Optional[int] = None
        self.proposed_end_page: Optional[int] = None
        self.start_page: Optional[int] = None
        self.end_page: Optional[int] = None
        self.started_at: Optional[datetime] = None
        self.stopped_at: Optional[datetime] = None
        self.elapsed_display = format_elapsed(timedelta(0))
        self.validation_error: Optional[str] = None

    @property
    def is_idle(self) -> bool:
        return self.state == SessionState.IDLE

    @property
    def is_first_session(self) -> bool:
        """No pages of the counted range have been read yet."""
        return self.book is not None and self.last_read_page < self.book.reading_start_page

    # ========================================================================
    # Starting
    # ========================================================================

    def begin(self, wager_id: UUID, book: Book, last_read_page: int) -> SessionState:
        """Start a session for a wager.

        The first session for a wager asks for a starting page; later
        sessions propose the page after the last one read.

        Args:
            wager_id: Reading wager the session counts toward
            book: The wager's book
            last_read_page: Last page recorded for the wager

        Returns:
            The state entered. If a session is already in progress it is
            kept, and its state is returned with ``validation_error`` set.
        """
        if not self.is_idle:
            rejection = PreconditionNotMet(
                f"Already reading '{self.book.title}'. Finish or cancel the current session first."
            )
            logger.info("Session not started: %s", rejection)
            self.validation_error = str(rejection)
            return self.state

        self.wager_id = wager_id
        self.book = book
        self.last_read_page = last_read_page
        self.validation_error = None

        if self.is_first_session:
            self.proposed_start_page = book.reading_start_page
            self.state = SessionState.AWAITING_START_PAGE
        else:
            self.proposed_start_page = min(last_read_page + 1, book.reading_end_page)
            self.state = SessionState.AWAITING_START_CONFIRMATION

        logger.debug("Session for %s proposes page %d", wager_id, self.proposed_start_page)
        return self.state

    def confirm_start_page(self) -> bool:
        """Accept the proposed starting page and start the timer."""
        if self.state != SessionState.AWAITING_START_CONFIRMATION:
            return False
        self._activate(self.proposed_start_page)
        return True

    def edit_start_page(self) -> bool:
        """Decline the proposed page and ask for one instead."""
        if self.state != SessionState.AWAITING_START_CONFIRMATION:
            return False
        self.state = SessionState.AWAITING_START_PAGE
        return True

    def validate_start_page(self, value: PageInput) -> Optional[str]:
        """Error message for a starting page, or None if it is valid."""
        if self.book is None:
            return "Book information not available"
        page, error = _parse_page(value)
        if error:
            return error
        if page <= 0:
            return "Page number must be greater than 0"
        if page < self.book.reading_start_page:
            return f"Page must be at least {self.book.reading_start_page} (reading start page)"
        if page > self.book.reading_end_page:
            return f"Page cannot exceed {self.book.reading_end_page} (reading end page)"
        return None

    def submit_start_page(self, value: PageInput) -> bool:
        """Set the starting page and start the timer.

        Args:
            value: Page typed by the reader

        Returns:
            True if the session is now active; False with
            ``validation_error`` set otherwise
        """
        if self.state not in (
            SessionState.AWAITING_START_PAGE,
            SessionState.AWAITING_START_CONFIRMATION,
        ):
            return False

        self.validation_error = self.validate_start_page(value)
        if self.validation_error:
            return False

        page, _ = _parse_page(value)
        self._activate(page)
        return True

    def _activate(self, start_page: int) -> None:
        self.start_page = start_page
        self.started_at = self.clock()
        self.elapsed_display = format_elapsed(timedelta(0))
        self.validation_error = None
        self.state = SessionState.ACTIVE
        logger.info("Reading '%s' from page %d", self.book.title, start_page)

    @classmethod
    def resume(
        cls,
        wager_id: UUID,
        book: Book,
        start_page: int,
        started_at: datetime,
        clock: Optional[Callable[[], datetime]] = None,
        on_commit: Optional[Callable[[CompletedSession], Any]] = None,
    ) -> "SessionStateMachine":
        """Rebuild a machine in the ACTIVE state from a saved session."""
        machine = cls(clock=clock, on_commit=on_commit)
        machine.wager_id = wager_id
        machine.book = book
        machine.last_read_page = start_page - 1
        machine.start_page = start_page
        machine.started_at = started_at
        machine.state = SessionState.ACTIVE
        machine.tick()
        return machine

    # ========================================================================
    # Timer
    # ========================================================================

    def elapsed(self, now: Optional[datetime] = None) -> timedelta:
        """Time spent reading so far (frozen once stopped)."""
        if self.started_at is None:
            return timedelta(0)
        end = self.stopped_at or now or self.clock()
        return max(timedelta(0), end - self.started_at)

    def tick(self, now: Optional[datetime] = None) -> str:
        """Refresh the elapsed time display. Changes nothing else."""
        if self.state == SessionState.ACTIVE:
            self.elapsed_display = format_elapsed(self.elapsed(now))
        return self.elapsed_display

    # ========================================================================
    # Finishing
    # ========================================================================

    def stop(self) -> bool:
        """Stop the timer and ask for the ending page."""
        if self.state != SessionState.ACTIVE:
            return False
        self.stopped_at = self.clock()
        self.elapsed_display = format_elapsed(self.elapsed())
        self.proposed_end_page = self.start_page
        self.validation_error = None
        self.state = SessionState.AWAITING_END_PAGE
        return True

    def validate_end_page(self, value: PageInput) -> Optional[str]:
        """Error message for an ending page, or None if it is valid."""
        if self.book is None:
            return "Book information not available"
        if self.start_page is None:
            return "Starting page not set"
        page, error = _parse_page(value)
        if error:
            return error
        if page < self.start_page:
            return (
                "Ending page must be greater than or equal to "
                f"starting page ({self.start_page})"
            )
        if page > self.book.reading_end_page:
            return f"Page cannot exceed {self.book.reading_end_page} (reading end page)"
        return None

    def submit_end_page(self, value: Optional[PageInput] = None) -> bool:
        """Set the ending page.

        Args:
            value: Page typed by the reader, or None to use the proposed
                page (a session with no progress)

        Returns:
            True if the machine moved on to the comment step
        """
        if self.state != SessionState.AWAITING_END_PAGE:
            return False
        if value is None:
            value = self.proposed_end_page

        self.validation_error = self.validate_end_page(value)
        if self.validation_error:
            return False

        self.end_page, _ = _parse_page(value)
        self.state = SessionState.AWAITING_COMMENT
        return True

    def commit(self, note: str = "") -> Optional[CompletedSession]:
        """Finish the session.

        Args:
            note: Free-form comment about the session

        Returns:
            The completed session, or None if the machine was not waiting
            for a comment
        """
        if self.state != SessionState.AWAITING_COMMENT:
            return None

        session = CompletedSession(
            wager_id=self.wager_id,
            book_id=self.book.id,
            start_page=self.start_page,
            end_page=self.end_page,
            started_at=self.started_at,
            ended_at=self.stopped_at,
            note=note.strip(),
        )
        logger.info(
            "Session on '%s' committed: pages %d-%d in %s",
            self.book.title,
            session.start_page,
            session.end_page,
            format_elapsed(session.duration),
        )
        self._reset()

        if self.on_commit is not None:
            self.on_commit(session)
        return session

    def cancel(self) -> bool:
        """Discard the in-flight session. Returns False if already idle."""
        if self.is_idle:
            return False
        logger.info("Session for %s cancelled", self.wager_id)
        self._reset()
        return True
