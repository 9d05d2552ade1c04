"""Wager engine: placement, progress, settlement and parlays.

The engine owns every wager collection, the progress ledger, the balance
and the settled list. Each public call updates all of them before it
returns and then publishes STATE_CHANGED, so subscribers never observe a
half-applied operation.

Rejected requests (insufficient funds, unknown ids, a day that has not
been earned) are no-ops reported through return values; nothing raises
out of the engine for them.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Callable, Optional, Union
from uuid import UUID, uuid4

from ..books.schemas import Book, GoalUnit
from ..config import get_config
from ..errors import (
    AlreadySettled,
    BookAlreadyWagered,
    DayNotEarned,
    EmptySlip,
    InsufficientFunds,
    ReadLayError,
    UnknownWager,
    ValidationError,
)
from ..events import EventBus, EventType
from ..journal.schemas import JournalEntry, minutes_from, utcnow
from ..journal.store import InMemoryJournalStore, JournalStore
from ..odds.calculator import GoalSpec, OddsEngine, get_odds_engine
from .ledger import ProgressLedger, clamp_page, pages_between
from .schemas import (
    CompletedWager,
    DailyTarget,
    EngagementGoal,
    EngagementWager,
    ParlayGroup,
    ParlayStatus,
    ProgressInfo,
    ProgressRecord,
    ProgressStatus,
    ReadingWager,
    StatusSummary,
    WagerKind,
)
from .slip import WagerSlip, parse_timeframe_days

if TYPE_CHECKING:
    from ..reading.session import CompletedSession
    from .state import EngineState

logger = logging.getLogger(__name__)

Wager = Union[ReadingWager, EngagementWager]


@dataclass
class PlacementResult:
    """Outcome of placing the slip."""

    reading_wagers: list[ReadingWager] = field(default_factory=list)
    engagement_wagers: list[EngagementWager] = field(default_factory=list)
    parlay: Optional[ParlayGroup] = None
    error: Optional[ReadLayError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def placed_count(self) -> int:
        return len(self.reading_wagers) + len(self.engagement_wagers)


class WagerEngine:
    """Owns wagers, progress, balance and settlement."""

    def __init__(
        self,
        journal_store: Optional[JournalStore] = None,
        events: Optional[EventBus] = None,
        odds_engine: Optional[OddsEngine] = None,
        starting_balance: Optional[float] = None,
        default_wager: Optional[float] = None,
        behind_threshold: Optional[float] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize wager engine.

        Args:
            journal_store: Persistence collaborator (default: in-memory)
            events: Event bus for change notifications
            odds_engine: Odds calculator (default: global instance)
            starting_balance: Initial balance (default: READLAY_STARTING_BALANCE)
            default_wager: Stake for new slip selections (default: READLAY_DEFAULT_WAGER)
            behind_threshold: Fraction of expected progress below which a
                wager is behind (default: READLAY_BEHIND_THRESHOLD)
            clock: Returns the current time (default: UTC now)
        """
        config = get_config()
        self.journal_store = journal_store if journal_store is not None else InMemoryJournalStore()
        self.events = events or EventBus()
        self.odds_engine = odds_engine or get_odds_engine()
        self.starting_balance = (
            config.starting_balance if starting_balance is None else starting_balance
        )
        self.behind_threshold = (
            config.behind_threshold if behind_threshold is None else behind_threshold
        )
        self.clock = clock or utcnow

        self.balance: float = max(0.0, self.starting_balance)
        self.slip = WagerSlip(
            default_wager=config.default_wager if default_wager is None else default_wager
        )
        self.ledger = ProgressLedger()
        self.reading_wagers: list[ReadingWager] = []
        self.engagement_wagers: list[EngagementWager] = []
        self.parlays: list[ParlayGroup] = []
        self.completed_wagers: list[CompletedWager] = []
        self.journal_entries: list[JournalEntry] = []

    # ========================================================================
    # Balance
    # ========================================================================

    @property
    def formatted_balance(self) -> str:
        return f"{self.balance:.2f}"

    def can_afford(self, amount: float) -> bool:
        """Check if the balance covers a wager."""
        return self.balance >= amount

    def _debit(self, amount: float) -> None:
        self.balance = max(0.0, self.balance - amount)

    def _credit(self, amount: float) -> None:
        self.balance += max(0.0, amount)

    def reset_balance(self) -> None:
        """Restore the starting balance."""
        self.balance = max(0.0, self.starting_balance)
        self._changed()

    # ========================================================================
    # Lookups
    # ========================================================================

    def get_reading_wager(self, wager_id: UUID) -> Optional[ReadingWager]:
        for wager in self.reading_wagers:
            if wager.id == wager_id:
                return wager
        return None

    def get_engagement_wager(self, wager_id: UUID) -> Optional[EngagementWager]:
        for wager in self.engagement_wagers:
            if wager.id == wager_id:
                return wager
        return None

    def get_wager(self, wager_id: UUID) -> Optional[Wager]:
        """Find an active reading or engagement wager."""
        return self.get_reading_wager(wager_id) or self.get_engagement_wager(wager_id)

    def get_parlay(self, parlay_id: UUID) -> Optional[ParlayGroup]:
        for parlay in self.parlays:
            if parlay.id == parlay_id:
                return parlay
        return None

    def get_progress(self, wager_id: UUID) -> Optional[ProgressRecord]:
        return self.ledger.get(wager_id)

    def get_last_read_page(self, wager_id: UUID) -> Optional[int]:
        """Last page read for a wager, used to start the next session."""
        record = self.ledger.get(wager_id)
        return record.last_read_page if record else None

    def parlay_legs(self, parlay_id: UUID) -> list[Wager]:
        """Active legs of a parlay."""
        return [
            wager
            for wager in [*self.reading_wagers, *self.engagement_wagers]
            if wager.parlay_id == parlay_id
        ]

    @property
    def active_parlays(self) -> list[ParlayGroup]:
        return [p for p in self.parlays if p.status == ParlayStatus.IN_PROGRESS]

    @property
    def settled_parlays(self) -> list[ParlayGroup]:
        return [p for p in self.parlays if p.status != ParlayStatus.IN_PROGRESS]

    def has_active_reading_wager(self, book_id: UUID) -> bool:
        return any(w.book.id == book_id for w in self.reading_wagers)

    def has_active_engagement_wager(self, book_id: UUID) -> bool:
        return any(w.book.id == book_id for w in self.engagement_wagers)

    def has_active_wagers(self, book_id: UUID) -> bool:
        return self.has_active_reading_wager(book_id) or self.has_active_engagement_wager(book_id)

    # ========================================================================
    # Slip
    # ========================================================================

    def add_reading_selection(
        self,
        book: Book,
        timeframe: str,
        odds: Optional[str] = None,
        goal_unit: GoalUnit = GoalUnit.PAGES,
    ) -> Optional[ReadingWager]:
        """Stage a reading wager on the slip.

        Args:
            book: Book to read
            timeframe: Timeframe label ("1 Week", "10 days", ...)
            odds: Quoted odds (default: computed for the timeframe)
            goal_unit: Pages or chapters

        Returns:
            The selection, or None if the book already has an active wager
        """
        if self.has_active_reading_wager(book.id):
            logger.info("%s", BookAlreadyWagered(book.title, WagerKind.READING.value))
            return None

        if odds is None:
            days = parse_timeframe_days(timeframe)
            goal = GoalSpec.chapters(days) if goal_unit == GoalUnit.CHAPTERS else GoalSpec.pages(days)
            odds = self.odds_engine.compute_odds(book, goal)

        selection = self.slip.add_reading_selection(book, timeframe, odds, goal_unit)
        self._changed()
        return selection

    def add_engagement_selection(
        self,
        book: Book,
        goals: list[EngagementGoal],
        odds: Optional[str] = None,
        target_bucket: str = "4-7",
    ) -> Optional[EngagementWager]:
        """Stage an engagement wager on the slip.

        Args:
            book: Book to journal about
            goals: Goals to reach
            odds: Quoted odds (default: computed for ``target_bucket``)
            target_bucket: Note target bucket used when pricing

        Returns:
            The selection, or None if the book already has an engagement wager
        """
        if self.has_active_engagement_wager(book.id):
            logger.info("%s", BookAlreadyWagered(book.title, WagerKind.ENGAGEMENT.value))
            return None

        if odds is None:
            odds = self.odds_engine.compute_odds(book, GoalSpec.engagement(target_bucket))

        selection = self.slip.add_engagement_selection(book, goals, odds)
        self._changed()
        return selection

    def remove_selection(self, selection_id: UUID) -> bool:
        """Remove a selection from the slip."""
        removed = self.slip.remove(selection_id)
        if removed:
            self._changed()
        return removed

    def update_selection_wager(self, selection_id: UUID, amount: float) -> bool:
        """Set a selection's stake, clamped to [0, balance]."""
        clamped = min(max(amount, 0.0), self.balance)
        updated = self.slip.update_wager_amount(selection_id, clamped)
        if updated:
            self._changed()
        return updated

    # ========================================================================
    # Placement
    # ========================================================================

    def place_single(self) -> PlacementResult:
        """Place every slip selection as an individual wager.

        Returns:
            PlacementResult; ``error`` is EmptySlip or InsufficientFunds on
            rejection, in which case nothing changed
        """
        if self.slip.is_empty:
            return self._reject(EmptySlip())

        total = self.slip.total_wager
        if not self.can_afford(total):
            return self._reject(InsufficientFunds(total, self.balance))

        self._debit(total)
        result = self._commit_slip()
        logger.info(
            "Placed %d wager(s) for $%.2f, balance $%s",
            result.placed_count,
            total,
            self.formatted_balance,
        )
        self._announce_placement(result)
        return result

    def place_parlay(self, wager_amount: float) -> PlacementResult:
        """Place every slip selection as legs of one parlay.

        The stake is debited once and split evenly across the reading legs.
        With a single selection the slip is placed as a single wager for
        ``wager_amount``.

        Args:
            wager_amount: Stake for the whole parlay

        Returns:
            PlacementResult with the new ParlayGroup
        """
        legs = self.slip.total_legs
        if legs == 0:
            return self._reject(EmptySlip())
        if wager_amount < 0:
            return self._reject(ValidationError(f"Wager cannot be negative: {wager_amount}"))
        if not self.can_afford(wager_amount):
            return self._reject(InsufficientFunds(wager_amount, self.balance))
        if legs == 1:
            only = self.slip.selections[0]
            self.slip.update_wager_amount(only.id, wager_amount)
            return self.place_single()

        combined_odds = self.slip.combined_parlay_odds()
        if combined_odds is None:
            logger.warning("Could not combine parlay odds, pricing at +100")
            combined_odds = "+100"

        reading_legs = len(self.slip.reading_selections)
        if reading_legs:
            reading_share, engagement_share = wager_amount / reading_legs, 0.0
        else:
            reading_share, engagement_share = 0.0, wager_amount / legs

        parlay_id = uuid4()
        self._debit(wager_amount)
        result = self._commit_slip(
            parlay_id=parlay_id,
            reading_share=reading_share,
            engagement_share=engagement_share,
        )

        parlay = ParlayGroup(
            id=parlay_id,
            leg_ids=[w.id for w in result.reading_wagers] + [w.id for w in result.engagement_wagers],
            wager=wager_amount,
            combined_odds=combined_odds,
            created_at=self.clock(),
        )
        self.parlays.append(parlay)
        result.parlay = parlay

        logger.info(
            "Placed %d-leg parlay at %s for $%.2f, balance $%s",
            parlay.total_legs,
            combined_odds,
            wager_amount,
            self.formatted_balance,
        )
        self._announce_placement(result)
        return result

    def _commit_slip(
        self,
        parlay_id: Optional[UUID] = None,
        reading_share: Optional[float] = None,
        engagement_share: Optional[float] = None,
    ) -> PlacementResult:
        """Move slip selections into the active sets and open ledger records."""
        now = self.clock()
        result = PlacementResult()

        for selection in self.slip.reading_selections:
            update = {
                "placed_at": now,
                "commitment_deadline": now + timedelta(days=selection.total_days),
                "parlay_id": parlay_id,
            }
            if reading_share is not None:
                update["wager"] = reading_share
            wager = selection.model_copy(update=update)
            self.reading_wagers.append(wager)
            self.ledger.open(wager.id, wager.book)
            result.reading_wagers.append(wager)
            logger.debug(
                "Opened wager %s on '%s', pages %d-%d",
                wager.id,
                wager.book.title,
                wager.book.reading_start_page,
                wager.book.reading_end_page,
            )

        for selection in self.slip.engagement_selections:
            update = {"placed_at": now, "parlay_id": parlay_id}
            if engagement_share is not None:
                update["wager"] = engagement_share
            wager = selection.model_copy(update=update, deep=True)
            self.engagement_wagers.append(wager)
            result.engagement_wagers.append(wager)

        self.slip.clear_all()
        return result

    def _reject(self, error: ReadLayError) -> PlacementResult:
        logger.warning("Placement rejected: %s", error)
        return PlacementResult(error=error)

    def _announce_placement(self, result: PlacementResult) -> None:
        self.events.publish(
            EventType.WAGERS_PLACED,
            wager_ids=[w.id for w in result.reading_wagers + result.engagement_wagers],
            parlay_id=result.parlay.id if result.parlay else None,
        )
        self.events.publish(EventType.NAVIGATE_TO_ACTIVE_WAGERS)
        self._changed()

    # ========================================================================
    # Progress
    # ========================================================================

    def record_progress(
        self,
        wager_id: UUID,
        start_page: int,
        end_page: int,
    ) -> Optional[ProgressRecord]:
        """Apply a reading session to a wager and settle anything it completes.

        Pages are clamped into the book's counted range and counted
        inclusively. The engine does not deduplicate sessions; committing
        the same session twice counts it twice.

        Args:
            wager_id: Active reading wager
            start_page: First page read
            end_page: Last page read

        Returns:
            The updated record (a copy if the wager settled), or None for an
            unknown wager
        """
        wager = self.get_reading_wager(wager_id)
        if wager is None:
            logger.info("Ignoring progress: %s", UnknownWager(wager_id))
            return None

        record = self.ledger.record_progress(wager_id, wager.book, start_page, end_page)
        if record is None:
            return None
        snapshot = record.model_copy()

        self.events.publish(
            EventType.PROGRESS_RECORDED,
            wager_id=wager_id,
            current_page=record.current_page_position,
            total_pages_read=record.total_pages_read,
        )

        if wager.parlay_id is not None:
            parlay = self.get_parlay(wager.parlay_id)
            if parlay is not None:
                self._evaluate_parlay(parlay)
        self._sweep_completed()
        self._changed()
        return snapshot

    def can_advance_day(self, wager_id: UUID) -> bool:
        """Whether today's target is met and days remain."""
        wager = self.get_reading_wager(wager_id)
        record = self.ledger.get(wager_id)
        if wager is None or record is None:
            return False
        return (
            record.current_page_position >= wager.expected_page
            and wager.current_day < wager.total_days
        )

    def advance_day(self, wager_id: UUID) -> bool:
        """Move a wager to its next day once the current day is earned.

        Returns:
            True if the day advanced; False (and no change) otherwise
        """
        if not self.can_advance_day(wager_id):
            logger.debug("%s", DayNotEarned(f"Day not advanced for {wager_id}"))
            return False

        wager = self.get_reading_wager(wager_id)
        wager.current_day += 1
        self.ledger.reset_daily(wager_id)

        logger.info("Wager %s advanced to day %d", wager_id, wager.current_day)
        self.events.publish(EventType.DAY_ADVANCED, wager_id=wager_id, new_day=wager.current_day)
        self._changed()
        return True

    def reset_daily_progress(self, wager_id: Optional[UUID] = None) -> None:
        """Zero today's page counter for one wager, or for all."""
        self.ledger.reset_daily(wager_id)
        self._changed()

    def is_daily_goal_completed(self, wager_id: UUID) -> bool:
        wager = self.get_reading_wager(wager_id)
        record = self.ledger.get(wager_id)
        if wager is None or record is None:
            return False
        return record.daily_progress >= wager.pages_per_day

    def update_engagement_progress(
        self,
        wager_id: UUID,
        goal_id: UUID,
        increment: int = 1,
        entry: Optional[str] = None,
    ) -> bool:
        """Count journaling work toward an engagement goal.

        Args:
            wager_id: Active engagement wager
            goal_id: Goal within the wager
            increment: Amount to add (must be positive)
            entry: Optional text of the note

        Returns:
            True if the goal changed. Unknown ids, non-positive increments
            and goals already at target leave state unchanged.
        """
        wager = self.get_engagement_wager(wager_id)
        goal = wager.get_goal(goal_id) if wager else None
        if goal is None:
            logger.info("Ignoring engagement progress: %s", UnknownWager(f"{wager_id}/{goal_id}"))
            return False
        if increment <= 0 or goal.is_completed:
            return False

        goal.current_count += increment
        if entry:
            goal.entries.append(entry)
        logger.debug("Goal %s now %d/%d", goal_id, goal.current_count, goal.target_count)

        if wager.parlay_id is not None:
            parlay = self.get_parlay(wager.parlay_id)
            if parlay is not None:
                self._evaluate_parlay(parlay)
        self._sweep_completed()
        self._changed()
        return True

    # ========================================================================
    # Status
    # ========================================================================

    def derive_status(
        self,
        wager_id: UUID,
        now: Optional[datetime] = None,
    ) -> Optional[ProgressStatus]:
        """Pace status of a reading wager.

        Args:
            wager_id: Reading wager (active, or settled successfully)
            now: Current time for the overdue check (default: engine clock)

        Returns:
            ProgressStatus, or None for an unknown wager
        """
        wager = self.get_reading_wager(wager_id)
        record = self.ledger.get(wager_id)
        if wager is None or record is None:
            for completed in self.completed_wagers:
                if completed.wager_id == wager_id and completed.was_successful:
                    return ProgressStatus.COMPLETED
            return None

        book = wager.book
        current = record.current_page_position
        if current >= book.reading_end_page:
            return ProgressStatus.COMPLETED

        expected = wager.expected_page
        if current > expected:
            return ProgressStatus.AHEAD

        now = now or self.clock()
        if wager.commitment_deadline is not None and now > wager.commitment_deadline:
            return ProgressStatus.OVERDUE

        actual_progress = max(0, current - book.reading_start_page + 1)
        expected_progress = expected - book.reading_start_page + 1
        if actual_progress < self.behind_threshold * expected_progress:
            return ProgressStatus.BEHIND
        return ProgressStatus.ON_TRACK

    def progress_info(self, wager_id: UUID, now: Optional[datetime] = None) -> Optional[ProgressInfo]:
        """Pages into the counted range vs pages expected by today."""
        wager = self.get_reading_wager(wager_id)
        record = self.ledger.get(wager_id)
        if wager is None or record is None:
            return None

        start = wager.book.reading_start_page
        actual = max(0, record.current_page_position - start + 1)
        expected = min(wager.pages_per_day * wager.current_day, wager.book.effective_total_pages)
        return ProgressInfo(actual=actual, expected=expected, status=self.derive_status(wager_id, now))

    def status_summary(self, now: Optional[datetime] = None) -> StatusSummary:
        """Count active reading wagers by status."""
        summary = StatusSummary()
        for wager in self.reading_wagers:
            status = self.derive_status(wager.id, now)
            if status is not None:
                setattr(summary, status.value, getattr(summary, status.value) + 1)
        return summary

    def daily_targets(self, wager_id: UUID) -> list[DailyTarget]:
        """Page range and progress for each day up to the current one."""
        wager = self.get_reading_wager(wager_id)
        record = self.ledger.get(wager_id)
        if wager is None or record is None:
            return []

        start = wager.book.reading_start_page
        end = wager.book.reading_end_page
        targets = []
        for day in range(1, wager.current_day + 1):
            day_start = start + (day - 1) * wager.pages_per_day
            day_end = min(start + day * wager.pages_per_day - 1, end)
            goal = max(0, day_end - day_start + 1)
            is_current = day == wager.current_day
            if is_current:
                progress = min(max(0, record.current_page_position - day_start + 1), goal)
            else:
                progress = goal
            targets.append(
                DailyTarget(
                    wager_id=wager_id,
                    day_number=day,
                    day_start_page=day_start,
                    day_end_page=day_end,
                    daily_goal=goal,
                    current_progress=progress,
                    is_current_day=is_current,
                )
            )
        return targets

    def set_commitment_deadline(self, wager_id: UUID, deadline: datetime) -> bool:
        """Replace the overdue deadline of an active reading wager."""
        wager = self.get_reading_wager(wager_id)
        if wager is None:
            return False
        wager.commitment_deadline = deadline
        self._changed()
        return True

    # ========================================================================
    # Settlement
    # ========================================================================

    def _leg_complete(self, parlay: ParlayGroup, leg_id: UUID) -> bool:
        if leg_id in parlay.completed_legs:
            return True
        reading = self.get_reading_wager(leg_id)
        if reading is not None:
            record = self.ledger.get(leg_id)
            return record is not None and record.current_page_position >= reading.book.reading_end_page
        engagement = self.get_engagement_wager(leg_id)
        return engagement is not None and engagement.is_completed

    def _evaluate_parlay(self, parlay: ParlayGroup) -> None:
        """Mark a parlay won, and pay it once, when every leg is complete."""
        if parlay.status != ParlayStatus.IN_PROGRESS:
            return
        if not all(self._leg_complete(parlay, leg_id) for leg_id in parlay.leg_ids):
            return

        parlay.completed_legs.update(parlay.leg_ids)
        parlay.status = ParlayStatus.WON
        parlay.settled_at = self.clock()
        payout = parlay.total_payout
        self._credit(payout)
        logger.info("Parlay %s won, paid $%.2f, balance $%s", parlay.id, payout, self.formatted_balance)
        self.events.publish(EventType.PARLAY_WON, parlay_id=parlay.id, payout=payout)

    def _sweep_completed(self) -> None:
        """Settle every active wager that has reached its goal."""
        for wager in list(self.reading_wagers):
            record = self.ledger.get(wager.id)
            if record is not None and record.current_page_position >= wager.book.reading_end_page:
                self._settle(wager, was_successful=True)

        for wager in list(self.engagement_wagers):
            if wager.is_completed:
                self._settle(wager, was_successful=True)

        for parlay in self.active_parlays:
            self._evaluate_parlay(parlay)

    def _settle(self, wager: Wager, was_successful: bool) -> CompletedWager:
        """Move a wager to the settled list, paying it if it stands alone."""
        is_reading = isinstance(wager, ReadingWager)
        record = self.ledger.close(wager.id) if is_reading else None

        payout = 0.0
        if wager.parlay_id is not None:
            parlay = self.get_parlay(wager.parlay_id)
            if parlay is not None and was_successful:
                parlay.completed_legs.add(wager.id)
        elif was_successful:
            payout = wager.total_payout
            self._credit(payout)

        completed = CompletedWager(
            wager_id=wager.id,
            kind=WagerKind.READING if is_reading else WagerKind.ENGAGEMENT,
            book=wager.book,
            odds=wager.odds,
            wager=wager.wager,
            timeframe=wager.timeframe if is_reading else None,
            parlay_id=wager.parlay_id,
            completed_date=self.clock(),
            total_pages_read=record.total_pages_read if record else 0,
            was_successful=was_successful,
            payout=payout,
        )
        self.completed_wagers.append(completed)
        if is_reading:
            self.reading_wagers = [w for w in self.reading_wagers if w.id != wager.id]
        else:
            self.engagement_wagers = [w for w in self.engagement_wagers if w.id != wager.id]

        if was_successful:
            logger.info("Wager on '%s' won, paid $%.2f", wager.book.title, payout)
        else:
            logger.info("Wager on '%s' lost", wager.book.title)
        self.events.publish(
            EventType.WAGER_SETTLED,
            wager_id=wager.id,
            was_successful=was_successful,
            payout=payout,
        )
        return completed

    def mark_parlay_lost(self, parlay_id: UUID) -> bool:
        """Settle an in-progress parlay as lost and close its open legs.

        Loss is an external decision (a deadline passed, the reader gave
        up); progress alone never loses a parlay.

        Returns:
            True if the parlay was in progress and is now lost
        """
        parlay = self.get_parlay(parlay_id)
        if parlay is None:
            logger.info("Cannot mark parlay lost: %s", UnknownWager(parlay_id))
            return False
        if parlay.status != ParlayStatus.IN_PROGRESS:
            logger.info("%s", AlreadySettled(f"Parlay {parlay_id} is already {parlay.status.value}"))
            return False

        parlay.status = ParlayStatus.LOST
        parlay.settled_at = self.clock()
        for leg in self.parlay_legs(parlay_id):
            self._settle(leg, was_successful=False)

        logger.info("Parlay %s lost", parlay_id)
        self.events.publish(EventType.PARLAY_LOST, parlay_id=parlay_id)
        self._changed()
        return True

    def forfeit_wager(self, wager_id: UUID) -> bool:
        """Settle an active wager as lost. A parlay leg loses its whole parlay."""
        wager = self.get_wager(wager_id)
        if wager is None:
            return False
        if wager.parlay_id is not None:
            return self.mark_parlay_lost(wager.parlay_id)

        self._settle(wager, was_successful=False)
        self._changed()
        return True

    # ========================================================================
    # Sessions and journal
    # ========================================================================

    def process_completed_session(self, session: "CompletedSession") -> Optional[JournalEntry]:
        """Record a committed reading session and journal it.

        Progress is applied first; the journal entry is kept in memory and
        handed to the persistence collaborator on a best-effort basis.

        Returns:
            The journal entry, or None if the wager is not active
        """
        wager = self.get_reading_wager(session.wager_id)
        if wager is None:
            logger.warning("No active wager for session on %s", session.wager_id)
            return None

        book = wager.book
        start = clamp_page(session.start_page, book)
        end = clamp_page(session.end_page, book)
        pages_read = pages_between(start, end)

        entry = JournalEntry(
            book_id=book.id,
            book_title=book.title,
            book_author=book.author,
            date=session.ended_at,
            comment=session.note,
            session_duration=session.duration.total_seconds(),
            pages_read=pages_read,
            starting_page=start,
            ending_page=end,
        )
        self.journal_entries.append(entry)
        self.record_progress(session.wager_id, session.start_page, session.end_page)
        self._persist_session(entry, minutes_from(session.duration))
        return entry

    def _persist_session(self, entry: JournalEntry, minutes: int) -> None:
        try:
            self.journal_store.append_reading_session(
                entry.book_id, entry.pages_read, minutes, entry.comment
            )
            self.journal_store.append_journal_entry(
                entry.book_id,
                entry.comment,
                entry.model_dump(mode="json", exclude={"book_id", "comment"}),
            )
        except Exception as e:
            logger.warning("Could not persist session for '%s': %s", entry.book_title, e)

    def load_journal(self) -> int:
        """Load journal entries from persistence at startup.

        Returns:
            Number of entries loaded (0 if the store failed)
        """
        try:
            entries = self.journal_store.fetch_journal_entries()
        except Exception as e:
            logger.warning("Could not load journal entries: %s", e)
            return 0
        self.journal_entries = list(entries)
        self._changed()
        return len(entries)

    def journal_entries_for(self, book_id: UUID) -> list[JournalEntry]:
        """Journal entries for a book, newest first."""
        entries = [e for e in self.journal_entries if e.book_id == book_id]
        return sorted(entries, key=lambda e: e.date, reverse=True)

    def total_reading_time(self, book_id: UUID) -> float:
        """Seconds spent reading a book across journaled sessions."""
        return sum(e.session_duration for e in self.journal_entries if e.book_id == book_id)

    # ========================================================================
    # Snapshots
    # ========================================================================

    def snapshot(self) -> "EngineState":
        """Copy of the engine's settled and active state."""
        from .state import EngineState

        return EngineState(
            balance=self.balance,
            reading_wagers=[w.model_copy(deep=True) for w in self.reading_wagers],
            engagement_wagers=[w.model_copy(deep=True) for w in self.engagement_wagers],
            parlays=[p.model_copy(deep=True) for p in self.parlays],
            completed_wagers=list(self.completed_wagers),
            progress_records=[r.model_copy() for r in self.ledger],
        )

    @classmethod
    def restore(cls, state: "EngineState", **kwargs) -> "WagerEngine":
        """Build an engine from a snapshot.

        Args:
            state: Snapshot produced by ``snapshot()``
            **kwargs: Constructor arguments (store, events, clock, ...)
        """
        engine = cls(**kwargs)
        engine.balance = max(0.0, state.balance)
        engine.reading_wagers = [w.model_copy(deep=True) for w in state.reading_wagers]
        engine.engagement_wagers = [w.model_copy(deep=True) for w in state.engagement_wagers]
        engine.parlays = [p.model_copy(deep=True) for p in state.parlays]
        engine.completed_wagers = list(state.completed_wagers)
        engine.ledger.restore(state.progress_records)
        return engine

    def _changed(self) -> None:
        self.events.publish(EventType.STATE_CHANGED, balance=self.balance)
