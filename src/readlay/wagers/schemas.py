"""Pydantic schemas for wagers, parlays, progress and settlement."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from ..books.schemas import Book, GoalUnit
from ..journal.schemas import EngagementType, utcnow
from ..odds.american import payout_for, potential_win_for

# Price assumed when an odds string cannot be parsed
DEFAULT_WAGER_PRICE = 150
DEFAULT_PARLAY_PRICE = 100


class WagerKind(str, Enum):
    """Kind of wager."""

    READING = "reading"
    ENGAGEMENT = "engagement"


class ProgressStatus(str, Enum):
    """Derived pace status of a reading wager."""

    ON_TRACK = "on_track"
    AHEAD = "ahead"
    BEHIND = "behind"
    OVERDUE = "overdue"
    COMPLETED = "completed"


class ParlayStatus(str, Enum):
    """Settlement status of a parlay."""

    IN_PROGRESS = "in_progress"
    WON = "won"
    LOST = "lost"


# ============================================================================
# Wagers
# ============================================================================


class ReadingWager(BaseModel):
    """A wager on finishing a book's counted pages within a timeframe."""

    id: UUID = Field(default_factory=uuid4)
    book: Book
    timeframe: str
    odds: str
    wager: float = Field(..., ge=0)
    pages_per_day: int = Field(..., ge=1)
    total_days: int = Field(..., ge=1)
    current_day: int = Field(1, ge=1)
    goal_unit: GoalUnit = GoalUnit.PAGES
    parlay_id: Optional[UUID] = None
    placed_at: Optional[datetime] = None
    commitment_deadline: Optional[datetime] = None

    @property
    def potential_win(self) -> float:
        """Profit if the wager wins."""
        return potential_win_for(self.wager, self.odds, DEFAULT_WAGER_PRICE)

    @property
    def total_payout(self) -> float:
        """Stake plus profit."""
        return payout_for(self.wager, self.odds, DEFAULT_WAGER_PRICE)

    @property
    def is_part_of_parlay(self) -> bool:
        return self.parlay_id is not None

    def expected_page_for_day(self, day: int) -> int:
        """Absolute page the reader should have reached by the end of ``day``."""
        return self.book.reading_start_page + self.pages_per_day * day - 1

    @property
    def expected_page(self) -> int:
        """Absolute page expected by the end of the current day."""
        return self.expected_page_for_day(self.current_day)

    @property
    def days_remaining(self) -> int:
        return max(0, self.total_days - self.current_day + 1)


class EngagementGoal(BaseModel):
    """A counter toward a journaling target."""

    id: UUID = Field(default_factory=uuid4)
    engagement_type: EngagementType = EngagementType.THOUGHTS
    target_count: int = Field(..., ge=1)
    current_count: int = Field(0, ge=0)
    entries: list[str] = Field(default_factory=list)

    @property
    def is_completed(self) -> bool:
        return self.current_count >= self.target_count

    @property
    def progress_percentage(self) -> float:
        """Completion fraction capped at 1.0."""
        if self.target_count <= 0:
            return 0.0
        return min(self.current_count / self.target_count, 1.0)

    @property
    def remaining(self) -> int:
        return max(0, self.target_count - self.current_count)


class EngagementWager(BaseModel):
    """A wager on reaching journaling goals for a book."""

    id: UUID = Field(default_factory=uuid4)
    book: Book
    goals: list[EngagementGoal] = Field(default_factory=list)
    odds: str
    wager: float = Field(..., ge=0)
    parlay_id: Optional[UUID] = None
    placed_at: Optional[datetime] = None

    @property
    def potential_win(self) -> float:
        return potential_win_for(self.wager, self.odds, DEFAULT_WAGER_PRICE)

    @property
    def total_payout(self) -> float:
        return payout_for(self.wager, self.odds, DEFAULT_WAGER_PRICE)

    @property
    def is_part_of_parlay(self) -> bool:
        return self.parlay_id is not None

    @property
    def is_completed(self) -> bool:
        """All goals reached. A wager with no goals is never complete."""
        return bool(self.goals) and all(goal.is_completed for goal in self.goals)

    @property
    def total_target_count(self) -> int:
        return sum(goal.target_count for goal in self.goals)

    @property
    def total_current_count(self) -> int:
        return sum(goal.current_count for goal in self.goals)

    @property
    def completed_goals_count(self) -> int:
        return sum(1 for goal in self.goals if goal.is_completed)

    @property
    def progress_percentage(self) -> float:
        """Average completion across goals."""
        if not self.goals:
            return 0.0
        return sum(goal.progress_percentage for goal in self.goals) / len(self.goals)

    def get_goal(self, goal_id: UUID) -> Optional[EngagementGoal]:
        for goal in self.goals:
            if goal.id == goal_id:
                return goal
        return None


class ParlayGroup(BaseModel):
    """A multi-leg wager that pays only when every leg completes."""

    id: UUID = Field(default_factory=uuid4)
    leg_ids: list[UUID]
    wager: float = Field(..., ge=0)
    combined_odds: str
    created_at: datetime = Field(default_factory=utcnow)
    status: ParlayStatus = ParlayStatus.IN_PROGRESS
    completed_legs: set[UUID] = Field(default_factory=set)
    settled_at: Optional[datetime] = None

    @property
    def potential_win(self) -> float:
        return potential_win_for(self.wager, self.combined_odds, DEFAULT_PARLAY_PRICE)

    @property
    def total_payout(self) -> float:
        return payout_for(self.wager, self.combined_odds, DEFAULT_PARLAY_PRICE)

    @property
    def total_legs(self) -> int:
        return len(self.leg_ids)

    @property
    def completed_legs_count(self) -> int:
        return len(self.completed_legs)

    @property
    def progress(self) -> float:
        if not self.leg_ids:
            return 0.0
        return self.completed_legs_count / self.total_legs

    @property
    def is_settled(self) -> bool:
        return self.status != ParlayStatus.IN_PROGRESS


# ============================================================================
# Progress and settlement
# ============================================================================


class ProgressRecord(BaseModel):
    """Per-wager reading progress."""

    wager_id: UUID
    daily_progress: int = Field(0, ge=0)  # pages read since the day started
    total_pages_read: int = Field(0, ge=0)
    current_page_position: int = Field(0, ge=0)  # absolute page
    last_read_page: int = Field(0, ge=0)


class CompletedWager(BaseModel):
    """Immutable settlement snapshot of a wager."""

    model_config = ConfigDict(frozen=True)

    wager_id: UUID
    kind: WagerKind
    book: Book
    odds: str
    wager: float
    timeframe: Optional[str] = None
    parlay_id: Optional[UUID] = None
    completed_date: datetime
    total_pages_read: int = 0
    was_successful: bool
    payout: float = 0.0


class DailyTarget(BaseModel):
    """One day of a reading wager's schedule."""

    wager_id: UUID
    day_number: int
    day_start_page: int
    day_end_page: int
    daily_goal: int
    current_progress: int
    is_current_day: bool

    @property
    def is_completed(self) -> bool:
        return self.current_progress >= self.daily_goal

    @property
    def progress_percentage(self) -> float:
        if self.daily_goal <= 0:
            return 0.0
        return min(self.current_progress / self.daily_goal, 1.0)

    @property
    def page_range(self) -> str:
        return f"{self.day_start_page}-{self.day_end_page}"


class ProgressInfo(BaseModel):
    """Actual vs expected progress within a wager's page range."""

    actual: int
    expected: int
    status: ProgressStatus


class StatusSummary(BaseModel):
    """Count of active reading wagers per status."""

    on_track: int = 0
    ahead: int = 0
    behind: int = 0
    overdue: int = 0
    completed: int = 0

    @property
    def has_urgent(self) -> bool:
        return self.behind > 0 or self.overdue > 0
