"""Wager slip: selections staged before they are placed.

The slip never touches the balance. Wager amounts are clamped by the
engine before they reach the slip.
"""

import math
import re
from typing import Optional, Union
from uuid import UUID

from ..books.schemas import Book, GoalUnit
from ..odds.american import combine_parlay_odds
from .schemas import EngagementGoal, EngagementWager, ReadingWager

_NUMBER_RE = re.compile(r"\d+")

_UNIT_DAYS = (
    ("day", 1),
    ("week", 7),
    ("month", 30),
)

Selection = Union[ReadingWager, EngagementWager]


def parse_timeframe_days(timeframe: str) -> int:
    """Convert a timeframe label to a number of days.

    Args:
        timeframe: Label such as "1 Day", "2 Weeks" or "1 Month"

    Returns:
        Number of days, at least 1. Labels without a number count as one
        day; numbers without a unit count as days.

    Example:
        >>> parse_timeframe_days("2 Weeks")
        14
    """
    lowered = timeframe.lower()
    digits = "".join(_NUMBER_RE.findall(lowered))
    if not digits or int(digits) <= 0:
        return 1

    count = int(digits)
    for unit, days in _UNIT_DAYS:
        if unit in lowered:
            return count * days
    return count


def pages_per_day_for(book: Book, total_days: int) -> int:
    """Daily page target for finishing the counted pages in ``total_days``."""
    return max(1, math.ceil(book.effective_total_pages / max(1, total_days)))


class WagerSlip:
    """In-memory staging area for single and parlay selections."""

    def __init__(self, default_wager: float = 10.0):
        """Initialize wager slip.

        Args:
            default_wager: Stake given to new selections
        """
        self.default_wager = default_wager
        self.reading_selections: list[ReadingWager] = []
        self.engagement_selections: list[EngagementWager] = []

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    @property
    def selections(self) -> list[Selection]:
        """Every selection, reading first, in insertion order."""
        return [*self.reading_selections, *self.engagement_selections]

    @property
    def total_legs(self) -> int:
        return len(self.reading_selections) + len(self.engagement_selections)

    @property
    def is_empty(self) -> bool:
        return self.total_legs == 0

    @property
    def total_wager(self) -> float:
        return sum(selection.wager for selection in self.selections)

    @property
    def total_potential_win(self) -> float:
        return sum(selection.potential_win for selection in self.selections)

    @property
    def total_payout(self) -> float:
        return self.total_wager + self.total_potential_win

    def combined_parlay_odds(self) -> Optional[str]:
        """Parlay price across every selection, or None with fewer than two."""
        return combine_parlay_odds([selection.odds for selection in self.selections])

    def get(self, selection_id: UUID) -> Optional[Selection]:
        for selection in self.selections:
            if selection.id == selection_id:
                return selection
        return None

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_reading_selection(
        self,
        book: Book,
        timeframe: str,
        odds: str,
        goal_unit: GoalUnit = GoalUnit.PAGES,
    ) -> ReadingWager:
        """Stage a reading wager, replacing any reading selection for the book.

        Args:
            book: Book to read
            timeframe: Timeframe label ("1 Week", "10 days", ...)
            odds: Odds string quoted for the selection
            goal_unit: Unit the goal is measured in

        Returns:
            The staged selection
        """
        self.reading_selections = [
            s for s in self.reading_selections if s.book.id != book.id
        ]

        total_days = parse_timeframe_days(timeframe)
        selection = ReadingWager(
            book=book,
            timeframe=timeframe,
            odds=odds,
            wager=self.default_wager,
            pages_per_day=pages_per_day_for(book, total_days),
            total_days=total_days,
            goal_unit=goal_unit,
        )
        self.reading_selections.append(selection)
        return selection

    def add_engagement_selection(
        self,
        book: Book,
        goals: list[EngagementGoal],
        odds: str,
    ) -> EngagementWager:
        """Stage an engagement wager, replacing any engagement selection for the book."""
        self.engagement_selections = [
            s for s in self.engagement_selections if s.book.id != book.id
        ]

        selection = EngagementWager(
            book=book,
            goals=[goal.model_copy(deep=True) for goal in goals],
            odds=odds,
            wager=self.default_wager,
        )
        self.engagement_selections.append(selection)
        return selection

    def remove(self, selection_id: UUID) -> bool:
        """Remove a selection. Returns True if one was removed."""
        before = self.total_legs
        self.reading_selections = [s for s in self.reading_selections if s.id != selection_id]
        self.engagement_selections = [
            s for s in self.engagement_selections if s.id != selection_id
        ]
        return self.total_legs < before

    def update_wager_amount(self, selection_id: UUID, amount: float) -> bool:
        """Set a selection's stake. Returns False for an unknown id."""
        selection = self.get(selection_id)
        if selection is None:
            return False
        selection.wager = amount
        return True

    def clear_all(self) -> None:
        """Discard every selection."""
        self.reading_selections = []
        self.engagement_selections = []
