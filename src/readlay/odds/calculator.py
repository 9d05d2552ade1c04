"""Odds calculation for reading commitments.

Odds are pure functions of the book and the goal. Harder books and
tighter timeframes pay more. Results can be memoized per book; the cache
never changes what a calculation returns.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union
from uuid import UUID

from ..books.schemas import Book
from ..config import get_config
from .american import format_american_odds

logger = logging.getLogger(__name__)

# Timeframe buckets: (max days, divisor, cap) for page-rate difficulty
_PAGE_RATE_BUCKETS = (
    (3, 15.0, 10.0),  # aggressive
    (7, 20.0, 8.0),  # moderate
    (21, 12.0, 4.0),  # one to three weeks
)
_LONG_TIMEFRAME_DIVISOR = 8.0
_LONG_TIMEFRAME_CAP = 2.0

ENGAGEMENT_TARGET_FACTORS = {
    "1-3": 0.5,
    "4-7": 1.0,
    "8+": 2.0,
}

STANDARD_TIMEFRAMES = (
    ("1 Day", 1),
    ("1 Week", 7),
    ("1 Month", 30),
)

ZERO_CHAPTER_ODDS = "+110"


class GoalKind(str, Enum):
    """Shape of the goal being priced."""

    PAGES = "pages"
    CHAPTERS = "chapters"
    ENGAGEMENT = "engagement"


@dataclass(frozen=True)
class GoalSpec:
    """What a wager commits to: a timeframe in days, or an engagement bucket."""

    kind: GoalKind
    value: Union[int, str]

    def __post_init__(self):
        if self.kind in (GoalKind.PAGES, GoalKind.CHAPTERS):
            if not isinstance(self.value, int) or self.value <= 0:
                raise ValueError(f"Timeframe must be a positive number of days: {self.value!r}")

    @classmethod
    def pages(cls, days: int) -> "GoalSpec":
        """Finish the counted pages within ``days``."""
        return cls(GoalKind.PAGES, days)

    @classmethod
    def chapters(cls, days: int) -> "GoalSpec":
        """Finish the counted chapters within ``days``."""
        return cls(GoalKind.CHAPTERS, days)

    @classmethod
    def engagement(cls, bucket: str) -> "GoalSpec":
        """Reach a journaling target bucket such as "4-7"."""
        return cls(GoalKind.ENGAGEMENT, bucket)


def _clamp(value: int, low: int, high: int) -> int:
    return min(max(value, low), high)


def page_difficulty_factor(pages_per_day: float, timeframe_days: int) -> float:
    """Difficulty factor for a daily page rate within a timeframe bucket."""
    for max_days, divisor, cap in _PAGE_RATE_BUCKETS:
        if timeframe_days <= max_days:
            return min(pages_per_day / divisor, cap)
    return min(pages_per_day / _LONG_TIMEFRAME_DIVISOR, _LONG_TIMEFRAME_CAP)


def reading_odds(book: Book, timeframe_days: int) -> str:
    """Odds for finishing the book's counted pages in ``timeframe_days``."""
    pages_per_day = book.effective_total_pages / timeframe_days
    factor = page_difficulty_factor(pages_per_day, timeframe_days)
    final = 100 + int(factor * book.difficulty.multiplier * 40)
    return format_american_odds(_clamp(final, 110, 999))


def chapter_odds(book: Book, timeframe_days: int) -> str:
    """Odds for finishing the book's counted chapters in ``timeframe_days``."""
    total_chapters = book.effective_total_chapters
    if total_chapters <= 0:
        return ZERO_CHAPTER_ODDS

    chapters_per_day = total_chapters / timeframe_days
    if chapters_per_day < 1:
        base = 110
    elif chapters_per_day < 2:
        base = 130
    elif chapters_per_day < 3:
        base = 160
    else:
        base = 200

    adjustment = int((base - 100) * (book.difficulty.multiplier - 1.0))
    return format_american_odds(_clamp(base + adjustment, 105, 500))


def engagement_odds(book: Book, target_bucket: str) -> str:
    """Odds for reaching a journaling target bucket."""
    factor = ENGAGEMENT_TARGET_FACTORS.get(target_bucket, 1.0)
    final = 100 + int(factor * book.difficulty.multiplier * 30)
    return format_american_odds(_clamp(final, 105, 400))


class OddsEngine:
    """Computes odds strings with an optional per-book memo cache."""

    def __init__(self, use_cache: Optional[bool] = None):
        """Initialize odds engine.

        Args:
            use_cache: Memoize results (default: READLAY_ODDS_CACHE)
        """
        if use_cache is None:
            use_cache = get_config().odds_cache_enabled
        self.use_cache = use_cache
        self._cache: dict[tuple[GoalKind, UUID, Union[int, str]], str] = {}

    def compute_odds(self, book: Book, goal: GoalSpec) -> str:
        """Compute the odds string for a book and goal.

        Args:
            book: Book being wagered on
            goal: Goal shape and parameter

        Returns:
            Odds string such as "+185"
        """
        key = (goal.kind, book.id, goal.value)
        if self.use_cache and key in self._cache:
            return self._cache[key]

        if goal.kind == GoalKind.PAGES:
            result = reading_odds(book, goal.value)
        elif goal.kind == GoalKind.CHAPTERS:
            result = chapter_odds(book, goal.value)
        else:
            result = engagement_odds(book, str(goal.value))

        if self.use_cache:
            self._cache[key] = result
        logger.debug("Odds for '%s' (%s=%s): %s", book.title, goal.kind.value, goal.value, result)
        return result

    def timeframe_odds(self, book: Book) -> list[tuple[str, str]]:
        """Page-based odds for the standard day/week/month menu."""
        return [
            (label, self.compute_odds(book, GoalSpec.pages(days)))
            for label, days in STANDARD_TIMEFRAMES
        ]

    def journal_odds(self, book: Book) -> list[tuple[str, str]]:
        """Engagement odds for each note target bucket."""
        return [
            (f"{bucket} Notes", self.compute_odds(book, GoalSpec.engagement(bucket)))
            for bucket in ENGAGEMENT_TARGET_FACTORS
        ]

    def clear_cache(self, book_id: Optional[UUID] = None) -> None:
        """Clear cached odds for one book, or for every book.

        Args:
            book_id: Book whose entries to drop (None = all)
        """
        if book_id is None:
            self._cache.clear()
            return
        self._cache = {key: value for key, value in self._cache.items() if key[1] != book_id}

    @property
    def cache_size(self) -> int:
        """Number of memoized results."""
        return len(self._cache)


# Global odds engine instance
_odds_engine: Optional[OddsEngine] = None


def get_odds_engine() -> OddsEngine:
    """Get or create the global odds engine instance."""
    global _odds_engine
    if _odds_engine is None:
        _odds_engine = OddsEngine()
    return _odds_engine


def reset_odds_engine() -> None:
    """Reset the global odds engine. Used for testing."""
    global _odds_engine
    _odds_engine = None
