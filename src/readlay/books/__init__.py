"""Book records supplied by the bookshelf."""

from .schemas import (
    Book,
    Difficulty,
    GoalUnit,
    PageCountingStyle,
    ReadingPreferences,
)

__all__ = [
    "Book",
    "Difficulty",
    "GoalUnit",
    "PageCountingStyle",
    "ReadingPreferences",
]
