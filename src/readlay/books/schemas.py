"""Pydantic schemas for books supplied by the bookshelf.

Books are immutable snapshots. The engine only reads them; page counting
preferences decide which page range a wager covers.
"""

from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Difficulty(str, Enum):
    """Reading difficulty of a book."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @property
    def multiplier(self) -> float:
        """Odds multiplier for this difficulty."""
        return _DIFFICULTY_MULTIPLIERS[self]


_DIFFICULTY_MULTIPLIERS = {
    Difficulty.EASY: 0.8,
    Difficulty.MEDIUM: 1.0,
    Difficulty.HARD: 1.4,
}


class PageCountingStyle(str, Enum):
    """Which pages of a book count toward a goal."""

    INCLUSIVE = "inclusive"  # Count everything
    MAIN_ONLY = "main_only"  # Skip front/back matter
    CUSTOM = "custom"  # User-defined range


class GoalUnit(str, Enum):
    """Unit a reading goal is measured in."""

    PAGES = "pages"
    CHAPTERS = "chapters"


class ReadingPreferences(BaseModel):
    """Per-book page counting preferences."""

    model_config = ConfigDict(frozen=True)

    page_counting_style: PageCountingStyle = PageCountingStyle.INCLUSIVE
    preferred_goal_unit: GoalUnit = GoalUnit.PAGES

    # Estimated matter (user can adjust)
    estimated_front_matter_pages: int = Field(10, ge=0)
    estimated_back_matter_pages: int = Field(20, ge=0)
    estimated_front_matter_chapters: int = Field(1, ge=0)
    estimated_back_matter_chapters: int = Field(1, ge=0)

    # Custom range override
    custom_start_page: Optional[int] = Field(None, ge=1)
    custom_end_page: Optional[int] = Field(None, ge=1)
    custom_start_chapter: Optional[int] = Field(None, ge=1)
    custom_end_chapter: Optional[int] = Field(None, ge=1)

    @classmethod
    def default_for(
        cls,
        total_pages: int,
        total_chapters: Optional[int] = None,
        **overrides,
    ) -> "ReadingPreferences":
        """Build preferences with matter estimates scaled to the book's length.

        Args:
            total_pages: Book's page count
            total_chapters: Book's chapter count, if known
            **overrides: Explicit field values that win over the estimates

        Returns:
            ReadingPreferences for the book
        """
        if total_pages > 300:
            front_pages, back_pages = 15, 25
        elif total_pages > 150:
            front_pages, back_pages = 10, 15
        else:
            front_pages, back_pages = 5, 10

        front_chapters, back_chapters = 1, 1
        if total_chapters:
            if total_chapters > 40:
                front_chapters, back_chapters = 2, 2
            elif total_chapters > 20:
                front_chapters, back_chapters = 1, 1
            else:
                front_chapters, back_chapters = 1, 0

        values = {
            "estimated_front_matter_pages": front_pages,
            "estimated_back_matter_pages": back_pages,
            "estimated_front_matter_chapters": front_chapters,
            "estimated_back_matter_chapters": back_chapters,
        }
        values.update(overrides)
        return cls(**values)


class Book(BaseModel):
    """An immutable book record borrowed from the bookshelf."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    title: str = Field(..., min_length=1, description="Book title")
    author: Optional[str] = None
    total_pages: int = Field(..., ge=0)
    total_chapters: Optional[int] = Field(None, ge=0)
    difficulty: Difficulty = Difficulty.MEDIUM
    preferences: ReadingPreferences = Field(default_factory=ReadingPreferences)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        """Strip surrounding whitespace from the title."""
        v = v.strip()
        if not v:
            raise ValueError("title cannot be blank")
        return v

    @property
    def effective_total_pages(self) -> int:
        """Pages that count toward a goal: the reading start page through the end page."""
        return max(0, self.reading_end_page - self.reading_start_page + 1)

    @property
    def reading_start_page(self) -> int:
        """First page of the counted range."""
        prefs = self.preferences
        if prefs.custom_start_page is not None:
            return prefs.custom_start_page
        if prefs.page_counting_style == PageCountingStyle.MAIN_ONLY:
            return prefs.estimated_front_matter_pages + 1
        return 1

    @property
    def reading_end_page(self) -> int:
        """Last page of the counted range."""
        prefs = self.preferences
        if prefs.custom_end_page is not None:
            return prefs.custom_end_page
        if prefs.page_counting_style == PageCountingStyle.MAIN_ONLY:
            return self.total_pages - prefs.estimated_back_matter_pages
        return self.total_pages

    @property
    def effective_total_chapters(self) -> int:
        """Chapters that count toward a goal; 0 when chapters are unknown."""
        if not self.total_chapters:
            return 0

        prefs = self.preferences
        if prefs.custom_start_chapter is not None and prefs.custom_end_chapter is not None:
            return max(0, prefs.custom_end_chapter - prefs.custom_start_chapter + 1)

        if prefs.page_counting_style == PageCountingStyle.MAIN_ONLY:
            return max(
                0,
                self.total_chapters
                - prefs.estimated_front_matter_chapters
                - prefs.estimated_back_matter_chapters,
            )
        return self.total_chapters

    @property
    def has_custom_preferences(self) -> bool:
        """Whether the book deviates from counting every page."""
        prefs = self.preferences
        return (
            prefs.page_counting_style != PageCountingStyle.INCLUSIVE
            or prefs.custom_start_page is not None
            or prefs.custom_end_page is not None
        )

    @property
    def preference_summary(self) -> str:
        """Short human-readable description of the counted range."""
        style = self.preferences.page_counting_style
        if style == PageCountingStyle.MAIN_ONLY:
            label = "Main story"
        elif style == PageCountingStyle.CUSTOM:
            label = "Custom range"
        else:
            label = "Full book"
        return f"{label} ({self.effective_total_pages} pages)"
