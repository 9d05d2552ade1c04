"""Tests for the odds calculator."""

import pytest

from readlay.books import Book, Difficulty
from readlay.config import reset_config
from readlay.odds import GoalKind, GoalSpec, OddsEngine, get_odds_engine, reset_odds_engine
from readlay.odds.american import parse_american_odds
from readlay.odds.calculator import chapter_odds, engagement_odds, page_difficulty_factor, reading_odds


def price(odds: str) -> int:
    return parse_american_odds(odds)


class TestGoalSpec:
    """Tests for GoalSpec."""

    def test_constructors(self):
        """Test the goal shapes."""
        assert GoalSpec.pages(7) == GoalSpec(GoalKind.PAGES, 7)
        assert GoalSpec.chapters(3).kind == GoalKind.CHAPTERS
        assert GoalSpec.engagement("4-7").value == "4-7"

    @pytest.mark.parametrize("days", [0, -3])
    def test_non_positive_days_rejected(self, days):
        """Test timeframes must be positive."""
        with pytest.raises(ValueError):
            GoalSpec.pages(days)


class TestReadingOdds:
    """Tests for page-based odds."""

    def test_three_hundred_pages_in_a_week(self, long_book: Book):
        """Test 300 pages in 7 days prices at +185."""
        assert reading_odds(long_book, 7) == "+185"

    def test_difficulty_factor_buckets(self):
        """Test each timeframe bucket uses its own divisor and cap."""
        assert page_difficulty_factor(30.0, 3) == pytest.approx(2.0)
        assert page_difficulty_factor(40.0, 7) == pytest.approx(2.0)
        assert page_difficulty_factor(24.0, 14) == pytest.approx(2.0)
        assert page_difficulty_factor(8.0, 30) == pytest.approx(1.0)

    def test_difficulty_factor_caps(self):
        """Test factors are capped per bucket."""
        assert page_difficulty_factor(1000.0, 1) == 10.0
        assert page_difficulty_factor(1000.0, 5) == 8.0
        assert page_difficulty_factor(1000.0, 10) == 4.0
        assert page_difficulty_factor(1000.0, 60) == 2.0

    def test_lower_clamp(self):
        """Test a leisurely goal never prices below +110."""
        book = Book(title="Pamphlet", total_pages=10)
        assert reading_odds(book, 30) == "+110"

    def test_upper_bound(self):
        """Test an extreme goal stays within the clamp."""
        book = Book(title="Tome", total_pages=5000, difficulty=Difficulty.HARD)
        assert 110 <= price(reading_odds(book, 1)) <= 999

    @pytest.mark.parametrize("days", [1, 3, 7, 14, 30, 90])
    def test_non_decreasing_in_difficulty(self, days):
        """Test harder books never pay less, all else fixed."""
        prices = [
            price(reading_odds(Book(title="Same", total_pages=300, difficulty=d), days))
            for d in (Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD)
        ]
        assert prices == sorted(prices)

    @pytest.mark.parametrize("days", [1, 7, 30])
    def test_within_bounds(self, long_book: Book, days):
        """Test prices stay within [110, 999]."""
        assert 110 <= price(reading_odds(long_book, days)) <= 999


class TestChapterOdds:
    """Tests for chapter-based odds."""

    def test_bands(self):
        """Test base odds by chapters per day."""
        book = Book(title="Chaptered", total_pages=300, total_chapters=30)
        assert chapter_odds(book, 60) == "+110"
        assert chapter_odds(book, 30) == "+130"
        assert chapter_odds(book, 12) == "+160"
        assert chapter_odds(book, 7) == "+200"

    def test_zero_chapters(self, book: Book):
        """Test a book without chapters gets the floor price."""
        assert chapter_odds(book, 7) == "+110"

    def test_difficulty_adjustment(self):
        """Test harder books pay more for the same chapter pace."""
        easy = Book(title="C", total_pages=300, total_chapters=30, difficulty=Difficulty.EASY)
        hard = Book(title="C", total_pages=300, total_chapters=30, difficulty=Difficulty.HARD)
        assert price(chapter_odds(easy, 7)) < 200 < price(chapter_odds(hard, 7)) <= 500


class TestEngagementOdds:
    """Tests for engagement odds."""

    def test_buckets(self, long_book: Book):
        """Test each target bucket's price."""
        assert engagement_odds(long_book, "1-3") == "+115"
        assert engagement_odds(long_book, "4-7") == "+130"
        assert engagement_odds(long_book, "8+") == "+160"

    def test_unknown_bucket(self, long_book: Book):
        """Test an unknown bucket prices like 4-7."""
        assert engagement_odds(long_book, "lots") == "+130"

    def test_bounds(self, hard_book: Book):
        """Test prices stay within [105, 400]."""
        for bucket in ("1-3", "4-7", "8+"):
            assert 105 <= price(engagement_odds(hard_book, bucket)) <= 400


class TestOddsEngine:
    """Tests for OddsEngine."""

    def test_dispatch(self, long_book: Book):
        """Test compute_odds routes each goal kind."""
        engine = OddsEngine(use_cache=False)
        assert engine.compute_odds(long_book, GoalSpec.pages(7)) == "+185"
        assert engine.compute_odds(long_book, GoalSpec.chapters(7)) == "+110"
        assert engine.compute_odds(long_book, GoalSpec.engagement("8+")) == "+160"

    def test_deterministic(self, long_book: Book):
        """Test repeated calls agree with or without the cache."""
        cached = OddsEngine(use_cache=True)
        uncached = OddsEngine(use_cache=False)
        for days in (1, 7, 30):
            goal = GoalSpec.pages(days)
            assert cached.compute_odds(long_book, goal) == cached.compute_odds(long_book, goal)
            assert cached.compute_odds(long_book, goal) == uncached.compute_odds(long_book, goal)

    def test_cache_per_book(self, book: Book, long_book: Book):
        """Test clearing one book's entries keeps the others."""
        engine = OddsEngine(use_cache=True)
        engine.compute_odds(book, GoalSpec.pages(7))
        engine.compute_odds(book, GoalSpec.pages(30))
        engine.compute_odds(long_book, GoalSpec.pages(7))
        assert engine.cache_size == 3

        engine.clear_cache(book.id)
        assert engine.cache_size == 1

        engine.clear_cache()
        assert engine.cache_size == 0

    def test_cache_disabled(self, book: Book):
        """Test nothing is memoized without the cache."""
        engine = OddsEngine(use_cache=False)
        engine.compute_odds(book, GoalSpec.pages(7))
        assert engine.cache_size == 0

    def test_timeframe_menu(self, long_book: Book):
        """Test the standard timeframe menu."""
        menu = OddsEngine(use_cache=False).timeframe_odds(long_book)
        assert [label for label, _ in menu] == ["1 Day", "1 Week", "1 Month"]
        assert dict(menu)["1 Week"] == "+185"

    def test_journal_menu(self, long_book: Book):
        """Test the journaling odds menu."""
        menu = dict(OddsEngine(use_cache=False).journal_odds(long_book))
        assert menu["4-7 Notes"] == "+130"

    def test_cache_setting_from_env(self, monkeypatch):
        """Test READLAY_ODDS_CACHE controls the default."""
        monkeypatch.setenv("READLAY_ODDS_CACHE", "false")
        reset_config()
        assert OddsEngine().use_cache is False

    def test_global_instance(self):
        """Test the global engine is shared until reset."""
        first = get_odds_engine()
        assert get_odds_engine() is first
        reset_odds_engine()
        assert get_odds_engine() is not first
