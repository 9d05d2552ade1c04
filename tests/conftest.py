"""Pytest configuration and shared fixtures.

This module provides fixtures for testing readlay: sample books, a
controllable clock, and a wager engine wired to in-memory collaborators.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Generator

import pytest

from readlay.books import Book, Difficulty
from readlay.config import reset_config
from readlay.events import EventBus
from readlay.journal import InMemoryJournalStore
from readlay.odds import OddsEngine, reset_odds_engine
from readlay.wagers import ReadingWager, WagerEngine

READLAY_ENV_VARS = (
    "READLAY_STATE_PATH",
    "READLAY_JOURNAL_PATH",
    "READLAY_STARTING_BALANCE",
    "READLAY_DEFAULT_WAGER",
    "READLAY_BEHIND_THRESHOLD",
    "READLAY_ODDS_CACHE",
    "READLAY_LOG_LEVEL",
)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch) -> Generator[None, None, None]:
    """Point storage at a temp dir and reset global singletons."""
    for name in READLAY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("READLAY_STATE_PATH", str(tmp_path / "state.json"))
    monkeypatch.setenv("READLAY_JOURNAL_PATH", str(tmp_path / "journal.jsonl"))
    reset_config()
    reset_odds_engine()

    yield

    reset_config()
    reset_odds_engine()


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def book() -> Book:
    """A 100-page book counted from page 1 to 100."""
    return Book(title="Dune", author="Frank Herbert", total_pages=100)


@pytest.fixture
def long_book() -> Book:
    """A 300-page book of medium difficulty."""
    return Book(title="Middlemarch", author="George Eliot", total_pages=300)


@pytest.fixture
def hard_book() -> Book:
    """A 300-page hard book."""
    return Book(title="Ulysses", author="James Joyce", total_pages=300, difficulty=Difficulty.HARD)


# ============================================================================
# Engine Fixtures
# ============================================================================


@pytest.fixture
def clock() -> FakeClock:
    """Clock starting at a fixed instant."""
    return FakeClock(datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def events() -> EventBus:
    """Event bus that records every published event."""
    bus = EventBus()
    bus.keep_history = True
    return bus


@pytest.fixture
def store() -> InMemoryJournalStore:
    """In-memory persistence collaborator."""
    return InMemoryJournalStore()


@pytest.fixture
def engine(store, events, clock) -> WagerEngine:
    """Engine with a $100 balance and $10 default stake."""
    return WagerEngine(
        journal_store=store,
        events=events,
        odds_engine=OddsEngine(use_cache=False),
        starting_balance=100.0,
        default_wager=10.0,
        clock=clock,
    )


@pytest.fixture
def place_reading(engine) -> Callable[..., ReadingWager]:
    """Place a single reading wager and return it."""

    def _place(book: Book, timeframe: str = "1 Week", amount: float = 10.0, odds=None):
        selection = engine.add_reading_selection(book, timeframe, odds)
        engine.update_selection_wager(selection.id, amount)
        result = engine.place_single()
        assert result.ok, result.error
        return result.reading_wagers[0]

    return _place
