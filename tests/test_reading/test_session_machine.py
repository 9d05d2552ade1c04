"""Tests for the reading session state machine."""

from datetime import timedelta
from uuid import uuid4

import pytest

from readlay.books import Book, PageCountingStyle, ReadingPreferences
from readlay.reading import CompletedSession, SessionState, SessionStateMachine, format_elapsed


@pytest.fixture
def main_only_book() -> Book:
    """300 pages counted from 11 to 280."""
    return Book(
        title="Emma",
        total_pages=300,
        preferences=ReadingPreferences(page_counting_style=PageCountingStyle.MAIN_ONLY),
    )


@pytest.fixture
def machine(clock) -> SessionStateMachine:
    return SessionStateMachine(clock=clock)


class TestFormatElapsed:
    """Tests for the timer display."""

    def test_minutes_and_seconds(self):
        """Test short sessions show mm:ss."""
        assert format_elapsed(timedelta(0)) == "00:00"
        assert format_elapsed(timedelta(minutes=5, seconds=7)) == "05:07"

    def test_hours(self):
        """Test sessions past an hour show hh:mm:ss."""
        assert format_elapsed(timedelta(hours=1, minutes=2, seconds=3)) == "01:02:03"


class TestStarting:
    """Tests for entering a session."""

    def test_first_session_asks_for_page(self, machine: SessionStateMachine, main_only_book: Book):
        """Test a first session goes straight to the start page prompt."""
        state = machine.begin(uuid4(), main_only_book, last_read_page=10)
        assert state == SessionState.AWAITING_START_PAGE
        assert machine.is_first_session
        assert machine.proposed_start_page == 11

    def test_later_session_proposes_next_page(self, machine: SessionStateMachine, book: Book):
        """Test a later session proposes the page after the last one read."""
        state = machine.begin(uuid4(), book, last_read_page=40)
        assert state == SessionState.AWAITING_START_CONFIRMATION
        assert machine.proposed_start_page == 41

    def test_confirm_starts_timer(self, machine: SessionStateMachine, book: Book, clock):
        """Test confirming the proposal starts the session."""
        machine.begin(uuid4(), book, last_read_page=40)
        assert machine.confirm_start_page() is True
        assert machine.state == SessionState.ACTIVE
        assert machine.start_page == 41
        assert machine.started_at == clock.now

    def test_edit_proposal(self, machine: SessionStateMachine, book: Book):
        """Test declining the proposal asks for a page."""
        machine.begin(uuid4(), book, last_read_page=40)
        assert machine.edit_start_page() is True
        assert machine.state == SessionState.AWAITING_START_PAGE
        assert machine.submit_start_page("35") is True
        assert machine.start_page == 35

    def test_begin_twice(self, machine: SessionStateMachine, book: Book, long_book: Book):
        """Test a second begin leaves the running session alone."""
        first_wager = uuid4()
        machine.begin(first_wager, book, last_read_page=0)
        machine.submit_start_page("1")
        started_at = machine.started_at

        state = machine.begin(uuid4(), long_book, last_read_page=40)

        assert state == SessionState.ACTIVE
        assert machine.state == SessionState.ACTIVE
        assert machine.wager_id == first_wager
        assert machine.book is book
        assert machine.start_page == 1
        assert machine.started_at == started_at
        assert machine.validation_error.startswith("Already reading 'Dune'")

    def test_confirm_in_wrong_state(self, machine: SessionStateMachine):
        """Test confirming while idle does nothing."""
        assert machine.confirm_start_page() is False
        assert machine.is_idle


class TestStartPageValidation:
    """Tests for starting page input."""

    @pytest.mark.parametrize(
        "value,message",
        [
            ("", "Please enter a page number"),
            ("   ", "Please enter a page number"),
            ("ten", "Please enter a valid number"),
            ("0", "Page number must be greater than 0"),
            ("5", "Page must be at least 11 (reading start page)"),
            ("281", "Page cannot exceed 280 (reading end page)"),
        ],
    )
    def test_invalid(self, machine: SessionStateMachine, main_only_book: Book, value, message):
        """Test invalid pages keep the machine in place."""
        machine.begin(uuid4(), main_only_book, last_read_page=0)
        assert machine.submit_start_page(value) is False
        assert machine.validation_error == message
        assert machine.state == SessionState.AWAITING_START_PAGE

    def test_error_cleared(self, machine: SessionStateMachine, main_only_book: Book):
        """Test a valid page clears the previous error."""
        machine.begin(uuid4(), main_only_book, last_read_page=0)
        machine.submit_start_page("abc")
        assert machine.submit_start_page(" 20 ") is True
        assert machine.validation_error is None
        assert machine.start_page == 20

    def test_integer_input(self, machine: SessionStateMachine, book: Book):
        """Test integer pages are accepted directly."""
        machine.begin(uuid4(), book, last_read_page=0)
        assert machine.submit_start_page(1) is True


class TestTimer:
    """Tests for ticking and stopping."""

    def test_tick_only_updates_display(self, machine: SessionStateMachine, book: Book, clock):
        """Test ticking changes the display and nothing else."""
        machine.begin(uuid4(), book, last_read_page=0)
        machine.submit_start_page("1")
        started_at = machine.started_at

        clock.advance(minutes=3, seconds=4)
        assert machine.tick() == "03:04"
        assert machine.elapsed_display == "03:04"
        assert machine.started_at == started_at
        assert machine.state == SessionState.ACTIVE

    def test_tick_when_idle(self, machine: SessionStateMachine, clock):
        """Test ticking an idle machine shows zero."""
        clock.advance(minutes=5)
        assert machine.tick() == "00:00"

    def test_stop_proposes_start_page(self, machine: SessionStateMachine, book: Book, clock):
        """Test stopping proposes the starting page as the end page."""
        machine.begin(uuid4(), book, last_read_page=20)
        machine.confirm_start_page()
        clock.advance(minutes=10)

        assert machine.stop() is True
        assert machine.state == SessionState.AWAITING_END_PAGE
        assert machine.proposed_end_page == 21

        clock.advance(minutes=10)
        assert machine.elapsed() == timedelta(minutes=10)

    def test_stop_when_not_active(self, machine: SessionStateMachine):
        """Test stopping an idle machine does nothing."""
        assert machine.stop() is False


class TestFinishing:
    """Tests for ending a session."""

    @pytest.fixture
    def stopped(self, machine: SessionStateMachine, main_only_book: Book, clock):
        machine.begin(uuid4(), main_only_book, last_read_page=0)
        machine.submit_start_page("20")
        clock.advance(minutes=25)
        machine.stop()
        return machine

    @pytest.mark.parametrize(
        "value,message",
        [
            ("", "Please enter a page number"),
            ("x", "Please enter a valid number"),
            ("19", "Ending page must be greater than or equal to starting page (20)"),
            ("290", "Page cannot exceed 280 (reading end page)"),
        ],
    )
    def test_invalid_end_page(self, stopped: SessionStateMachine, value, message):
        """Test invalid end pages keep the machine waiting."""
        assert stopped.submit_end_page(value) is False
        assert stopped.validation_error == message
        assert stopped.state == SessionState.AWAITING_END_PAGE

    def test_same_page_session(self, stopped: SessionStateMachine):
        """Test the default end page records a no-progress session."""
        assert stopped.submit_end_page() is True
        assert stopped.end_page == 20

    def test_commit(self, stopped: SessionStateMachine, clock):
        """Test committing produces the session and resets to idle."""
        stopped.submit_end_page("45")
        session = stopped.commit("  Good chapter ")

        assert isinstance(session, CompletedSession)
        assert session.start_page == 20
        assert session.end_page == 45
        assert session.pages_read == 26
        assert session.duration == timedelta(minutes=25)
        assert session.note == "Good chapter"
        assert stopped.is_idle
        assert stopped.book is None

    def test_commit_calls_back(self, book: Book, clock):
        """Test the commit callback receives the session."""
        received = []
        machine = SessionStateMachine(clock=clock, on_commit=received.append)
        machine.begin(uuid4(), book, last_read_page=0)
        machine.submit_start_page("1")
        machine.stop()
        machine.submit_end_page("10")
        session = machine.commit()
        assert received == [session]

    def test_commit_in_wrong_state(self, stopped: SessionStateMachine):
        """Test committing before the end page is set does nothing."""
        assert stopped.commit("too soon") is None
        assert stopped.state == SessionState.AWAITING_END_PAGE


class TestCancel:
    """Tests for cancelling."""

    @pytest.mark.parametrize("steps", [0, 1, 2])
    def test_cancel_from_any_state(self, machine: SessionStateMachine, book: Book, steps):
        """Test cancel discards the in-flight session."""
        machine.begin(uuid4(), book, last_read_page=0)
        if steps >= 1:
            machine.submit_start_page("1")
        if steps >= 2:
            machine.stop()

        assert machine.cancel() is True
        assert machine.is_idle
        assert machine.start_page is None
        assert machine.validation_error is None

    def test_cancel_idle(self, machine: SessionStateMachine):
        """Test cancelling when idle reports nothing to cancel."""
        assert machine.cancel() is False


class TestResume:
    """Tests for resuming a saved session."""

    def test_resume(self, book: Book, clock):
        """Test a resumed session is active with its original start."""
        started_at = clock.now
        clock.advance(minutes=12)
        machine = SessionStateMachine.resume(uuid4(), book, 30, started_at, clock=clock)

        assert machine.state == SessionState.ACTIVE
        assert machine.start_page == 30
        assert machine.elapsed_display == "12:00"
        assert machine.stop() is True
        assert machine.submit_end_page("40") is True
        assert machine.commit().duration == timedelta(minutes=12)
