"""Error taxonomy for the wager engine.

Three families:

- ValidationError: malformed or out-of-range user input. Recovered
  locally and surfaced as a message.
- PreconditionNotMet: the request is well formed but the engine state
  does not allow it (insufficient funds, day not earned, ...). Reported
  to the caller as a rejected no-op, never raised out of engine calls.
- PersistenceFailure: a best-effort write to the persistence
  collaborator failed. Logged and swallowed.
"""

from typing import Optional


class ReadLayError(Exception):
    """Base class for all readlay errors."""


class ValidationError(ReadLayError):
    """User input was malformed or out of range."""


class PreconditionNotMet(ReadLayError):
    """The engine state does not allow the requested operation."""


class InsufficientFunds(PreconditionNotMet):
    """Balance does not cover the requested wager."""

    def __init__(self, required: float, available: float):
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient funds: need ${required:.2f}, have ${available:.2f}"
        )


class EmptySlip(PreconditionNotMet):
    """The wager slip has no selections to place."""

    def __init__(self):
        super().__init__("Wager slip is empty")


class NotEnoughLegs(PreconditionNotMet):
    """A parlay needs at least two legs."""

    def __init__(self, legs: int):
        self.legs = legs
        super().__init__(f"A parlay needs at least 2 legs, slip has {legs}")


class UnknownWager(PreconditionNotMet):
    """No active wager, selection or parlay has the given id."""

    def __init__(self, wager_id):
        self.wager_id = wager_id
        super().__init__(f"Wager not found: {wager_id}")


class DayNotEarned(PreconditionNotMet):
    """The current day's page target has not been reached yet."""


class AlreadySettled(PreconditionNotMet):
    """The wager or parlay has already been settled."""


class BookAlreadyWagered(PreconditionNotMet):
    """The book already has an active wager of the same kind."""

    def __init__(self, book_title: str, kind: Optional[str] = None):
        self.book_title = book_title
        label = f"{kind} wager" if kind else "wager"
        super().__init__(f"'{book_title}' already has an active {label}")


class PersistenceFailure(ReadLayError):
    """A write to or read from the persistence collaborator failed."""
