"""Timed reading sessions."""

from .session import (
    CompletedSession,
    SessionState,
    SessionStateMachine,
    format_elapsed,
)

__all__ = [
    "CompletedSession",
    "SessionState",
    "SessionStateMachine",
    "format_elapsed",
]
