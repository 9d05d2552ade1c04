"""Wagers, the wager slip, progress tracking and settlement."""

from .engine import PlacementResult, WagerEngine
from .ledger import ProgressLedger
from .schemas import (
    CompletedWager,
    DailyTarget,
    EngagementGoal,
    EngagementWager,
    ParlayGroup,
    ParlayStatus,
    ProgressInfo,
    ProgressRecord,
    ProgressStatus,
    ReadingWager,
    StatusSummary,
    WagerKind,
)
from .slip import WagerSlip, parse_timeframe_days
from .state import EngineState, load_state, save_state

__all__ = [
    "WagerEngine",
    "PlacementResult",
    "ProgressLedger",
    "WagerSlip",
    "parse_timeframe_days",
    "CompletedWager",
    "DailyTarget",
    "EngagementGoal",
    "EngagementWager",
    "ParlayGroup",
    "ParlayStatus",
    "ProgressInfo",
    "ProgressRecord",
    "ProgressStatus",
    "ReadingWager",
    "StatusSummary",
    "WagerKind",
    "EngineState",
    "load_state",
    "save_state",
]
