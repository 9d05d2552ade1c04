"""Odds calculation and American odds math."""

from .american import (
    american_to_decimal,
    combine_parlay_odds,
    decimal_to_american,
    format_american_odds,
    parse_american_odds,
    payout_for,
    potential_win_for,
)
from .calculator import (
    GoalKind,
    GoalSpec,
    OddsEngine,
    get_odds_engine,
    reset_odds_engine,
)

__all__ = [
    "GoalKind",
    "GoalSpec",
    "OddsEngine",
    "american_to_decimal",
    "combine_parlay_odds",
    "decimal_to_american",
    "format_american_odds",
    "get_odds_engine",
    "parse_american_odds",
    "payout_for",
    "potential_win_for",
    "reset_odds_engine",
]
