"""ReadLay: reading goals as wagers.

Odds, wager slips, parlays, progress tracking and settlement for a
single-user reading habit app.
"""

__version__ = "0.1.0"
