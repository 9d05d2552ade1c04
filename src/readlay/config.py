"""Configuration management for readlay.

Loads configuration from environment variables and provides defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class Config:
    """Application configuration."""

    # Storage
    state_path: Path
    journal_path: Path

    # Wagering
    starting_balance: float
    default_wager: float
    behind_threshold: float  # fraction of expected progress

    # Odds
    odds_cache_enabled: bool

    # Logging
    log_level: str

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        data_dir = Path.home() / ".readlay"

        state_path = Path(
            os.environ.get("READLAY_STATE_PATH", str(data_dir / "state.json"))
        ).expanduser()
        journal_path = Path(
            os.environ.get("READLAY_JOURNAL_PATH", str(data_dir / "journal.jsonl"))
        ).expanduser()

        return cls(
            state_path=state_path,
            journal_path=journal_path,
            starting_balance=float(os.environ.get("READLAY_STARTING_BALANCE", "10.0")),
            default_wager=float(os.environ.get("READLAY_DEFAULT_WAGER", "10.0")),
            behind_threshold=float(os.environ.get("READLAY_BEHIND_THRESHOLD", "0.75")),
            odds_cache_enabled=(
                os.environ.get("READLAY_ODDS_CACHE", "true").strip().lower() in _TRUE_VALUES
            ),
            log_level=os.environ.get("READLAY_LOG_LEVEL", "WARNING"),
        )

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if self.starting_balance < 0:
            errors.append(f"Starting balance cannot be negative: {self.starting_balance}")

        if self.default_wager < 0:
            errors.append(f"Default wager cannot be negative: {self.default_wager}")

        if not 0 < self.behind_threshold <= 1:
            errors.append(
                f"Behind threshold must be in (0, 1]: {self.behind_threshold}"
            )

        # Check storage directories are writable
        for path in (self.state_path, self.journal_path):
            if not path.parent.exists():
                try:
                    path.parent.mkdir(parents=True, exist_ok=True)
                except PermissionError:
                    errors.append(f"Cannot create data directory: {path.parent}")

        return errors


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global config instance. Used for testing."""
    global _config
    _config = None
