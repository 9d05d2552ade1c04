"""Saving and loading engine snapshots as JSON."""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field
from pydantic import ValidationError as SchemaError

from ..errors import PersistenceFailure
from .schemas import (
    CompletedWager,
    EngagementWager,
    ParlayGroup,
    ProgressRecord,
    ReadingWager,
)

logger = logging.getLogger(__name__)

STATE_VERSION = 1


class EngineState(BaseModel):
    """Everything needed to rebuild a WagerEngine."""

    version: int = STATE_VERSION
    balance: float = Field(..., ge=0)
    reading_wagers: list[ReadingWager] = Field(default_factory=list)
    engagement_wagers: list[EngagementWager] = Field(default_factory=list)
    parlays: list[ParlayGroup] = Field(default_factory=list)
    completed_wagers: list[CompletedWager] = Field(default_factory=list)
    progress_records: list[ProgressRecord] = Field(default_factory=list)


def load_state(path: Path) -> Optional[EngineState]:
    """Load a saved snapshot.

    Args:
        path: JSON state file

    Returns:
        The snapshot, or None if the file does not exist

    Raises:
        PersistenceFailure: If the file cannot be read or parsed
    """
    if not path.exists():
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return EngineState.model_validate(data)
    except (OSError, json.JSONDecodeError, SchemaError) as e:
        raise PersistenceFailure(f"Cannot load state from {path}: {e}") from e


def save_state(path: Path, state: EngineState) -> None:
    """Write a snapshot, replacing the previous one."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(state.model_dump(mode="json"), f, indent=2)
        tmp.replace(path)
    except OSError as e:
        raise PersistenceFailure(f"Cannot save state to {path}: {e}") from e
    logger.debug("Saved state to %s", path)
