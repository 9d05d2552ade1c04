"""Logging setup.

Modules log through ``logging.getLogger(__name__)``; this module wires the
``readlay`` logger to a Rich console handler (and optionally a file).
"""

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "readlay"

# stderr so log lines never mix with CLI table output
console = Console(stderr=True)


def setup_logging(
    level: str = "WARNING",
    log_file_path: Optional[Path] = None,
) -> logging.Logger:
    """Initialize the readlay logger.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR)
        log_file_path: Optional file that receives every record

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    logger.handlers.clear()

    rich_handler = RichHandler(console=console, show_path=False, markup=False)
    rich_handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    logger.addHandler(rich_handler)

    if log_file_path is not None:
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                "[%(asctime)s] %(levelname)s %(name)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(file_handler)

    return logger
