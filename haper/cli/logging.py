"""
CLI logging setup.

Log records go to stderr through rich; stdout stays reserved for command
output.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass

from rich.console import Console
from rich.logging import RichHandler


@dataclass(frozen=True, slots=True)
class PreviousLoggingState:
    level: int
    handlers: list[logging.Handler]


def _level_for(verbosity: int) -> int:
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return logging.WARNING


def configure_logging(*, verbosity: int) -> PreviousLoggingState:
    """Install a rich stderr handler on the ``haper`` logger; returns what to restore."""
    logger = logging.getLogger("haper")
    previous = PreviousLoggingState(level=logger.level, handlers=list(logger.handlers))

    handler = RichHandler(
        console=Console(file=sys.stderr, force_terminal=False),
        show_path=verbosity >= 2,
        rich_tracebacks=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.handlers = [handler]
    logger.setLevel(_level_for(verbosity))
    return previous


def restore_logging(previous: PreviousLoggingState) -> None:
    logger = logging.getLogger("haper")
    logger.handlers = previous.handlers
    logger.setLevel(previous.level)
