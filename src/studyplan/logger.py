"""Logging for studyplan passes, keyed to the CLI's -v verbosity levels.

Level 1 reports what a pass changed (blocks placed, snapshots committed),
level 2 adds the checks behind those decisions (free intervals resolved,
chunks that did not fit, coalesced triggers) and level 3 adds per-interval
allocator detail.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

CHANGES_LEVEL = 25  # Between INFO and WARNING
CHECKS_LEVEL = 15  # Between DEBUG and INFO

logging.addLevelName(CHANGES_LEVEL, "CHANGES")
logging.addLevelName(CHECKS_LEVEL, "CHECKS")

VERBOSITY_SILENT = 0
VERBOSITY_CHANGES = 1
VERBOSITY_CHECKS = 2
VERBOSITY_DEBUG = 3

_VERBOSITY_LEVELS = {
    VERBOSITY_SILENT: logging.ERROR,
    VERBOSITY_CHANGES: CHANGES_LEVEL,
    VERBOSITY_CHECKS: CHECKS_LEVEL,
    VERBOSITY_DEBUG: logging.DEBUG,
}


class StudyPlanLogger(logging.Logger):
    """Logger with one method per pass-level verbosity."""

    def changes(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log a placement or commit (verbosity 1)."""
        if self.isEnabledFor(CHANGES_LEVEL):
            self._log(CHANGES_LEVEL, msg, args, **kwargs)

    def checks(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log a check behind a scheduling decision (verbosity 2)."""
        if self.isEnabledFor(CHECKS_LEVEL):
            self._log(CHECKS_LEVEL, msg, args, **kwargs)


def get_logger() -> StudyPlanLogger:
    """Return the shared ``studyplan`` logger."""
    logging.setLoggerClass(StudyPlanLogger)
    logger = logging.getLogger("studyplan")
    assert isinstance(logger, StudyPlanLogger)
    return logger


def setup_logger(verbosity: int, stream: TextIO | None = None) -> None:
    """Configure the studyplan logger for a verbosity level.

    Levels above VERBOSITY_DEBUG are treated as debug. At debug verbosity each
    line is prefixed with its level name so the three streams can be told
    apart.

    Args:
        verbosity: One of the VERBOSITY_* constants
        stream: Output stream, sys.stderr by default
    """
    verbosity = max(VERBOSITY_SILENT, min(verbosity, VERBOSITY_DEBUG))
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(_VERBOSITY_LEVELS[verbosity])

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    fmt = "%(levelname)-7s %(message)s" if verbosity == VERBOSITY_DEBUG else "%(message)s"
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)
    logger.propagate = False


def reset_logger() -> None:
    """Drop handlers and return to silent."""
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(_VERBOSITY_LEVELS[VERBOSITY_SILENT])


def verbosity_enabled(verbosity: int) -> bool:
    """Whether messages for ``verbosity`` would currently be emitted."""
    return get_logger().isEnabledFor(_VERBOSITY_LEVELS[verbosity])
