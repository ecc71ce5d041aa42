"""Per-run lift trace files.

A trace is a plain text log next to the other debug artefacts of a run.  Each
trace gets its own non-propagating logger so gap and decode-failure messages
do not flood the console handler installed by the CLI.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

__all__ = [
    "TRACE_FILE_NAME",
    "TRACE_LOGGER_NAME",
    "LiftTraceHandler",
    "open_lift_trace",
    "close_lift_trace",
    "trace_handlers",
]

TRACE_FILE_NAME = "lift_trace.log"
TRACE_LOGGER_NAME = "luau_lift.trace"
TRACE_FORMAT = "%(message)s"


class LiftTraceHandler(logging.FileHandler):
    """File handler owned by a lift trace; truncates the file on open."""

    def __init__(self, path: Path) -> None:
        super().__init__(path, mode="w", encoding="utf-8")
        self.setFormatter(logging.Formatter(TRACE_FORMAT))


def trace_handlers(logger: logging.Logger) -> List[LiftTraceHandler]:
    return [handler for handler in logger.handlers if isinstance(handler, LiftTraceHandler)]


def open_lift_trace(
    directory: Path,
    *,
    name: str = TRACE_LOGGER_NAME,
    level: int = logging.DEBUG,
) -> logging.Logger:
    """Return the trace logger ``name`` writing to ``directory/lift_trace.log``.

    An earlier trace on the same logger is closed first, so the new run
    replaces the file rather than appending to it.
    """

    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    logger = logging.getLogger(name)
    close_lift_trace(logger)
    logger.setLevel(level)
    logger.propagate = False
    logger.addHandler(LiftTraceHandler(directory / TRACE_FILE_NAME))
    return logger


def close_lift_trace(logger: logging.Logger) -> None:
    for handler in trace_handlers(logger):
        logger.removeHandler(handler)
        handler.close()
