"""Helpers for writing lift debug artefacts to disk."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from ..container.layout import build_layout
from ..container.model import Module, describe_value
from ..logging_config import TRACE_FILE_NAME, close_lift_trace, open_lift_trace
from ..utils.io_utils import ensure_directory, write_json
from .sweep import LiftedFunction

__all__ = ["LifterDebugDump"]


class LifterDebugDump:
    """Manage debug artefacts for a single run."""

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = Path(base_dir)
        ensure_directory(self.base_dir)
        self._trace_logger: Optional[logging.Logger] = None

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def dump_module(self, module: Module) -> Path:
        """Write ``module.json`` describing functions, constants and layout."""

        functions = []
        for index, function in enumerate(module.functions):
            functions.append(
                {
                    "index": index,
                    "position": list(function.position.as_tuple()),
                    "code": list(function.code.as_tuple()),
                    "debug_name": function.debug_name,
                    "constants": [describe_value(value) for value in function.constants],
                    "references": list(function.references),
                }
            )
        payload = {
            "entry_index": module.entry_index,
            "strings": [list(span.as_tuple()) for span in module.strings],
            "functions": functions,
            "layout": build_layout(module).as_dict(),
        }
        path = self.base_dir / "module.json"
        write_json(path, payload)
        return path

    def dump_lifted(self, lifted: LiftedFunction) -> Path:
        """Write ``lifted_<index>.json`` and trace every gap."""

        path = self.base_dir / f"lifted_{lifted.index}.json"
        write_json(path, lifted.as_dict())
        trace = self.trace_logger()
        for entry in lifted.instructions:
            if entry.is_unimplemented:
                trace.debug(
                    "function %d 0x%x %s: %s",
                    lifted.index,
                    entry.address,
                    entry.instruction.mnemonic,
                    entry.gap,
                )
        for failure in lifted.failures:
            trace.debug("function %d 0x%x decode: %s", lifted.index, failure.address, failure.reason)
        return path

    # ------------------------------------------------------------------
    # Trace logging
    # ------------------------------------------------------------------

    @property
    def trace_path(self) -> Path:
        return self.base_dir / TRACE_FILE_NAME

    def trace_logger(self) -> logging.Logger:
        """Return a logger writing verbose traces to :attr:`trace_path`."""

        if self._trace_logger is None:
            self._trace_logger = open_lift_trace(self.base_dir)
        return self._trace_logger

    def close(self) -> None:
        """Close any loggers owned by this dump."""

        if self._trace_logger is not None:
            close_lift_trace(self._trace_logger)
            self._trace_logger = None

    def __enter__(self) -> "LifterDebugDump":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
