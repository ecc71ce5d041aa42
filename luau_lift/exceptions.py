"""Custom exception hierarchy for the Luau bytecode lifter."""

from __future__ import annotations

from typing import Optional


class LuauLiftError(Exception):
    """Base class for all errors raised by :mod:`luau_lift`."""


class FormatError(LuauLiftError):
    """Raised when a bytecode container cannot be parsed.

    The error is fatal to the whole parse: no partial module is produced.
    ``offset`` records the buffer position where parsing stopped, when known.
    """

    def __init__(self, message: str, offset: Optional[int] = None) -> None:
        if offset is not None:
            message = f"{message} (at offset 0x{offset:x})"
        super().__init__(message)
        self.offset = offset


class DecodeError(LuauLiftError):
    """Raised when a single instruction window cannot be decoded."""


class LiftGap(LuauLiftError):
    """Raised inside opcode handlers when an instruction has no lowering.

    Never escapes :func:`luau_lift.lifter.lift_instruction`; the lifter turns it
    into an ``Unimplemented`` statement for the offending instruction only.
    """


class ConfigError(LuauLiftError):
    """Raised when a configuration file or value is invalid."""


__all__ = ["LuauLiftError", "FormatError", "DecodeError", "LiftGap", "ConfigError"]
