"""Parse, decode and lift Luau version 2 bytecode containers."""

from __future__ import annotations

from .config import LiftConfig, ParserConfig, load_config
from .container import Module, ModuleStore, build_layout, parse_module
from .decoder import Instruction, Opcode, jump_target
from .exceptions import ConfigError, DecodeError, FormatError, LiftGap, LuauLiftError
from .lifter import LiftedInstruction, lift_function, lift_instruction

__version__ = "0.1.0"

__all__ = [
    "LiftConfig",
    "ParserConfig",
    "load_config",
    "Module",
    "ModuleStore",
    "build_layout",
    "parse_module",
    "Instruction",
    "Opcode",
    "jump_target",
    "ConfigError",
    "DecodeError",
    "FormatError",
    "LiftGap",
    "LuauLiftError",
    "LiftedInstruction",
    "lift_function",
    "lift_instruction",
]
