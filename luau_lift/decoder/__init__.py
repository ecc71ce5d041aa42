"""Instruction decoding: opcode table, operand fields, jumps and references."""

from __future__ import annotations

from .builtins import BuiltIn, builtin_from_id
from .instruction import Instruction, jump_target
from .opcodes import (
    MAX_INSTRUCTION_LENGTH,
    OPCODE_TABLE,
    Opcode,
    OpcodeInfo,
    OperandName,
    OperandType,
    opcode_info,
)
from .references import iter_reference, pack_reference

__all__ = [
    "BuiltIn",
    "builtin_from_id",
    "Instruction",
    "jump_target",
    "MAX_INSTRUCTION_LENGTH",
    "OPCODE_TABLE",
    "Opcode",
    "OpcodeInfo",
    "OperandName",
    "OperandType",
    "opcode_info",
    "iter_reference",
    "pack_reference",
]
