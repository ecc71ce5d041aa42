"""Semantic lifting of decoded instructions into the low-level IR."""

from __future__ import annotations

from . import ir
from .branches import Branch, BranchKind, instruction_branches
from .cfg import FunctionCFG, build_cfg, render_dot
from .constants import FLOAT_SEMANTICS, lower_value
from .lift import LiftedInstruction, lift_decoded, lift_instruction
from .semantics import SEMANTICS, LiftContext
from .sweep import DecodeFailure, LiftedFunction, lift_function

__all__ = [
    "ir",
    "Branch",
    "BranchKind",
    "instruction_branches",
    "FunctionCFG",
    "build_cfg",
    "render_dot",
    "FLOAT_SEMANTICS",
    "lower_value",
    "LiftedInstruction",
    "lift_decoded",
    "lift_instruction",
    "SEMANTICS",
    "LiftContext",
    "DecodeFailure",
    "LiftedFunction",
    "lift_function",
]
