"""Single-instruction lifting entry point."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from ..container.model import Module
from ..decoder.instruction import Instruction
from ..decoder.opcodes import Opcode
from ..exceptions import LiftGap
from ..utils.byteops import Buffer
from . import ir
from .branches import Branch, instruction_branches
from .semantics import LiftContext, semantics_for

LOGGER = logging.getLogger(__name__)

__all__ = ["LiftedInstruction", "lift_decoded", "lift_instruction"]


@dataclass(frozen=True)
class LiftedInstruction:
    address: int
    instruction: Instruction
    branches: Tuple[Branch, ...]
    ops: Tuple[ir.Statement, ...]
    gap: Optional[str] = None
    notes: Tuple[str, ...] = ()

    @property
    def length(self) -> int:
        return self.instruction.length

    @property
    def opcode(self) -> Opcode:
        return self.instruction.opcode

    @property
    def is_unimplemented(self) -> bool:
        return self.gap is not None

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "address": self.address,
            "length": self.length,
            "mnemonic": self.instruction.mnemonic,
            "branches": [branch.as_dict() for branch in self.branches],
            "ops": [op.as_dict() for op in self.ops],
        }
        if self.gap is not None:
            payload["gap"] = self.gap
        if self.notes:
            payload["notes"] = list(self.notes)
        return payload


def lift_decoded(module: Module, instruction: Instruction, address: int) -> LiftedInstruction:
    """Lift an already decoded ``instruction`` located at ``address``."""

    branches = instruction_branches(instruction, address)
    rule = semantics_for(instruction.opcode)
    ctx = LiftContext(
        module=module,
        function=module.function_at(address),
        instruction=instruction,
        address=address,
    )

    gap: Optional[str] = None
    if rule is None:
        gap = f"no semantics for {instruction.mnemonic}"
        ops: Tuple[ir.Statement, ...] = (ir.Unimplemented(gap),)
    else:
        try:
            ops = tuple(rule(ctx))
        except LiftGap as exc:
            gap = str(exc)
            ops = (ir.Unimplemented(gap),)
            LOGGER.debug("Lift gap at 0x%x (%s): %s", address, instruction.mnemonic, gap)

    return LiftedInstruction(
        address=address,
        instruction=instruction,
        branches=branches,
        ops=ops,
        gap=gap,
        notes=tuple(sorted(ctx.notes)) if gap is None else (),
    )


def lift_instruction(module: Module, window: Buffer, address: int) -> LiftedInstruction:
    """Decode and lift the instruction at the start of ``window``.

    ``address`` is the absolute address of ``window[0]`` and is used to find
    the owning function and to resolve jump targets.  Raises
    :class:`~luau_lift.exceptions.DecodeError` when the window cannot be
    decoded; operand resolution failures never raise.
    """

    instruction = Instruction.decode(window)
    return lift_decoded(module, instruction, address)
