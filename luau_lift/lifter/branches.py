"""Outgoing control-flow edges of a single instruction."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from ..decoder.instruction import Instruction, jump_target
from ..decoder.opcodes import Opcode


class BranchKind(str, Enum):
    UNCONDITIONAL = "unconditional"
    TRUE = "true"
    FALSE = "false"
    INDIRECT = "indirect"
    FUNCTION_RETURN = "function_return"


@dataclass(frozen=True)
class Branch:
    kind: BranchKind
    target: Optional[int] = None

    def as_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {"kind": self.kind.value}
        if self.target is not None:
            payload["target"] = self.target
        return payload


_CONDITIONAL = frozenset(
    {
        Opcode.JUMP_IF_TRUTHY,
        Opcode.JUMP_IF_FALSY,
        Opcode.JUMP_IF_EQUAL,
        Opcode.JUMP_IF_NOT_EQUAL,
        Opcode.JUMP_IF_LESS_THAN,
        Opcode.JUMP_IF_LESS_EQUAL,
        Opcode.JUMP_IF_MORE_THAN,
        Opcode.JUMP_IF_MORE_EQUAL,
        Opcode.FOR_NUMERIC_PREP,
        Opcode.FOR_NUMERIC_LOOP,
        Opcode.FOR_GENERIC_LOOP,
        Opcode.FOR_GENERIC_PREP_I_NEXT,
        Opcode.FOR_GENERIC_LOOP_I_NEXT,
        Opcode.FOR_GENERIC_PREP_NEXT,
        Opcode.FOR_GENERIC_LOOP_NEXT,
        Opcode.JUMP_IF_CONSTANT,
        Opcode.JUMP_IF_NOT_CONSTANT,
        Opcode.FOR_GENERIC_PREP,
    }
)

# The auxiliary word's sign bit inverts the test of these opcodes.
_TYPED_CONDITIONAL = frozenset(
    {
        Opcode.JUMP_IF_NIL,
        Opcode.JUMP_IF_BOOLEAN,
        Opcode.JUMP_IF_NUMBER,
        Opcode.JUMP_IF_STRING,
    }
)

_FAST_CALLS = frozenset(
    {Opcode.FAST_CALL, Opcode.FAST_CALL1, Opcode.FAST_CALL2, Opcode.FAST_CALL2_K}
)

_UNCONDITIONAL_D = frozenset({Opcode.JUMP, Opcode.JUMP_SAFE})


def conditional_targets(instruction: Instruction, address: int) -> Tuple[int, int]:
    """Return ``(true_target, false_target)`` for a conditional branch.

    The false edge uses the opcode's ``next`` offset (words minus one) rather
    than the instruction end.
    """

    on_true = jump_target(address, instruction.d)
    on_false = jump_target(address, instruction.info.next_offset)
    return on_true, on_false


def instruction_branches(instruction: Instruction, address: int) -> Tuple[Branch, ...]:
    """Return the outgoing edges of ``instruction`` located at ``address``.

    Instructions that simply fall through return an empty tuple.
    """

    op = instruction.opcode
    branches: List[Branch] = []

    if op is Opcode.LOAD_BOOLEAN:
        branches.append(Branch(BranchKind.UNCONDITIONAL, jump_target(address, instruction.c)))
    elif op is Opcode.RETURN:
        branches.append(Branch(BranchKind.FUNCTION_RETURN))
    elif op in _UNCONDITIONAL_D:
        branches.append(Branch(BranchKind.UNCONDITIONAL, jump_target(address, instruction.d)))
    elif op is Opcode.JUMP_EX:
        branches.append(Branch(BranchKind.UNCONDITIONAL, jump_target(address, instruction.e)))
    elif op in _CONDITIONAL:
        on_true, on_false = conditional_targets(instruction, address)
        branches.append(Branch(BranchKind.FALSE, on_false))
        branches.append(Branch(BranchKind.TRUE, on_true))
    elif op in _TYPED_CONDITIONAL:
        on_true, on_false = conditional_targets(instruction, address)
        if instruction.x < 0:
            on_true, on_false = on_false, on_true
        branches.append(Branch(BranchKind.FALSE, on_false))
        branches.append(Branch(BranchKind.TRUE, on_true))
    elif op in _FAST_CALLS:
        on_false = jump_target(address, instruction.info.next_offset)
        on_true = jump_target(address, instruction.c + 1)
        branches.append(Branch(BranchKind.INDIRECT))
        branches.append(Branch(BranchKind.FALSE, on_false))
        branches.append(Branch(BranchKind.TRUE, on_true))

    return tuple(branches)


__all__ = ["BranchKind", "Branch", "conditional_targets", "instruction_branches"]
