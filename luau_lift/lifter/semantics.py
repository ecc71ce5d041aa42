"""Per-opcode lowering rules.

Each rule is a small function registered in :data:`SEMANTICS` under the
opcodes it implements.  Rules receive a :class:`LiftContext` and return the
IR statements for one instruction.  A rule that cannot resolve an operand
raises :class:`~luau_lift.exceptions.LiftGap`; the caller turns that into an
``Unimplemented`` statement for this instruction alone.

Opcodes without a rule lift to ``Unimplemented``.  Adding semantics for a new
opcode means adding one registered function here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Set

from ..container.model import Function, Module, Number
from ..decoder.instruction import Instruction, jump_target
from ..decoder.opcodes import Opcode
from ..exceptions import LiftGap
from . import ir
from .branches import conditional_targets
from .constants import FLOAT_SEMANTICS, lookup_constant, lower_value

__all__ = ["LiftContext", "Rule", "SEMANTICS", "semantics_for"]


@dataclass
class LiftContext:
    """Inputs of one instruction lift plus notes collected on the way."""

    module: Module
    function: Optional[Function]
    instruction: Instruction
    address: int
    notes: Set[str] = field(default_factory=set)

    def register(self, value: int) -> int:
        """Validate a stack slot index read from a wide field."""

        if not 0 <= value <= 0xFF:
            raise LiftGap(f"register operand {value} out of range")
        return value

    def slot(self, value: int) -> ir.Expr:
        return ir.read_slot(self.register(value))

    def constant(self, index: int) -> ir.Expr:
        value = lookup_constant(self.function, index)
        if isinstance(value, Number):
            self.notes.add(FLOAT_SEMANTICS)
        return lower_value(self.module, value)

    def branch_if(self, condition: ir.Expr) -> ir.If:
        on_true, on_false = conditional_targets(self.instruction, self.address)
        return ir.If(condition, on_true, on_false)


Rule = Callable[[LiftContext], Sequence[ir.Statement]]

SEMANTICS: Dict[Opcode, Rule] = {}


def _rule(*opcodes: Opcode) -> Callable[[Rule], Rule]:
    def _register(func: Rule) -> Rule:
        for opcode in opcodes:
            if opcode in SEMANTICS:
                raise ValueError(f"duplicate semantics for {opcode.name}")
            SEMANTICS[opcode] = func
        return func

    return _register


def semantics_for(opcode: Opcode) -> Optional[Rule]:
    return SEMANTICS.get(opcode)


# ---------------------------------------------------------------------------
# Trivial and load instructions
# ---------------------------------------------------------------------------


@_rule(Opcode.NOP)
def _nop(ctx: LiftContext) -> List[ir.Statement]:
    return [ir.Nop()]


@_rule(Opcode.BREAK)
def _break(ctx: LiftContext) -> List[ir.Statement]:
    return [ir.Breakpoint()]


@_rule(Opcode.LOAD_NIL)
def _load_nil(ctx: LiftContext) -> List[ir.Statement]:
    return [ir.write_slot(ctx.instruction.a, ir.NIL)]


@_rule(Opcode.LOAD_BOOLEAN)
def _load_boolean(ctx: LiftContext) -> List[ir.Statement]:
    inst = ctx.instruction
    value = ir.TRUE if inst.b else ir.FALSE
    return [
        ir.write_slot(inst.a, value),
        ir.Goto(jump_target(ctx.address, inst.c)),
    ]


@_rule(Opcode.LOAD_INTEGER)
def _load_integer(ctx: LiftContext) -> List[ir.Statement]:
    inst = ctx.instruction
    return [ir.write_slot(inst.a, ir.Const(inst.d))]


@_rule(Opcode.LOAD_CONSTANT)
def _load_constant(ctx: LiftContext) -> List[ir.Statement]:
    inst = ctx.instruction
    return [ir.write_slot(inst.a, ctx.constant(inst.d))]


@_rule(Opcode.LOAD_CONSTANT_EX)
def _load_constant_ex(ctx: LiftContext) -> List[ir.Statement]:
    inst = ctx.instruction
    return [ir.write_slot(inst.a, ctx.constant(inst.x))]


@_rule(Opcode.MOVE)
def _move(ctx: LiftContext) -> List[ir.Statement]:
    inst = ctx.instruction
    return [ir.write_slot(inst.a, ctx.slot(inst.b))]


# ---------------------------------------------------------------------------
# Control flow
# ---------------------------------------------------------------------------


@_rule(Opcode.JUMP, Opcode.JUMP_SAFE)
def _jump(ctx: LiftContext) -> List[ir.Statement]:
    return [ir.Goto(jump_target(ctx.address, ctx.instruction.d))]


@_rule(Opcode.JUMP_EX)
def _jump_ex(ctx: LiftContext) -> List[ir.Statement]:
    return [ir.Goto(jump_target(ctx.address, ctx.instruction.e))]


@_rule(Opcode.JUMP_IF_TRUTHY)
def _jump_if_truthy(ctx: LiftContext) -> List[ir.Statement]:
    return [ctx.branch_if(ctx.slot(ctx.instruction.a))]


@_rule(Opcode.JUMP_IF_FALSY)
def _jump_if_falsy(ctx: LiftContext) -> List[ir.Statement]:
    condition = ir.UnaryOp(ir.UnaryOperator.NOT, ctx.slot(ctx.instruction.a))
    return [ctx.branch_if(condition)]


_SLOT_COMPARISONS: Dict[Opcode, ir.BinaryOperator] = {
    Opcode.JUMP_IF_EQUAL: ir.BinaryOperator.CMP_E,
    Opcode.JUMP_IF_NOT_EQUAL: ir.BinaryOperator.CMP_NE,
    Opcode.JUMP_IF_LESS_THAN: ir.BinaryOperator.CMP_SLT,
    Opcode.JUMP_IF_LESS_EQUAL: ir.BinaryOperator.CMP_SLE,
    Opcode.JUMP_IF_MORE_THAN: ir.BinaryOperator.CMP_SGT,
    Opcode.JUMP_IF_MORE_EQUAL: ir.BinaryOperator.CMP_SGE,
}


@_rule(*_SLOT_COMPARISONS)
def _jump_if_compare(ctx: LiftContext) -> List[ir.Statement]:
    inst = ctx.instruction
    operator = _SLOT_COMPARISONS[inst.opcode]
    condition = ir.BinaryOp(operator, ctx.slot(inst.a), ctx.slot(inst.x))
    return [ctx.branch_if(condition)]


_CONSTANT_COMPARISONS: Dict[Opcode, ir.BinaryOperator] = {
    Opcode.JUMP_IF_CONSTANT: ir.BinaryOperator.CMP_E,
    Opcode.JUMP_IF_NOT_CONSTANT: ir.BinaryOperator.CMP_NE,
}


@_rule(*_CONSTANT_COMPARISONS)
def _jump_if_constant(ctx: LiftContext) -> List[ir.Statement]:
    inst = ctx.instruction
    operator = _CONSTANT_COMPARISONS[inst.opcode]
    condition = ir.BinaryOp(operator, ctx.slot(inst.a), ctx.constant(inst.x))
    return [ctx.branch_if(condition)]


@_rule(Opcode.RETURN)
def _return(ctx: LiftContext) -> List[ir.Statement]:
    inst = ctx.instruction
    if inst.b == 0:
        raise LiftGap("return of a variable number of values")
    count = inst.b - 1
    return [ir.Ret(ir.Load(count * ir.SLOT_SIZE, ir.slot_address(inst.a)))]


# ---------------------------------------------------------------------------
# Arithmetic
#
# Runtime numbers are doubles but these rules emit signed 64-bit integer
# operations; every such lift carries the FLOAT_SEMANTICS note.
# ---------------------------------------------------------------------------

_ARITHMETIC: Dict[Opcode, ir.BinaryOperator] = {
    Opcode.ADD: ir.BinaryOperator.ADD,
    Opcode.SUB: ir.BinaryOperator.SUB,
    Opcode.MUL: ir.BinaryOperator.MUL,
    Opcode.DIV: ir.BinaryOperator.DIVS,
    Opcode.MOD: ir.BinaryOperator.MODS,
}

_ARITHMETIC_CONSTANT: Dict[Opcode, ir.BinaryOperator] = {
    Opcode.ADD_CONSTANT: ir.BinaryOperator.ADD,
    Opcode.SUB_CONSTANT: ir.BinaryOperator.SUB,
    Opcode.MUL_CONSTANT: ir.BinaryOperator.MUL,
    Opcode.DIV_CONSTANT: ir.BinaryOperator.DIVS,
    Opcode.MOD_CONSTANT: ir.BinaryOperator.MODS,
}


@_rule(*_ARITHMETIC)
def _arithmetic(ctx: LiftContext) -> List[ir.Statement]:
    inst = ctx.instruction
    ctx.notes.add(FLOAT_SEMANTICS)
    result = ir.BinaryOp(_ARITHMETIC[inst.opcode], ctx.slot(inst.b), ctx.slot(inst.c))
    return [ir.write_slot(inst.a, result)]


@_rule(*_ARITHMETIC_CONSTANT)
def _arithmetic_constant(ctx: LiftContext) -> List[ir.Statement]:
    inst = ctx.instruction
    ctx.notes.add(FLOAT_SEMANTICS)
    operator = _ARITHMETIC_CONSTANT[inst.opcode]
    result = ir.BinaryOp(operator, ctx.slot(inst.b), ctx.constant(inst.c))
    return [ir.write_slot(inst.a, result)]


@_rule(Opcode.NOT)
def _not(ctx: LiftContext) -> List[ir.Statement]:
    inst = ctx.instruction
    return [ir.write_slot(inst.a, ir.UnaryOp(ir.UnaryOperator.NOT, ctx.slot(inst.b)))]


@_rule(Opcode.MINUS)
def _minus(ctx: LiftContext) -> List[ir.Statement]:
    inst = ctx.instruction
    ctx.notes.add(FLOAT_SEMANTICS)
    return [ir.write_slot(inst.a, ir.UnaryOp(ir.UnaryOperator.NEG, ctx.slot(inst.b)))]
