"""Low-level IR emitted by the semantic lifter.

The abstract machine has two registers, ``stack`` (base of the current frame)
and ``return`` (continuation), and a flat memory of 8-byte slots addressed as
``stack + 8 * index``.  Non-numeric runtime values (``nil``, ``true``,
``false``) are represented by :class:`Sentinel` expressions.

Every node is an immutable dataclass with ``render()`` for listings and
``as_dict()`` for JSON artefacts.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Union

SLOT_SIZE = 8


class MachineRegister(str, Enum):
    STACK = "stack"
    RETURN = "return"


class SentinelKind(str, Enum):
    NIL = "nil"
    FALSE = "false"
    TRUE = "true"


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Reg:
    register: MachineRegister
    size: int = SLOT_SIZE

    def render(self) -> str:
        return self.register.value

    def as_dict(self) -> Dict[str, Any]:
        return {"op": "reg", "register": self.register.value, "size": self.size}


@dataclass(frozen=True)
class Sentinel:
    kind: SentinelKind
    size: int = SLOT_SIZE

    def render(self) -> str:
        return f"<{self.kind.value}>"

    def as_dict(self) -> Dict[str, Any]:
        return {"op": "sentinel", "kind": self.kind.value, "size": self.size}


@dataclass(frozen=True)
class Const:
    """Integer constant; ``bits`` is its two's complement pattern."""

    value: int
    size: int = SLOT_SIZE

    @property
    def bits(self) -> int:
        return self.value & ((1 << (self.size * 8)) - 1)

    def render(self) -> str:
        return f"{self.value:#x}" if self.value >= 0 else f"-{-self.value:#x}"

    def as_dict(self) -> Dict[str, Any]:
        return {"op": "const", "value": self.value, "size": self.size}


@dataclass(frozen=True)
class ConstPtr:
    address: int
    size: int = SLOT_SIZE

    def render(self) -> str:
        return f"&{self.address:#x}"

    def as_dict(self) -> Dict[str, Any]:
        return {"op": "const_ptr", "address": self.address, "size": self.size}


@dataclass(frozen=True)
class Load:
    size: int
    address: "Expr"

    def render(self) -> str:
        return f"[{self.address.render()}].{self.size}"

    def as_dict(self) -> Dict[str, Any]:
        return {"op": "load", "size": self.size, "address": self.address.as_dict()}


class BinaryOperator(str, Enum):
    ADD = "add"
    SUB = "sub"
    MUL = "mul"
    DIVS = "divs"
    MODS = "mods"
    CMP_E = "cmp_e"
    CMP_NE = "cmp_ne"
    CMP_SLT = "cmp_slt"
    CMP_SLE = "cmp_sle"
    CMP_SGT = "cmp_sgt"
    CMP_SGE = "cmp_sge"


_BINARY_SYMBOLS = {
    BinaryOperator.ADD: "+",
    BinaryOperator.SUB: "-",
    BinaryOperator.MUL: "*",
    BinaryOperator.DIVS: "/s",
    BinaryOperator.MODS: "%s",
    BinaryOperator.CMP_E: "==",
    BinaryOperator.CMP_NE: "!=",
    BinaryOperator.CMP_SLT: "<s",
    BinaryOperator.CMP_SLE: "<=s",
    BinaryOperator.CMP_SGT: ">s",
    BinaryOperator.CMP_SGE: ">=s",
}


@dataclass(frozen=True)
class BinaryOp:
    operator: BinaryOperator
    left: "Expr"
    right: "Expr"
    size: int = SLOT_SIZE

    def render(self) -> str:
        symbol = _BINARY_SYMBOLS[self.operator]
        return f"({self.left.render()} {symbol} {self.right.render()})"

    def as_dict(self) -> Dict[str, Any]:
        return {
            "op": self.operator.value,
            "size": self.size,
            "left": self.left.as_dict(),
            "right": self.right.as_dict(),
        }


class UnaryOperator(str, Enum):
    NOT = "not"
    NEG = "neg"


@dataclass(frozen=True)
class UnaryOp:
    operator: UnaryOperator
    operand: "Expr"
    size: int = SLOT_SIZE

    def render(self) -> str:
        symbol = "!" if self.operator is UnaryOperator.NOT else "-"
        return f"{symbol}{self.operand.render()}"

    def as_dict(self) -> Dict[str, Any]:
        return {"op": self.operator.value, "size": self.size, "operand": self.operand.as_dict()}


Expr = Union[Reg, Sentinel, Const, ConstPtr, Load, BinaryOp, UnaryOp]


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Nop:
    def render(self) -> str:
        return "nop"

    def as_dict(self) -> Dict[str, Any]:
        return {"op": "nop"}


@dataclass(frozen=True)
class Breakpoint:
    def render(self) -> str:
        return "breakpoint"

    def as_dict(self) -> Dict[str, Any]:
        return {"op": "breakpoint"}


@dataclass(frozen=True)
class Store:
    size: int
    address: Expr
    value: Expr

    def render(self) -> str:
        return f"[{self.address.render()}].{self.size} = {self.value.render()}"

    def as_dict(self) -> Dict[str, Any]:
        return {
            "op": "store",
            "size": self.size,
            "address": self.address.as_dict(),
            "value": self.value.as_dict(),
        }


@dataclass(frozen=True)
class Goto:
    target: int

    def render(self) -> str:
        return f"goto {self.target:#x}"

    def as_dict(self) -> Dict[str, Any]:
        return {"op": "goto", "target": self.target}


@dataclass(frozen=True)
class If:
    condition: Expr
    true_target: int
    false_target: int

    def render(self) -> str:
        return (
            f"if {self.condition.render()} then goto {self.true_target:#x}"
            f" else goto {self.false_target:#x}"
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "op": "if",
            "condition": self.condition.as_dict(),
            "true": self.true_target,
            "false": self.false_target,
        }


@dataclass(frozen=True)
class Ret:
    value: Expr

    def render(self) -> str:
        return f"return {self.value.render()}"

    def as_dict(self) -> Dict[str, Any]:
        return {"op": "ret", "value": self.value.as_dict()}


@dataclass(frozen=True)
class Unimplemented:
    """Hard analysis boundary: the instruction has no lowering here."""

    reason: str = ""

    def render(self) -> str:
        return f"unimplemented ({self.reason})" if self.reason else "unimplemented"

    def as_dict(self) -> Dict[str, Any]:
        return {"op": "unimplemented", "reason": self.reason}


Statement = Union[Nop, Breakpoint, Store, Goto, If, Ret, Unimplemented]


# ---------------------------------------------------------------------------
# Stack slot helpers
# ---------------------------------------------------------------------------

STACK = Reg(MachineRegister.STACK)
NIL = Sentinel(SentinelKind.NIL)
FALSE = Sentinel(SentinelKind.FALSE)
TRUE = Sentinel(SentinelKind.TRUE)


def slot_address(index: int) -> Expr:
    return BinaryOp(BinaryOperator.ADD, STACK, Const(index * SLOT_SIZE))


def read_slot(index: int) -> Expr:
    return Load(SLOT_SIZE, slot_address(index))


def write_slot(index: int, value: Expr) -> Store:
    return Store(SLOT_SIZE, slot_address(index), value)


__all__ = [
    "SLOT_SIZE",
    "MachineRegister",
    "SentinelKind",
    "Reg",
    "Sentinel",
    "Const",
    "ConstPtr",
    "Load",
    "BinaryOperator",
    "BinaryOp",
    "UnaryOperator",
    "UnaryOp",
    "Expr",
    "Nop",
    "Breakpoint",
    "Store",
    "Goto",
    "If",
    "Ret",
    "Unimplemented",
    "Statement",
    "STACK",
    "NIL",
    "FALSE",
    "TRUE",
    "slot_address",
    "read_slot",
    "write_slot",
]
