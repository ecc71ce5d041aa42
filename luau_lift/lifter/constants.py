"""Lowering of constant-table values to IR expressions."""

from __future__ import annotations

import struct
from typing import Optional

from ..container.model import (
    Boolean,
    Closure,
    Function,
    Import,
    Module,
    Nil,
    Number,
    String,
    Table,
    Value,
)
from ..exceptions import LiftGap
from . import ir

FLOAT_SEMANTICS = "float-semantics"

_DOUBLE = struct.Struct("<d")
_BITS = struct.Struct("<Q")

__all__ = ["FLOAT_SEMANTICS", "double_bits", "lookup_constant", "lower_value"]


def double_bits(value: float) -> int:
    """Return the IEEE-754 bit pattern of ``value`` as an unsigned integer."""

    return _BITS.unpack(_DOUBLE.pack(value))[0]


def lookup_constant(function: Optional[Function], index: int) -> Value:
    if function is None:
        raise LiftGap("instruction lies outside every function's code range")
    if not 0 <= index < len(function.constants):
        raise LiftGap(f"constant index {index} outside table of {len(function.constants)}")
    return function.constants[index]


def lower_value(module: Module, value: Value) -> ir.Expr:
    """Lower ``value`` to an IR expression.

    Numbers lower to the raw bit pattern of the double; float IR is not
    modelled, so callers tag such instructions with :data:`FLOAT_SEMANTICS`.
    Imports and tables have no lowering and raise :class:`LiftGap`.
    """

    if isinstance(value, Nil):
        return ir.NIL
    if isinstance(value, Boolean):
        return ir.TRUE if value.flag else ir.FALSE
    if isinstance(value, Number):
        return ir.Const(double_bits(value.value))
    if isinstance(value, String):
        try:
            span = module.string_range(value.index)
        except IndexError as exc:
            raise LiftGap(str(exc)) from exc
        return ir.ConstPtr(span.start if span is not None else 0)
    if isinstance(value, Closure):
        if not 0 <= value.index < len(module.functions):
            raise LiftGap(f"closure index {value.index} outside {len(module.functions)} functions")
        return ir.ConstPtr(module.functions[value.index].code.start)
    if isinstance(value, Import):
        raise LiftGap("import constants have no lowering")
    if isinstance(value, Table):
        raise LiftGap("table constants have no lowering")
    raise LiftGap(f"unsupported constant {value!r}")
