"""Operand resolution for instruction listings.

Each operand of a decoded instruction is paired with its schema type and
resolved against the module: registers get names, locations become absolute
addresses, constants are looked up in the owning function and function or
import operands are followed to the code or constant they name.  Resolution
never raises; anything that cannot be followed is rendered as ``?``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..container.model import Function, Module, String, Value, describe_value
from ..decoder.builtins import builtin_from_id
from ..decoder.instruction import Instruction, jump_target
from ..decoder.opcodes import OperandName, OperandType
from ..decoder.references import iter_reference
from ..exceptions import DecodeError
from ..utils.byteops import Buffer

__all__ = ["ResolvedOperand", "resolve_operands", "format_instruction"]


@dataclass(frozen=True)
class ResolvedOperand:
    name: OperandName
    type: OperandType
    raw: int
    value: object = None
    address: Optional[int] = None
    text: str = "?"


def _constant(function: Optional[Function], index: int) -> Optional[Value]:
    if function is None or not 0 <= index < len(function.constants):
        return None
    return function.constants[index]


def _string_text(module: Module, buffer: Optional[Buffer], value: Value) -> Optional[str]:
    if buffer is None or not isinstance(value, String):
        return None
    try:
        data = module.string_bytes(buffer, value.index)
    except IndexError:
        return None
    if data is None:
        return None
    return data.decode("utf-8", errors="replace")


def _resolve_constant(
    module: Module, function: Optional[Function], raw: int, buffer: Optional[Buffer]
) -> Tuple[object, Optional[int], str]:
    value = _constant(function, raw)
    if value is None:
        return None, None, f"k{raw}?"
    text = _string_text(module, buffer, value)
    if text is not None:
        return value, None, repr(text)
    return value, None, describe_value(value)


def _resolve_function(
    module: Module, function: Optional[Function], raw: int
) -> Tuple[object, Optional[int], str]:
    if function is None or not 0 <= raw < len(function.references):
        return None, None, f"proto{raw}?"
    target_index = function.references[raw]
    if not 0 <= target_index < len(module.functions):
        return target_index, None, f"func_{target_index}?"
    start = module.functions[target_index].code.start
    return target_index, start, f"func_{target_index}@{start:#x}"


def _resolve_import(
    module: Module, function: Optional[Function], raw: int, buffer: Optional[Buffer]
) -> Tuple[object, Optional[int], str]:
    parts: List[str] = []
    chain: List[Optional[Value]] = []
    for index in iter_reference(raw):
        value = _constant(function, index)
        chain.append(value)
        if value is None:
            parts.append(f"k{index}?")
            continue
        parts.append(_string_text(module, buffer, value) or describe_value(value))
    return tuple(chain), None, ".".join(parts) if parts else "?"


def _resolve_one(
    module: Module,
    function: Optional[Function],
    instruction: Instruction,
    address: int,
    name: OperandName,
    kind: OperandType,
    buffer: Optional[Buffer],
) -> ResolvedOperand:
    raw = instruction.field(name)
    value: object = raw
    target: Optional[int] = None

    if kind is OperandType.LOCATION:
        target = jump_target(address, raw)
        text = f"{target:#x}"
    elif kind is OperandType.REGISTER:
        text = f"r{raw}"
    elif kind is OperandType.UPVALUE:
        text = f"u{raw}"
    elif kind is OperandType.BOOLEAN:
        value = bool(raw)
        text = "true" if raw else "false"
    elif kind is OperandType.INTEGER:
        text = str(raw)
    elif kind is OperandType.CONSTANT:
        value, target, text = _resolve_constant(module, function, raw, buffer)
    elif kind is OperandType.FUNCTION:
        value, target, text = _resolve_function(module, function, raw)
    elif kind is OperandType.IMPORT:
        value, target, text = _resolve_import(module, function, raw, buffer)
    else:
        try:
            builtin = builtin_from_id(raw)
        except DecodeError:
            value, text = None, f"builtin{raw}?"
        else:
            value, text = builtin, builtin.qualified_name

    return ResolvedOperand(name=name, type=kind, raw=raw, value=value, address=target, text=text)


def resolve_operands(
    module: Module,
    instruction: Instruction,
    address: int,
    *,
    buffer: Optional[Buffer] = None,
) -> Tuple[ResolvedOperand, ...]:
    """Resolve every operand of ``instruction`` located at ``address``.

    When ``buffer`` is given, string constants are rendered with their text.
    """

    function = module.function_at(address)
    return tuple(
        _resolve_one(module, function, instruction, address, name, kind, buffer)
        for name, kind in instruction.info.iter_operands()
    )


def format_instruction(
    module: Module,
    instruction: Instruction,
    address: int,
    *,
    buffer: Optional[Buffer] = None,
) -> str:
    """Return a single listing line for ``instruction``."""

    operands = resolve_operands(module, instruction, address, buffer=buffer)
    raw = instruction.raw.hex()
    line = f"{address:#06x}  {raw:<16}  {instruction.mnemonic}"
    if operands:
        line += " " + ", ".join(operand.text for operand in operands)
    return line
