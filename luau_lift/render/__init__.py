"""Operand resolution used by listings."""

from .operands import ResolvedOperand, format_instruction, resolve_operands

__all__ = ["ResolvedOperand", "format_instruction", "resolve_operands"]
