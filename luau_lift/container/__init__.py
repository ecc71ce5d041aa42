"""Container parsing and the immutable module model."""

from __future__ import annotations

from .layout import Layout, Section, SectionSemantics, Segment, build_layout
from .model import (
    ByteRange,
    Boolean,
    Closure,
    ConstantTag,
    Function,
    Import,
    Module,
    Nil,
    Number,
    String,
    Table,
    Value,
    describe_value,
)
from .parser import parse_module
from .store import ModuleStore

__all__ = [
    "ByteRange",
    "Boolean",
    "Closure",
    "ConstantTag",
    "Function",
    "Import",
    "Module",
    "Nil",
    "Number",
    "String",
    "Table",
    "Value",
    "describe_value",
    "parse_module",
    "ModuleStore",
    "Layout",
    "Section",
    "SectionSemantics",
    "Segment",
    "build_layout",
]
