"""Deserialiser for Luau version 2 bytecode containers.

The container is read strictly front to back:

* one version byte,
* the string table (varint count, then length-prefixed byte strings),
* the prototype list (varint count, then one record per function),
* a trailing varint naming the entry function.

Strings and instruction streams are recorded as byte ranges of the input
buffer rather than copied.  Debug information is consumed so the cursor stays
aligned but none of it is retained.  Any short read, bad version byte or
unknown constant tag raises :class:`~luau_lift.exceptions.FormatError`; no
partial module is ever returned.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from ..config import ParserConfig
from ..exceptions import FormatError
from ..utils.byteops import Buffer, ByteReader
from .model import (
    FALSE,
    NIL,
    TABLE,
    TRUE,
    ByteRange,
    Closure,
    ConstantTag,
    Function,
    Import,
    Module,
    Number,
    String,
    Value,
)

LOGGER = logging.getLogger(__name__)

INSTRUCTION_WORD = 4

__all__ = ["parse_module"]


def _read_string_table(reader: ByteReader) -> Tuple[ByteRange, ...]:
    count = reader.varint("string count")
    strings: List[ByteRange] = []
    for _ in range(count):
        length = reader.varint("string length")
        start = reader.skip(length, "string bytes")
        strings.append(ByteRange(start, start + length))
    return tuple(strings)


def _read_constant(reader: ByteReader) -> Value:
    tag_offset = reader.offset
    tag = reader.u8("constant tag")
    try:
        kind = ConstantTag(tag)
    except ValueError as exc:
        raise FormatError(f"unknown constant tag {tag}", tag_offset) from exc

    if kind is ConstantTag.NIL:
        return NIL
    if kind is ConstantTag.BOOLEAN:
        return TRUE if reader.u8("boolean constant") else FALSE
    if kind is ConstantTag.NUMBER:
        return Number(reader.f64("number constant"))
    if kind is ConstantTag.STRING:
        return String(reader.varint("string constant"))
    if kind is ConstantTag.IMPORT:
        return Import(reader.u32("import constant"))
    if kind is ConstantTag.TABLE:
        for _ in range(reader.varint("table key count")):
            reader.varint("table key")
        return TABLE
    return Closure(reader.varint("closure constant"))


def _skip_line_info(reader: ByteReader, words: int) -> None:
    gap = reader.u8("line gap")
    intervals = ((words - 1) >> gap) + 1
    reader.skip(words, "line info")
    reader.skip(intervals * 4, "absolute line info")


def _skip_debug_info(reader: ByteReader, words: int) -> None:
    if reader.u8("line info flag"):
        _skip_line_info(reader, words)

    if reader.u8("debug info flag"):
        for _ in range(reader.varint("local count")):
            reader.varint("local name")
            reader.varint("local start pc")
            reader.varint("local end pc")
            reader.u8("local register")
        for _ in range(reader.varint("upvalue name count")):
            reader.varint("upvalue name")


def _read_function(reader: ByteReader) -> Function:
    start = reader.offset

    # max stack size, parameter count, upvalue count, vararg flag
    reader.skip(4, "prototype header")

    words = reader.varint("instruction count")
    code_start = reader.skip(words * INSTRUCTION_WORD, "instructions")
    code = ByteRange(code_start, code_start + words * INSTRUCTION_WORD)

    constants: List[Value] = []
    constant_ranges: List[ByteRange] = []
    for _ in range(reader.varint("constant count")):
        constant_start = reader.offset
        constants.append(_read_constant(reader))
        constant_ranges.append(ByteRange(constant_start, reader.offset))

    references = tuple(
        reader.varint("function reference")
        for _ in range(reader.varint("reference count"))
    )

    reader.varint("line defined")
    debug_name = reader.varint("debug name")

    _skip_debug_info(reader, words)

    return Function(
        position=ByteRange(start, reader.offset),
        code=code,
        constants=tuple(constants),
        constant_ranges=tuple(constant_ranges),
        references=references,
        debug_name=debug_name,
    )


def parse_module(buffer: Buffer, *, config: Optional[ParserConfig] = None) -> Module:
    """Parse ``buffer`` into a :class:`Module`.

    Raises :class:`FormatError` on any malformed input.
    """

    config = config or ParserConfig()
    reader = ByteReader(buffer)

    version = reader.u8("version")
    if version != config.expected_version:
        raise FormatError(
            f"unsupported bytecode version {version} (expected {config.expected_version})", 0
        )

    strings = _read_string_table(reader)

    count = reader.varint("function count")
    functions = tuple(_read_function(reader) for _ in range(count))

    entry_offset = reader.offset
    entry_index = reader.varint("entry function")
    if entry_index >= len(functions):
        raise FormatError(
            f"entry function {entry_index} outside prototype list of {len(functions)}",
            entry_offset,
        )

    if reader.remaining:
        LOGGER.debug("Ignoring %d trailing bytes after module", reader.remaining)

    LOGGER.debug(
        "Parsed module: %d strings, %d functions, entry function %d",
        len(strings),
        len(functions),
        entry_index,
    )
    return Module(functions=functions, strings=strings, entry_index=entry_index)
