"""Immutable data model for a parsed Luau bytecode container."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Tuple, Union

from ..utils.byteops import Buffer


class ConstantTag(IntEnum):
    """Wire tags of the constant table entries."""

    NIL = 0
    BOOLEAN = 1
    NUMBER = 2
    STRING = 3
    IMPORT = 4
    TABLE = 5
    CLOSURE = 6


@dataclass(frozen=True)
class ByteRange:
    """Half-open ``[start, end)`` span of the container buffer."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"invalid byte range {self.start}..{self.end}")

    def __len__(self) -> int:
        return self.end - self.start

    def __contains__(self, address: object) -> bool:
        return isinstance(address, int) and self.start <= address < self.end

    def covers(self, other: "ByteRange") -> bool:
        return self.start <= other.start and other.end <= self.end

    def as_tuple(self) -> Tuple[int, int]:
        return self.start, self.end


@dataclass(frozen=True)
class Nil:
    """The ``nil`` constant."""


@dataclass(frozen=True)
class Boolean:
    flag: bool


@dataclass(frozen=True)
class Number:
    value: float


@dataclass(frozen=True)
class String:
    """Reference into the module string table (1-based, 0 means none)."""

    index: int


@dataclass(frozen=True)
class Closure:
    """Reference to a function prototype by its module-wide index."""

    index: int


@dataclass(frozen=True)
class Import:
    """Packed reference word naming a dotted global path."""

    word: int


@dataclass(frozen=True)
class Table:
    """Table template constant; its key list is discarded at parse time."""


Value = Union[Nil, Boolean, Number, String, Closure, Import, Table]

NIL = Nil()
TRUE = Boolean(True)
FALSE = Boolean(False)
TABLE = Table()


def describe_value(value: Value) -> str:
    """Return a short human readable description of ``value``."""

    if isinstance(value, Nil):
        return "nil"
    if isinstance(value, Boolean):
        return "true" if value.flag else "false"
    if isinstance(value, Number):
        return repr(value.value)
    if isinstance(value, String):
        return f"str_{value.index - 1}" if value.index else "no_string"
    if isinstance(value, Closure):
        return f"func_{value.index}"
    if isinstance(value, Import):
        return f"import(0x{value.word:08x})"
    return "table"


@dataclass(frozen=True)
class Function:
    """A function prototype.

    ``position`` spans the whole record including debug info; ``code`` spans
    the instruction words only.  ``constant_ranges`` holds one byte range per
    entry of ``constants``.
    """

    position: ByteRange
    code: ByteRange
    constants: Tuple[Value, ...] = ()
    constant_ranges: Tuple[ByteRange, ...] = ()
    references: Tuple[int, ...] = ()
    debug_name: int = 0

    @property
    def instruction_words(self) -> int:
        return len(self.code) // 4

    @property
    def constant_span(self) -> Optional[ByteRange]:
        if not self.constant_ranges:
            return None
        return ByteRange(self.constant_ranges[0].start, self.constant_ranges[-1].end)


@dataclass(frozen=True)
class Module:
    """A whole parsed container.  Never mutated after construction."""

    functions: Tuple[Function, ...]
    strings: Tuple[ByteRange, ...]
    entry_index: int

    @property
    def entry_function(self) -> Function:
        return self.functions[self.entry_index]

    @property
    def entry_point(self) -> int:
        """Address of the first instruction of the entry function."""

        return self.entry_function.code.start

    @property
    def string_span(self) -> Optional[ByteRange]:
        if not self.strings:
            return None
        return ByteRange(self.strings[0].start, self.strings[-1].end)

    def function_at(self, address: int) -> Optional[Function]:
        """Return the function whose code range contains ``address``."""

        for function in self.functions:
            if address in function.code:
                return function
        return None

    def string_range(self, index: int) -> Optional[ByteRange]:
        """Resolve a 1-based string reference.

        Index 0 means "no string" and yields ``None``.  Out-of-range indices
        raise :class:`IndexError`.
        """

        if index == 0:
            return None
        if not 1 <= index <= len(self.strings):
            raise IndexError(f"string index {index} outside table of {len(self.strings)}")
        return self.strings[index - 1]

    def string_bytes(self, buffer: Buffer, index: int) -> Optional[bytes]:
        span = self.string_range(index)
        if span is None:
            return None
        return bytes(buffer[span.start : span.end])


__all__ = [
    "ConstantTag",
    "ByteRange",
    "Nil",
    "Boolean",
    "Number",
    "String",
    "Closure",
    "Import",
    "Table",
    "Value",
    "NIL",
    "TRUE",
    "FALSE",
    "TABLE",
    "describe_value",
    "Function",
    "Module",
]
