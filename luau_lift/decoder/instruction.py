"""Instruction window decoding and jump-target arithmetic.

Field layout of the first 32-bit word (little endian)::

    byte 0   byte 1   byte 2   byte 3
    opcode   A        B        C
                      <--- D (i16) --->
             <-------- E (i24) ------->

Two-word instructions carry an auxiliary signed 32-bit word ``X`` at byte
offset 4.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from ..exceptions import DecodeError
from ..utils.byteops import Buffer
from .opcodes import Opcode, OpcodeInfo, OperandName, opcode_info

ADDRESS_MASK = (1 << 64) - 1

__all__ = ["ADDRESS_MASK", "Instruction", "jump_target"]


def jump_target(address: int, offset: int) -> int:
    """Return the absolute target of a jump ``offset`` words from ``address``.

    Offsets are relative to the word following the instruction's first word,
    so an offset of 0 names the next word and -1 names the instruction
    itself.  The result wraps to 64 bits.
    """

    return (address + offset * 4 + 4) & ADDRESS_MASK


@dataclass(frozen=True)
class Instruction:
    """A decoded instruction holding exactly its own encoded bytes."""

    info: OpcodeInfo
    raw: bytes

    @classmethod
    def decode(cls, window: Buffer) -> "Instruction":
        """Decode the instruction at the start of ``window``.

        Raises :class:`DecodeError` for an empty window, an unknown opcode, or
        a window shorter than the opcode's encoded length.
        """

        if not len(window):
            raise DecodeError("empty instruction window")
        info = opcode_info(window[0])
        if len(window) < info.length:
            raise DecodeError(
                f"{info.mnemonic} needs {info.length} bytes, window has {len(window)}"
            )
        return cls(info=info, raw=bytes(window[: info.length]))

    @property
    def opcode(self) -> Opcode:
        return self.info.opcode

    @property
    def mnemonic(self) -> str:
        return self.info.mnemonic

    @property
    def length(self) -> int:
        return self.info.length

    @property
    def a(self) -> int:
        return self.raw[1]

    @property
    def b(self) -> int:
        return self.raw[2]

    @property
    def c(self) -> int:
        return self.raw[3]

    @property
    def d(self) -> int:
        return int.from_bytes(self.raw[2:4], "little", signed=True)

    @property
    def e(self) -> int:
        return int.from_bytes(self.raw[0:4], "little", signed=True) >> 8

    @property
    def x(self) -> int:
        if self.info.length < 8:
            raise DecodeError(f"{self.info.mnemonic} has no auxiliary word")
        return int.from_bytes(self.raw[4:8], "little", signed=True)

    adjacent = x

    def field(self, name: OperandName) -> int:
        return getattr(self, name.value)

    def operand_values(self) -> Dict[OperandName, int]:
        return {name: self.field(name) for name, _ in self.info.operands}

    def jump_target(self, address: int, offset: int) -> int:
        return jump_target(address, offset)

    def fallthrough(self, address: int) -> int:
        """Address of the false edge of a conditional branch at ``address``."""

        return jump_target(address, self.info.next_offset)
