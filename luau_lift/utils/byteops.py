"""Helpers for reading packed little-endian bytecode fields."""

from __future__ import annotations

import struct
from typing import Tuple, Union

from ..exceptions import FormatError

Buffer = Union[bytes, bytearray, memoryview]

_DOUBLE = struct.Struct("<d")


def sign_extend(value: int, bits: int) -> int:
    """Sign extend ``value`` with ``bits`` significant bits."""

    if bits <= 0:
        return value
    value &= (1 << bits) - 1
    mask = 1 << (bits - 1)
    return (value ^ mask) - mask


def decode_varint(data: Buffer, start: int = 0) -> Tuple[int, int]:
    """Decode a little-endian base-128 varint.

    Each byte contributes its low seven bits; a set high bit means another
    byte follows.  There is no width limit.  Returns ``(value, consumed)``.
    Raises :class:`FormatError` when the buffer ends before the last byte.
    """

    value = 0
    shift = 0
    offset = start
    while True:
        if offset >= len(data):
            raise FormatError("unterminated varint", offset)
        byte = data[offset]
        offset += 1
        value |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return value, offset - start
        shift += 7


def encode_varint(value: int) -> bytes:
    """Return the base-128 encoding of the non-negative integer ``value``."""

    if value < 0:
        raise ValueError("varints encode non-negative integers only")
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


class ByteReader:
    """Sequential cursor over an immutable buffer.

    Every read either returns the requested data or raises
    :class:`FormatError`; there is no backtracking.
    """

    def __init__(self, data: Buffer, offset: int = 0) -> None:
        self._data = memoryview(data).cast("B") if not isinstance(data, bytes) else data
        self.offset = offset

    def __len__(self) -> int:
        return len(self._data)

    @property
    def remaining(self) -> int:
        return len(self._data) - self.offset

    def _require(self, size: int, what: str) -> int:
        start = self.offset
        if size < 0 or start + size > len(self._data):
            raise FormatError(f"short read while reading {what}", start)
        self.offset = start + size
        return start

    def skip(self, size: int, what: str = "data") -> int:
        """Advance past ``size`` bytes and return the offset they started at."""

        return self._require(size, what)

    def u8(self, what: str = "byte") -> int:
        start = self._require(1, what)
        return self._data[start]

    def u32(self, what: str = "u32") -> int:
        start = self._require(4, what)
        return int.from_bytes(self._data[start : start + 4], "little")

    def f64(self, what: str = "number") -> float:
        start = self._require(8, what)
        return _DOUBLE.unpack(bytes(self._data[start : start + 8]))[0]

    def varint(self, what: str = "varint") -> int:
        try:
            value, consumed = decode_varint(self._data, self.offset)
        except FormatError as exc:
            raise FormatError(f"unterminated varint while reading {what}", exc.offset) from exc
        self.offset += consumed
        return value


__all__ = ["Buffer", "ByteReader", "decode_varint", "encode_varint", "sign_extend"]
