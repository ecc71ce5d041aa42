"""Byte-level and filesystem helpers shared across the lifter."""

from __future__ import annotations

from .byteops import ByteReader, decode_varint, encode_varint, sign_extend
from .io_utils import ensure_directory, write_json, write_text

__all__ = [
    "ByteReader",
    "decode_varint",
    "encode_varint",
    "sign_extend",
    "ensure_directory",
    "write_json",
    "write_text",
]
