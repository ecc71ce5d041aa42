"""Builtin function ids used by the fast-call opcodes."""

from __future__ import annotations

from enum import IntEnum
from typing import Dict

from ..exceptions import DecodeError


class BuiltIn(IntEnum):
    ASSERT = 1

    ABS = 2
    ACOS = 3
    ASIN = 4
    ATAN2 = 5
    ATAN = 6
    CEIL = 7
    COSH = 8
    COS = 9
    DEG = 10
    EXP = 11
    FLOOR = 12
    FMOD = 13
    FREXP = 14
    LDEXP = 15
    LOG10 = 16
    LOG = 17
    MAX = 18
    MIN = 19
    MODF = 20
    POW = 21
    RAD = 22
    SINH = 23
    SIN = 24
    SQRT = 25
    TANH = 26
    TAN = 27

    ARSHIFT = 28
    BAND = 29
    BNOT = 30
    BOR = 31
    BXOR = 32
    BTEST = 33
    EXTRACT = 34
    LROTATE = 35
    LSHIFT = 36
    REPLACE = 37
    RROTATE = 38
    RSHIFT = 39

    TYPE = 40

    BYTE = 41
    CHAR = 42
    LEN = 43

    TYPEOF = 44

    SUB = 45

    CLAMP = 46
    SIGN = 47
    ROUND = 48

    RAWSET = 49
    RAWGET = 50
    RAWEQUAL = 51

    TINSERT = 52
    TUNPACK = 53

    VECTOR = 54

    COUNTLZ = 55
    COUNTRZ = 56

    SELECT = 57

    @property
    def qualified_name(self) -> str:
        return _NAMES[self]


def _library(prefix: str, *members: BuiltIn) -> Dict[BuiltIn, str]:
    return {member: f"{prefix}.{member.name.lower()}" for member in members}


_NAMES: Dict[BuiltIn, str] = {
    BuiltIn.ASSERT: "assert",
    BuiltIn.TYPE: "type",
    BuiltIn.TYPEOF: "typeof",
    BuiltIn.RAWSET: "rawset",
    BuiltIn.RAWGET: "rawget",
    BuiltIn.RAWEQUAL: "rawequal",
    BuiltIn.VECTOR: "vector",
    BuiltIn.SELECT: "select",
    BuiltIn.TINSERT: "table.insert",
    BuiltIn.TUNPACK: "table.unpack",
    **_library(
        "math",
        *(BuiltIn(value) for value in range(BuiltIn.ABS, BuiltIn.TAN + 1)),
        BuiltIn.CLAMP,
        BuiltIn.SIGN,
        BuiltIn.ROUND,
    ),
    **_library(
        "bit32",
        *(BuiltIn(value) for value in range(BuiltIn.ARSHIFT, BuiltIn.RSHIFT + 1)),
        BuiltIn.COUNTLZ,
        BuiltIn.COUNTRZ,
    ),
    **_library("string", BuiltIn.BYTE, BuiltIn.CHAR, BuiltIn.LEN, BuiltIn.SUB),
}


def builtin_from_id(value: int) -> BuiltIn:
    """Checked conversion of a fast-call id; raises :class:`DecodeError`."""

    try:
        return BuiltIn(value)
    except ValueError as exc:
        raise DecodeError(f"unknown builtin id {value}") from exc


__all__ = ["BuiltIn", "builtin_from_id"]
