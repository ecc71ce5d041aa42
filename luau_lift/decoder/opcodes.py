"""Opcode metadata table for the Luau version 2 instruction set.

Every opcode byte maps to exactly one :class:`OpcodeInfo` describing its
mnemonic, its encoded length (one or two 32-bit words) and the ordered operand
schema.  Decoding, lifting, branch analysis and operand rendering all read
this table; nothing else hard-codes instruction shapes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Dict, Iterator, Mapping, Tuple

from ..exceptions import DecodeError


class Opcode(IntEnum):
    NOP = 0
    BREAK = 1

    LOAD_NIL = 2
    LOAD_BOOLEAN = 3
    LOAD_INTEGER = 4
    LOAD_CONSTANT = 5

    MOVE = 6

    GET_GLOBAL = 7
    SET_GLOBAL = 8

    GET_UPVALUE = 9
    SET_UPVALUE = 10
    CLOSE_UPVALUES = 11

    GET_IMPORT = 12

    GET_TABLE = 13
    SET_TABLE = 14
    GET_TABLE_KEY = 15
    SET_TABLE_KEY = 16
    GET_TABLE_INDEX = 17
    SET_TABLE_INDEX = 18

    NEW_CLOSURE = 19

    NAME_CALL = 20
    CALL = 21
    RETURN = 22

    JUMP = 23
    JUMP_SAFE = 24

    JUMP_IF_TRUTHY = 25
    JUMP_IF_FALSY = 26
    JUMP_IF_EQUAL = 27
    JUMP_IF_LESS_EQUAL = 28
    JUMP_IF_LESS_THAN = 29
    JUMP_IF_NOT_EQUAL = 30
    JUMP_IF_MORE_THAN = 31
    JUMP_IF_MORE_EQUAL = 32

    ADD = 33
    SUB = 34
    MUL = 35
    DIV = 36
    MOD = 37
    POW = 38

    ADD_CONSTANT = 39
    SUB_CONSTANT = 40
    MUL_CONSTANT = 41
    DIV_CONSTANT = 42
    MOD_CONSTANT = 43
    POW_CONSTANT = 44

    AND = 45
    OR = 46
    AND_CONSTANT = 47
    OR_CONSTANT = 48

    CONCAT = 49

    NOT = 50
    MINUS = 51
    LENGTH = 52

    NEW_TABLE = 53
    DUP_TABLE = 54

    SET_LIST = 55

    FOR_NUMERIC_PREP = 56
    FOR_NUMERIC_LOOP = 57
    FOR_GENERIC_LOOP = 58

    FOR_GENERIC_PREP_I_NEXT = 59
    FOR_GENERIC_LOOP_I_NEXT = 60  # deprecated
    FOR_GENERIC_PREP_NEXT = 61
    FOR_GENERIC_LOOP_NEXT = 62  # deprecated

    GET_VARIADIC = 63
    DUP_CLOSURE = 64
    PREP_VARIADIC = 65

    LOAD_CONSTANT_EX = 66
    JUMP_EX = 67

    FAST_CALL = 68

    COVERAGE = 69
    CAPTURE = 70

    JUMP_IF_CONSTANT = 71  # deprecated
    JUMP_IF_NOT_CONSTANT = 72  # deprecated

    FAST_CALL1 = 73
    FAST_CALL2 = 74
    FAST_CALL2_K = 75

    FOR_GENERIC_PREP = 76

    JUMP_IF_NIL = 77
    JUMP_IF_BOOLEAN = 78
    JUMP_IF_NUMBER = 79
    JUMP_IF_STRING = 80


class OperandName(str, Enum):
    """Which encoded field an operand is read from."""

    A = "a"
    B = "b"
    C = "c"
    D = "d"
    E = "e"
    X = "x"


class OperandType(str, Enum):
    """How an operand's raw value is interpreted."""

    LOCATION = "location"
    REGISTER = "register"
    UPVALUE = "upvalue"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    CONSTANT = "constant"
    FUNCTION = "function"
    IMPORT = "import"
    BUILTIN = "builtin"


Schema = Tuple[Tuple[OperandName, OperandType], ...]


@dataclass(frozen=True)
class OpcodeInfo:
    opcode: Opcode
    mnemonic: str
    length: int
    operands: Schema

    @property
    def words(self) -> int:
        return self.length // 4

    @property
    def next_offset(self) -> int:
        """Word offset of the fallthrough edge of a conditional branch."""

        return self.length // 4 - 1

    def iter_operands(self) -> Iterator[Tuple[OperandName, OperandType]]:
        return iter(self.operands)


_A, _B, _C, _D, _E, _X = (
    OperandName.A,
    OperandName.B,
    OperandName.C,
    OperandName.D,
    OperandName.E,
    OperandName.X,
)
_LOC = OperandType.LOCATION
_REG = OperandType.REGISTER
_UPV = OperandType.UPVALUE
_BOOL = OperandType.BOOLEAN
_INT = OperandType.INTEGER
_K = OperandType.CONSTANT
_FUNC = OperandType.FUNCTION
_IMP = OperandType.IMPORT
_FAST = OperandType.BUILTIN

_RRR: Schema = ((_A, _REG), (_B, _REG), (_C, _REG))
_RRK: Schema = ((_A, _REG), (_B, _REG), (_C, _K))
_RR: Schema = ((_A, _REG), (_B, _REG))
_RL: Schema = ((_A, _REG), (_D, _LOC))
_RRL: Schema = ((_A, _REG), (_X, _REG), (_D, _LOC))
_RKL: Schema = ((_A, _REG), (_X, _K), (_D, _LOC))
_RLI: Schema = ((_A, _REG), (_D, _LOC), (_X, _INT))

# opcode -> (length, schema); mnemonics derive from the enum name.
_SHAPES: Dict[Opcode, Tuple[int, Schema]] = {
    Opcode.NOP: (4, ()),
    Opcode.BREAK: (4, ()),
    Opcode.LOAD_NIL: (4, ((_A, _REG),)),
    Opcode.LOAD_BOOLEAN: (4, ((_A, _REG), (_B, _BOOL), (_C, _LOC))),
    Opcode.LOAD_INTEGER: (4, ((_A, _REG), (_D, _INT))),
    Opcode.LOAD_CONSTANT: (4, ((_A, _REG), (_D, _K))),
    Opcode.MOVE: (4, _RR),
    Opcode.GET_GLOBAL: (8, ((_A, _REG), (_X, _K))),
    Opcode.SET_GLOBAL: (8, ((_A, _REG), (_X, _K))),
    Opcode.GET_UPVALUE: (4, ((_A, _REG), (_B, _UPV))),
    Opcode.SET_UPVALUE: (4, ((_A, _REG), (_B, _UPV))),
    Opcode.CLOSE_UPVALUES: (4, ((_A, _REG),)),
    Opcode.GET_IMPORT: (8, ((_A, _REG), (_D, _K), (_X, _IMP))),
    Opcode.GET_TABLE: (4, _RRR),
    Opcode.SET_TABLE: (4, _RRR),
    Opcode.GET_TABLE_KEY: (8, ((_A, _REG), (_B, _REG), (_X, _K))),
    Opcode.SET_TABLE_KEY: (8, ((_A, _REG), (_B, _REG), (_X, _K))),
    Opcode.GET_TABLE_INDEX: (4, ((_A, _REG), (_B, _REG), (_C, _INT))),
    Opcode.SET_TABLE_INDEX: (4, ((_A, _REG), (_B, _REG), (_C, _INT))),
    Opcode.NEW_CLOSURE: (4, ((_A, _REG), (_D, _FUNC))),
    Opcode.NAME_CALL: (8, ((_A, _REG), (_B, _REG), (_X, _K))),
    Opcode.CALL: (4, ((_A, _REG), (_B, _INT), (_C, _INT))),
    Opcode.RETURN: (4, ((_A, _REG), (_B, _INT))),
    Opcode.JUMP: (4, ((_D, _LOC),)),
    Opcode.JUMP_SAFE: (4, ((_D, _LOC),)),
    Opcode.JUMP_IF_TRUTHY: (4, _RL),
    Opcode.JUMP_IF_FALSY: (4, _RL),
    Opcode.JUMP_IF_EQUAL: (8, _RRL),
    Opcode.JUMP_IF_LESS_EQUAL: (8, _RRL),
    Opcode.JUMP_IF_LESS_THAN: (8, _RRL),
    Opcode.JUMP_IF_NOT_EQUAL: (8, _RRL),
    Opcode.JUMP_IF_MORE_THAN: (8, _RRL),
    Opcode.JUMP_IF_MORE_EQUAL: (8, _RRL),
    Opcode.ADD: (4, _RRR),
    Opcode.SUB: (4, _RRR),
    Opcode.MUL: (4, _RRR),
    Opcode.DIV: (4, _RRR),
    Opcode.MOD: (4, _RRR),
    Opcode.POW: (4, _RRR),
    Opcode.ADD_CONSTANT: (4, _RRK),
    Opcode.SUB_CONSTANT: (4, _RRK),
    Opcode.MUL_CONSTANT: (4, _RRK),
    Opcode.DIV_CONSTANT: (4, _RRK),
    Opcode.MOD_CONSTANT: (4, _RRK),
    Opcode.POW_CONSTANT: (4, _RRK),
    Opcode.AND: (4, _RRR),
    Opcode.OR: (4, _RRR),
    Opcode.AND_CONSTANT: (4, _RRK),
    Opcode.OR_CONSTANT: (4, _RRK),
    Opcode.CONCAT: (4, _RRR),
    Opcode.NOT: (4, _RR),
    Opcode.MINUS: (4, _RR),
    Opcode.LENGTH: (4, _RR),
    Opcode.NEW_TABLE: (8, ((_A, _REG), (_B, _INT), (_X, _INT))),
    Opcode.DUP_TABLE: (4, ((_A, _REG), (_D, _K))),
    Opcode.SET_LIST: (8, ((_A, _REG), (_B, _REG), (_C, _INT), (_X, _INT))),
    Opcode.FOR_NUMERIC_PREP: (4, _RL),
    Opcode.FOR_NUMERIC_LOOP: (4, _RL),
    Opcode.FOR_GENERIC_LOOP: (8, ((_A, _REG), (_X, _INT), (_D, _LOC))),
    Opcode.FOR_GENERIC_PREP_I_NEXT: (4, _RL),
    Opcode.FOR_GENERIC_LOOP_I_NEXT: (4, _RL),
    Opcode.FOR_GENERIC_PREP_NEXT: (4, _RL),
    Opcode.FOR_GENERIC_LOOP_NEXT: (4, _RL),
    Opcode.GET_VARIADIC: (4, ((_A, _REG), (_B, _INT))),
    Opcode.DUP_CLOSURE: (4, ((_A, _REG), (_D, _K))),
    Opcode.PREP_VARIADIC: (4, ((_A, _INT),)),
    Opcode.LOAD_CONSTANT_EX: (8, ((_A, _REG), (_X, _K))),
    Opcode.JUMP_EX: (4, ((_E, _LOC),)),
    Opcode.FAST_CALL: (4, ((_A, _FAST), (_C, _LOC))),
    Opcode.COVERAGE: (4, ((_E, _INT),)),
    Opcode.CAPTURE: (4, ()),
    Opcode.JUMP_IF_CONSTANT: (8, _RKL),
    Opcode.JUMP_IF_NOT_CONSTANT: (8, _RKL),
    Opcode.FAST_CALL1: (4, ((_A, _FAST), (_B, _REG), (_C, _LOC))),
    Opcode.FAST_CALL2: (8, ((_A, _FAST), (_B, _REG), (_X, _REG), (_C, _LOC))),
    Opcode.FAST_CALL2_K: (8, ((_A, _FAST), (_B, _REG), (_X, _K), (_C, _LOC))),
    Opcode.FOR_GENERIC_PREP: (4, _RL),
    Opcode.JUMP_IF_NIL: (8, _RLI),
    Opcode.JUMP_IF_BOOLEAN: (8, _RLI),
    Opcode.JUMP_IF_NUMBER: (8, _RLI),
    Opcode.JUMP_IF_STRING: (8, _RLI),
}

OPCODE_TABLE: Mapping[Opcode, OpcodeInfo] = {
    opcode: OpcodeInfo(opcode, opcode.name.lower(), length, schema)
    for opcode, (length, schema) in _SHAPES.items()
}

MAX_INSTRUCTION_LENGTH = max(info.length for info in OPCODE_TABLE.values())


def opcode_info(value: int) -> OpcodeInfo:
    """Return the table entry for the opcode byte ``value``.

    Raises :class:`DecodeError` when ``value`` is not a known opcode.
    """

    try:
        opcode = Opcode(value)
    except ValueError as exc:
        raise DecodeError(f"unknown opcode 0x{value:02x}") from exc
    return OPCODE_TABLE[opcode]


__all__ = [
    "Opcode",
    "OperandName",
    "OperandType",
    "OpcodeInfo",
    "OPCODE_TABLE",
    "MAX_INSTRUCTION_LENGTH",
    "opcode_info",
]
