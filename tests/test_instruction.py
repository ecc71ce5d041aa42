from __future__ import annotations

import pytest

from fixtures.bytecode_builder import aux, ins, ins_d, ins_e

from luau_lift.decoder.instruction import ADDRESS_MASK, Instruction, jump_target
from luau_lift.decoder.opcodes import OPCODE_TABLE, Opcode, OperandName
from luau_lift.decoder.references import iter_reference, pack_reference
from luau_lift.exceptions import DecodeError


@pytest.mark.parametrize("opcode", list(Opcode))
def test_decode_every_opcode_reads_its_fields(opcode: Opcode) -> None:
    info = OPCODE_TABLE[opcode]
    window = ins(opcode, 0x12, 0x34, 0xF6)
    if info.length == 8:
        window += aux(-2)
    window += b"\xee" * 8

    instruction = Instruction.decode(window)

    assert instruction.opcode is opcode
    assert instruction.length == info.length
    assert instruction.raw == window[: info.length]
    assert (instruction.a, instruction.b, instruction.c) == (0x12, 0x34, 0xF6)
    assert instruction.d == int.from_bytes(b"\x34\xf6", "little", signed=True)
    assert instruction.e == int.from_bytes(b"\x12\x34\xf6", "little", signed=True)
    if info.length == 8:
        assert instruction.x == -2
        assert instruction.adjacent == -2
    else:
        with pytest.raises(DecodeError):
            instruction.x


def test_d_field_is_signed() -> None:
    assert Instruction.decode(ins_d(Opcode.JUMP, 0, -1)).d == -1
    assert Instruction.decode(ins_d(Opcode.JUMP, 0, 0x7FFF)).d == 0x7FFF
    assert Instruction.decode(ins_d(Opcode.LOAD_INTEGER, 3, -32768)).d == -32768


def test_e_field_is_signed_24_bit() -> None:
    assert Instruction.decode(ins_e(Opcode.JUMP_EX, -5)).e == -5
    assert Instruction.decode(ins_e(Opcode.JUMP_EX, (1 << 23) - 1)).e == (1 << 23) - 1
    assert Instruction.decode(ins_e(Opcode.JUMP_EX, -(1 << 23))).e == -(1 << 23)


def test_operand_values_follow_schema() -> None:
    instruction = Instruction.decode(ins_d(Opcode.JUMP_IF_EQUAL, 4, 7) + aux(9))
    assert instruction.operand_values() == {
        OperandName.A: 4,
        OperandName.X: 9,
        OperandName.D: 7,
    }


def test_empty_window_is_rejected() -> None:
    with pytest.raises(DecodeError):
        Instruction.decode(b"")


def test_unknown_opcode_is_rejected() -> None:
    with pytest.raises(DecodeError):
        Instruction.decode(bytes([0xFE, 0, 0, 0]))


def test_short_window_for_wide_opcode_is_rejected() -> None:
    with pytest.raises(DecodeError):
        Instruction.decode(ins_d(Opcode.GET_IMPORT, 0, 0) + b"\x00\x00")


def test_decode_accepts_memoryview_windows() -> None:
    data = memoryview(b"\x00" * 4 + ins(Opcode.MOVE, 1, 2))
    instruction = Instruction.decode(data[4:])
    assert instruction.opcode is Opcode.MOVE
    assert (instruction.a, instruction.b) == (1, 2)


@pytest.mark.parametrize(
    "address, offset, expected",
    [
        (100, 0, 104),
        (100, -1, 100),
        (100, 5, 124),
        (0, -2, ADDRESS_MASK - 3),
    ],
)
def test_jump_target(address: int, offset: int, expected: int) -> None:
    assert jump_target(address, offset) == expected


def test_fallthrough_uses_next_offset() -> None:
    narrow = Instruction.decode(ins_d(Opcode.JUMP_IF_TRUTHY, 0, 3))
    wide = Instruction.decode(ins_d(Opcode.JUMP_IF_EQUAL, 0, 3) + aux(1))
    assert narrow.fallthrough(40) == 44
    assert wide.fallthrough(40) == 48


def test_reference_chain_order() -> None:
    word = pack_reference([3, 7])
    assert word >> 30 == 2
    assert list(iter_reference(word)) == [3, 7]
    assert list(iter_reference(pack_reference([]))) == []
    assert list(iter_reference(pack_reference([1023, 0, 5]))) == [1023, 0, 5]


def test_reference_word_layout() -> None:
    assert pack_reference([1, 2]) == (2 << 30) | (2 << 10) | 1


def test_pack_reference_rejects_invalid_chains() -> None:
    with pytest.raises(ValueError):
        pack_reference([1, 2, 3, 4])
    with pytest.raises(ValueError):
        pack_reference([1024])
