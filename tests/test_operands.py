from __future__ import annotations

from fixtures.bytecode_builder import (
    SAMPLE_BRANCH,
    SAMPLE_GET_IMPORT,
    SAMPLE_LOAD_STRING,
    Proto,
    build_module,
    ins,
    ins_d,
)

from luau_lift.container import Import, parse_module
from luau_lift.decoder.builtins import BuiltIn
from luau_lift.decoder.instruction import Instruction
from luau_lift.decoder.opcodes import Opcode, OperandName, OperandType
from luau_lift.render import format_instruction, resolve_operands


def _at(module, data, offset):
    address = module.functions[0].code.start + offset
    return Instruction.decode(data[address:]), address


def test_import_operands(sample_module, sample_bytes) -> None:
    instruction, address = _at(sample_module, sample_bytes, SAMPLE_GET_IMPORT)
    register, constant, chain = resolve_operands(
        sample_module, instruction, address, buffer=sample_bytes
    )
    assert (register.type, register.text) == (OperandType.REGISTER, "r3")
    assert constant.name is OperandName.D
    assert isinstance(constant.value, Import)
    assert chain.type is OperandType.IMPORT
    assert chain.text == "print"


def test_string_constant_text_needs_buffer(sample_module, sample_bytes) -> None:
    instruction, address = _at(sample_module, sample_bytes, SAMPLE_LOAD_STRING)
    _, with_text = resolve_operands(sample_module, instruction, address, buffer=sample_bytes)
    _, without_text = resolve_operands(sample_module, instruction, address)
    assert with_text.text == "'hello'"
    assert without_text.text == "str_1"


def test_location_operand_is_absolute(sample_module, sample_bytes) -> None:
    instruction, address = _at(sample_module, sample_bytes, SAMPLE_BRANCH)
    _, location = resolve_operands(sample_module, instruction, address)
    assert location.type is OperandType.LOCATION
    assert location.raw == 1
    assert location.address == address + 8
    assert location.text == f"{address + 8:#x}"


def test_function_operand_follows_references() -> None:
    protos = [
        Proto(code=ins_d(Opcode.NEW_CLOSURE, 0, 0) + ins_d(Opcode.NEW_CLOSURE, 1, 5), references=[1]),
        Proto(code=ins(Opcode.RETURN, 0, 1)),
    ]
    data = build_module([], protos)
    module = parse_module(data)
    start = module.functions[0].code.start

    _, target = resolve_operands(module, Instruction.decode(data[start:]), start)
    assert target.value == 1
    assert target.address == module.functions[1].code.start

    _, dangling = resolve_operands(module, Instruction.decode(data[start + 4 :]), start + 4)
    assert dangling.address is None
    assert dangling.text == "proto5?"


def test_builtin_operand() -> None:
    data = build_module([], [Proto(code=ins(Opcode.FAST_CALL, 12, 0, 1) + ins(Opcode.FAST_CALL, 200))])
    module = parse_module(data)
    start = module.functions[0].code.start

    builtin, _ = resolve_operands(module, Instruction.decode(data[start:]), start)
    assert builtin.value is BuiltIn.FLOOR
    assert builtin.text == "math.floor"

    unknown, _ = resolve_operands(module, Instruction.decode(data[start + 4 :]), start + 4)
    assert unknown.value is None
    assert unknown.text == "builtin200?"


def test_format_instruction(sample_module, sample_bytes) -> None:
    instruction, address = _at(sample_module, sample_bytes, SAMPLE_GET_IMPORT)
    line = format_instruction(sample_module, instruction, address, buffer=sample_bytes)
    assert line.startswith(f"{address:#06x}")
    assert "get_import r3, " in line
    assert line.endswith("print")
