from __future__ import annotations

import pytest

from fixtures.bytecode_builder import (
    SAMPLE_IMPORT_WORD,
    Proto,
    build_module,
    ins,
    k_bool,
    k_table,
    sample_module_bytes,
)

from luau_lift.config import ParserConfig
from luau_lift.container import (
    Boolean,
    ByteRange,
    Closure,
    Import,
    Nil,
    Number,
    String,
    Table,
    parse_module,
)
from luau_lift.decoder.opcodes import Opcode
from luau_lift.exceptions import FormatError


def test_sample_module_structure(sample_bytes, sample_module) -> None:
    module = sample_module
    assert module.entry_index == 0
    assert [bytes(sample_bytes[r.start : r.end]) for r in module.strings] == [
        b"print",
        b"hello",
        b"main",
    ]
    assert module.strings[0] == ByteRange(3, 8)

    entry, closure = module.functions
    assert entry.code == ByteRange(25, 65)
    assert entry.instruction_words == 10
    assert entry.constants == (
        Number(1.5),
        String(2),
        Closure(1),
        Import(SAMPLE_IMPORT_WORD),
        String(1),
        Nil(),
    )
    assert entry.references == (1,)
    assert entry.debug_name == 3
    assert module.string_bytes(sample_bytes, entry.debug_name) == b"main"

    assert closure.position.start == entry.position.end
    assert closure.instruction_words == 2
    assert module.entry_point == entry.code.start


def test_code_lies_within_function_record(sample_module) -> None:
    for function in sample_module.functions:
        assert function.position.covers(function.code)
        for span in function.constant_ranges:
            assert function.position.covers(span)
        assert len(function.constant_ranges) == len(function.constants)


def test_constant_ranges_are_contiguous(sample_module) -> None:
    ranges = sample_module.functions[0].constant_ranges
    for before, after in zip(ranges, ranges[1:]):
        assert before.end == after.start
    assert len(ranges[0]) == 9
    assert sample_module.functions[0].constant_span == ByteRange(ranges[0].start, ranges[-1].end)


def test_every_truncation_is_a_format_error() -> None:
    data = sample_module_bytes()
    for length in range(len(data)):
        with pytest.raises(FormatError):
            parse_module(data[:length])


def test_trailing_bytes_are_ignored() -> None:
    data = sample_module_bytes()
    module = parse_module(data + b"\x00\x01")
    assert module == parse_module(data)


def test_bad_version_byte() -> None:
    data = build_module([], [Proto(code=ins(Opcode.RETURN, 0, 1))], version=3)
    with pytest.raises(FormatError) as excinfo:
        parse_module(data)
    assert excinfo.value.offset == 0


def test_expected_version_is_configurable() -> None:
    data = build_module([], [Proto(code=ins(Opcode.RETURN, 0, 1))], version=3)
    module = parse_module(data, config=ParserConfig(expected_version=3))
    assert len(module.functions) == 1


def test_unknown_constant_tag() -> None:
    data = build_module([], [Proto(code=ins(Opcode.NOP), constants=[bytes([7])])])
    with pytest.raises(FormatError, match="unknown constant tag 7"):
        parse_module(data)


def test_entry_index_outside_prototype_list() -> None:
    data = build_module([], [Proto(code=ins(Opcode.NOP))], entry=1)
    with pytest.raises(FormatError, match="entry function"):
        parse_module(data)


def test_boolean_and_table_constants() -> None:
    data = build_module(
        [],
        [Proto(constants=[k_bool(True), k_bool(False), k_table([1, 300])])],
    )
    (function,) = parse_module(data).functions
    assert function.constants == (Boolean(True), Boolean(False), Table())
    assert function.code == ByteRange(function.code.start, function.code.start)


@pytest.mark.parametrize("gap", [0, 1, 3, 6])
def test_line_info_is_skipped(gap: int) -> None:
    code = ins(Opcode.NOP) * 9 + ins(Opcode.RETURN, 0, 1)
    with_lines = build_module(
        [b"x"],
        [Proto(code=code, line_gap=gap), Proto(code=ins(Opcode.RETURN, 0, 1))],
        entry=1,
    )
    module = parse_module(with_lines)
    assert [f.instruction_words for f in module.functions] == [10, 1]
    assert module.entry_index == 1


def test_debug_info_is_skipped() -> None:
    proto = Proto(
        code=ins(Opcode.RETURN, 0, 1),
        debug_info=True,
        locals=[(1, 0, 200, 0), (1, 0, 1, 3)],
        upvalue_names=[1, 1],
    )
    data = build_module([b"v"], [proto, Proto(code=ins(Opcode.NOP))])
    module = parse_module(data)
    assert len(module.functions) == 2
    assert module.functions[1].code.end == len(data) - 7


def test_parse_accepts_bytearray() -> None:
    data = bytearray(sample_module_bytes())
    assert parse_module(data).entry_index == 0


def test_string_range_lookup(sample_module) -> None:
    assert sample_module.string_range(0) is None
    assert sample_module.string_range(2) == sample_module.strings[1]
    with pytest.raises(IndexError):
        sample_module.string_range(4)


def test_function_at(sample_module) -> None:
    entry, closure = sample_module.functions
    assert sample_module.function_at(entry.code.start) is entry
    assert sample_module.function_at(entry.code.end - 1) is entry
    assert sample_module.function_at(closure.code.start) is closure
    assert sample_module.function_at(entry.code.end) is None
    assert sample_module.function_at(0) is None
